"""App: coração do sistema: intake, fila, executor e infraestrutura.

Subpastas:
- bootstrap/: composition root (factories, inicialização, wiring)
- domain/: envelope, job, dead-letter, eventos
- use_cases/: intake, executor, worker pool, handlers de negócio
- services/: detector de anomalias e rate limiter
- infra/: implementações concretas de IO (memória, Redis, Firestore)
- protocols/: contratos/interfaces
- observability/: correlation id e métricas em log

Padrão: app executa; api adapta; fsm governa; utils apoia.
"""
