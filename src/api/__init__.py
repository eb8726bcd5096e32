"""API: camada de borda HTTP.

Responsabilidades:
- Receber webhooks do Chatwoot e aplicar os guards de entrada
- Conversar com colaboradores externos (Krayin, Chatwoot) via HTTP

Subpastas:
- connectors/: clientes HTTP e guards de webhook por colaborador
- routes/: endpoints HTTP (webhooks, admin, health)

NÃO PODE conter: FSM, regras de retry, orquestração de use cases.
"""
