"""Rotas HTTP da API: adapters de entrada.

Responsabilidades:
- Definir endpoints HTTP (webhooks, dead-letters, health)
- Converter Request em (headers, body, source_ip) para o dispatcher
- Converter o resultado do intake em resposta JSON

Estrutura:
- routes/chatwoot/: webhook e API administrativa
- routes/health/: health checks e readiness

Agregação:
- router.py: registra todos os routers no app principal
"""

from __future__ import annotations

from api.routes.router import create_api_router

__all__ = ["create_api_router"]
