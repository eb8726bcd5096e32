"""Agregador de rotas: registra health e os routers do Chatwoot.

Uso:
    from api.routes import create_api_router

    app = FastAPI()
    app.include_router(create_api_router())
"""

from __future__ import annotations

from fastapi import APIRouter

from api.routes.chatwoot.router import router as chatwoot_router
from api.routes.chatwoot.webhook import status_router
from api.routes.health.router import router as health_router


def create_api_router() -> APIRouter:
    """Cria router principal com todos os sub-routers registrados.

    Returns:
        APIRouter configurado com todos os endpoints.
    """
    api_router = APIRouter()

    # Health checks (sem prefixo para /health e /ready na raiz)
    api_router.include_router(health_router, tags=["health"])

    api_router.include_router(chatwoot_router, tags=["chatwoot"])
    api_router.include_router(status_router, prefix="/webhooks", tags=["chatwoot"])

    return api_router
