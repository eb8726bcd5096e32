"""Router do Chatwoot: agrega webhook e API administrativa.

O prefixo fica no include interno: a rota genérica do webhook tem path
vazio e o FastAPI não aceita prefixo e path vazios ao mesmo tempo.
"""

from __future__ import annotations

from fastapi import APIRouter

from api.routes.chatwoot.admin import router as admin_router
from api.routes.chatwoot.webhook import router as webhook_router

CHATWOOT_PREFIX = "/webhooks/chatwoot"

router = APIRouter()

router.include_router(webhook_router, prefix=CHATWOOT_PREFIX)
router.include_router(admin_router, prefix=CHATWOOT_PREFIX)
