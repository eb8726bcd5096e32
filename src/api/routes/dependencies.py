"""Dependências FastAPI compartilhadas pelas rotas."""

from __future__ import annotations

from fastapi import Request

from api.connectors.chatwoot.webhook import resolve_client_ip
from app.bootstrap.dependencies import WebhookPipeline
from config.settings import get_security_settings


def get_pipeline(request: Request) -> WebhookPipeline:
    """Pipeline registrado no app (app.state.pipeline)."""
    return request.app.state.pipeline


def get_client_ip(request: Request) -> str:
    peer = request.client.host if request.client else None
    return resolve_client_ip(request.headers, peer, get_security_settings().trusted_proxies)


def get_admin_token() -> str:
    """Token da API administrativa (vazio = desabilitada)."""
    return get_security_settings().admin_api_token
