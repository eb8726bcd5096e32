"""Bootstrap da aplicação: inicialização e wiring.

Este módulo é o composition root: configura logging, valida settings
e conecta implementações concretas aos protocolos.

Uso:
    from app.bootstrap import initialize_app, get_webhook_pipeline

    # Na inicialização do serviço
    initialize_app()

    # Pipeline compartilhado (dispatcher, executor, workers)
    pipeline = get_webhook_pipeline()
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import TYPE_CHECKING

from app.observability import get_correlation_id
from config.logging import configure_logging
from config.settings import (
    get_base_settings,
    get_chatwoot_settings,
    get_firestore_settings,
    get_idempotency_settings,
    get_krayin_settings,
    get_queue_settings,
    get_security_settings,
    get_webhook_security_settings,
)
from utils.errors import ConfigurationError

if TYPE_CHECKING:
    from app.bootstrap.dependencies import WebhookPipeline

# Nome do serviço para logs e métricas
SERVICE_NAME = "ponte_crm"

logger = logging.getLogger(__name__)


def initialize_app() -> None:
    """Inicializa logging estruturado JSON com correlation_id.

    Deve ser chamada uma vez no início do serviço.
    """
    configure_logging(
        level=get_base_settings().log_level.upper(),
        service_name=SERVICE_NAME,
        correlation_id_getter=get_correlation_id,
    )


def initialize_test_app() -> None:
    """Inicializa a aplicação para testes (logging em DEBUG)."""
    configure_logging(
        level="DEBUG",
        service_name=f"{SERVICE_NAME}_test",
        correlation_id_getter=get_correlation_id,
    )


def collect_settings_errors() -> list[str]:
    """Erros de todas as settings, prefixados pelo domínio."""
    base = get_base_settings()
    errors: list[str] = [f"base: {error}" for error in base.validate()]
    errors.extend(f"webhook: {error}" for error in get_webhook_security_settings().validate())
    errors.extend(f"idempotency: {error}" for error in get_idempotency_settings().validate(base))
    errors.extend(f"queue: {error}" for error in get_queue_settings().validate(base))
    errors.extend(f"security: {error}" for error in get_security_settings().validate(base))
    errors.extend(f"krayin: {error}" for error in get_krayin_settings().validate())
    errors.extend(f"chatwoot: {error}" for error in get_chatwoot_settings().validate())

    uses_firestore = get_queue_settings().dead_letter_backend == "firestore"
    if uses_firestore:
        errors.extend(
            f"firestore: {error}"
            for error in get_firestore_settings().validate(base.gcp_project)
        )
    return errors


def validate_runtime_settings() -> None:
    """Valida settings obrigatórias no startup.

    Em `staging`/`production` falha rápido para impedir boot inválido.
    Em `development` mantém alerta sem bloquear execução local.

    Raises:
        ConfigurationError: Configuração inválida fora de development.
    """
    base = get_base_settings()
    errors = collect_settings_errors()

    if not errors:
        logger.info(
            "settings_validated",
            extra={"component": "bootstrap", "result": "ok", "environment": base.environment},
        )
        return

    logger.warning(
        "settings_validation_failed",
        extra={
            "component": "bootstrap",
            "result": "failed",
            "environment": base.environment,
            "error_count": len(errors),
            "errors": errors,
        },
    )
    if not base.is_development:
        details = "\n".join(f"- {error}" for error in errors)
        raise ConfigurationError(f"Configuração inválida para {base.environment}:\n{details}")


@lru_cache(maxsize=1)
def get_webhook_pipeline() -> WebhookPipeline:
    """Obtém o pipeline de webhooks (singleton)."""
    from app.bootstrap.dependencies import create_webhook_pipeline

    return create_webhook_pipeline()
