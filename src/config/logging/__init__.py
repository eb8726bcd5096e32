"""Configuração de logging estruturado.

Uso:
    from config.logging import configure_logging, get_logger

    configure_logging(level="INFO", service_name="ponte_crm")
    logger = get_logger(__name__)
    logger.info("webhook_enqueued", extra={"webhook_id": "w1"})

Regras: logs estruturados, sem segredos, payloads apenas como preview.
"""

from config.logging.config import configure_logging, get_logger, mask_value
from config.logging.filters import CorrelationIdFilter, RedactionFilter
from config.logging.formatters import (
    FIELD_RENAME_MAP,
    REQUIRED_LOG_FIELDS,
    create_json_formatter,
)

__all__ = [
    "FIELD_RENAME_MAP",
    "REQUIRED_LOG_FIELDS",
    "CorrelationIdFilter",
    "RedactionFilter",
    "configure_logging",
    "create_json_formatter",
    "get_logger",
    "mask_value",
]
