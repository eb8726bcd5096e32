"""Formatters de logging estruturado (JSON).

Campos obrigatórios em todo log:
- asctime, level, logger, message
- correlation_id, service
"""

from __future__ import annotations

from pythonjsonlogger.json import JsonFormatter

REQUIRED_LOG_FIELDS = (
    "asctime",
    "levelname",
    "name",
    "message",
    "correlation_id",
    "service",
)

FIELD_RENAME_MAP = {
    "levelname": "level",
    "name": "logger",
}

ISO_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


def create_json_formatter() -> JsonFormatter:
    """Cria formatter JSON com campos padronizados.

    Exemplo de output:
        {
            "asctime": "2026-10-18T10:30:00+0000",
            "level": "WARNING",
            "logger": "api.routes.chatwoot.webhook",
            "message": "webhook_signature_invalid",
            "correlation_id": "abc-123",
            "service": "ponte_crm",
            "webhook_id": "w1"
        }
    """
    format_string = " ".join(f"%({field})s" for field in REQUIRED_LOG_FIELDS)
    return JsonFormatter(
        format_string,
        datefmt=ISO_DATE_FORMAT,
        rename_fields=FIELD_RENAME_MAP,
    )
