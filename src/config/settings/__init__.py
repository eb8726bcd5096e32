"""Agregador de settings do ponte-crm.

Re-exporta todas as settings e funções de cada módulo.
Organização por domínio para isolamento de mudanças.
"""

from __future__ import annotations

# Base settings
from config.settings.base import (
    BaseSettings,
    Environment,
    IdempotencyBackend,
    IdempotencySettings,
    get_base_settings,
    get_idempotency_settings,
)

# Colaboradores externos
from config.settings.chatwoot import ChatwootSettings, get_chatwoot_settings

# Infrastructure settings
from config.settings.infra import FirestoreSettings, get_firestore_settings
from config.settings.krayin import KrayinSettings, get_krayin_settings

# Pipeline de webhooks
from config.settings.queue import (
    DEFAULT_BACKOFF_SCHEDULE,
    DeadLetterBackend,
    QueueBackend,
    QueueSettings,
    get_queue_settings,
    parse_backoff_schedule,
)
from config.settings.security import (
    CounterBackend,
    SecuritySettings,
    get_security_settings,
)
from config.settings.webhook import (
    WebhookSecuritySettings,
    get_webhook_security_settings,
)

__all__ = [
    "DEFAULT_BACKOFF_SCHEDULE",
    "BaseSettings",
    "ChatwootSettings",
    "CounterBackend",
    "DeadLetterBackend",
    "Environment",
    "FirestoreSettings",
    "IdempotencyBackend",
    "IdempotencySettings",
    "KrayinSettings",
    "QueueBackend",
    "QueueSettings",
    "SecuritySettings",
    "WebhookSecuritySettings",
    "get_base_settings",
    "get_chatwoot_settings",
    "get_firestore_settings",
    "get_idempotency_settings",
    "get_krayin_settings",
    "get_queue_settings",
    "get_security_settings",
    "get_webhook_security_settings",
    "parse_backoff_schedule",
]
