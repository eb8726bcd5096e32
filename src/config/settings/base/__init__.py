"""Agregador de settings base.

Re-exporta todas as settings base para uso externo.
"""

from __future__ import annotations

from config.settings.base.core import (
    BaseSettings,
    Environment,
    env_flag,
    get_base_settings,
)
from config.settings.base.idempotency import (
    IdempotencyBackend,
    IdempotencySettings,
    get_idempotency_settings,
)

__all__ = [
    # Core
    "BaseSettings",
    # Types
    "Environment",
    # Idempotency
    "IdempotencyBackend",
    "IdempotencySettings",
    "env_flag",
    "get_base_settings",
    "get_idempotency_settings",
]
