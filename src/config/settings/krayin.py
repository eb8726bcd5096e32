"""Settings do CRM Krayin.

Credenciais da API REST e ids do pipeline/estágios usados pelos
handlers de negócio.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


@dataclass(frozen=True)
class KrayinSettings:
    """Configurações do cliente Krayin.

    Attributes:
        base_url: URL base da instância (sem barra final)
        api_token: Bearer token da API
        timeout_seconds: Timeout por requisição
        max_retries: Tentativas do cliente HTTP antes de propagar
        default_pipeline_id: Pipeline dos leads criados via webhook
        default_stage_id: Estágio inicial ("New")
        stage_in_progress_id: Estágio para conversas abertas
        stage_follow_up_id: Estágio para conversas resolvidas
        stage_waiting_id: Estágio para conversas pendentes/adiadas
    """

    base_url: str = ""
    api_token: str = ""
    timeout_seconds: float = 10.0
    max_retries: int = 3
    default_pipeline_id: int = 1
    default_stage_id: int = 1
    stage_in_progress_id: int = 2
    stage_follow_up_id: int = 3
    stage_waiting_id: int = 4

    def validate(self) -> list[str]:
        errors: list[str] = []
        if not self.base_url:
            errors.append("KRAYIN_URL não configurado")
        if not self.api_token:
            errors.append("KRAYIN_API_TOKEN não configurado")
        if self.timeout_seconds <= 0:
            errors.append("KRAYIN_API_TIMEOUT deve ser > 0")
        return errors


def _load_krayin_from_env() -> KrayinSettings:
    """Carrega KrayinSettings de variáveis de ambiente."""
    return KrayinSettings(
        base_url=os.getenv("KRAYIN_URL", "").rstrip("/"),
        api_token=os.getenv("KRAYIN_API_TOKEN", ""),
        timeout_seconds=float(os.getenv("KRAYIN_API_TIMEOUT", "10")),
        max_retries=int(os.getenv("KRAYIN_API_RETRY_ATTEMPTS", "3")),
        default_pipeline_id=int(os.getenv("KRAYIN_DEFAULT_PIPELINE_ID", "1")),
        default_stage_id=int(os.getenv("KRAYIN_DEFAULT_STAGE_ID", "1")),
        stage_in_progress_id=int(os.getenv("KRAYIN_STAGE_IN_PROGRESS_ID", "2")),
        stage_follow_up_id=int(os.getenv("KRAYIN_STAGE_FOLLOW_UP_ID", "3")),
        stage_waiting_id=int(os.getenv("KRAYIN_STAGE_WAITING_ID", "4")),
    )


@lru_cache(maxsize=1)
def get_krayin_settings() -> KrayinSettings:
    """Retorna instância cacheada de KrayinSettings."""
    return _load_krayin_from_env()
