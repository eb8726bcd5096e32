"""Settings do Firestore.

Usado pelos stores de dead-letter e de auditoria de segurança.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


@dataclass(frozen=True)
class FirestoreSettings:
    """Configurações do Firestore.

    Attributes:
        project_id: ID do projeto GCP (usa GCP_PROJECT se não definido)
        collection_dead_letters: Collection de webhooks que esgotaram tentativas
        collection_audit: Collection da trilha de auditoria de segurança
    """

    project_id: str = ""
    collection_dead_letters: str = "failed_webhooks"
    collection_audit: str = "security_audit"

    def validate(self, gcp_project: str) -> list[str]:
        """Valida configurações do Firestore.

        Args:
            gcp_project: Projeto GCP padrão para fallback.

        Returns:
            Lista de erros de validação.
        """
        errors: list[str] = []
        if not (self.project_id or gcp_project):
            errors.append("FIRESTORE_PROJECT_ID ou GCP_PROJECT deve estar configurado")
        if not self.collection_dead_letters or not self.collection_audit:
            errors.append("Collections do Firestore não podem ser vazias")
        return errors


def _load_firestore_from_env() -> FirestoreSettings:
    """Carrega FirestoreSettings de variáveis de ambiente."""
    return FirestoreSettings(
        project_id=os.getenv("FIRESTORE_PROJECT_ID", ""),
        collection_dead_letters=os.getenv(
            "FIRESTORE_COLLECTION_DEAD_LETTERS", "failed_webhooks"
        ),
        collection_audit=os.getenv("FIRESTORE_COLLECTION_AUDIT", "security_audit"),
    )


@lru_cache(maxsize=1)
def get_firestore_settings() -> FirestoreSettings:
    """Retorna instância cacheada de FirestoreSettings."""
    return _load_firestore_from_env()
