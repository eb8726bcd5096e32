"""Taxonomia de exceções compartilhada pelo pipeline de webhooks.

Falhas de intake (validação, autenticidade, capacidade) ficam no caminho HTTP
e nunca chegam à fila. Falhas de execução são classificadas em transitórias
(consomem tentativa) e permanentes (vão direto para dead-letter).
"""

from __future__ import annotations


class PonteError(Exception):
    """Base de todas as exceções do serviço."""

    error_code: str = "INTERNAL_ERROR"
    http_status: int = 500

    def __init__(self, message: str = "", *, error_code: str | None = None) -> None:
        super().__init__(message or self.error_code.lower())
        if error_code is not None:
            self.error_code = error_code


# ──────────────────────────────────────────────────────────────
# Intake (fatais, 4xx, nunca reprocessadas)
# ──────────────────────────────────────────────────────────────


class WebhookValidationError(PonteError):
    """Envelope malformado (JSON inválido, schema do evento)."""

    error_code = "VALIDATION_ERROR"
    http_status = 422

    def __init__(
        self,
        message: str = "",
        *,
        error_code: str | None = None,
        details: dict[str, list[str]] | None = None,
    ) -> None:
        super().__init__(message, error_code=error_code)
        self.details = details or {}


class InvalidJsonError(WebhookValidationError):
    """Corpo não é JSON válido ou não é objeto."""

    error_code = "INVALID_JSON"
    http_status = 400


class AuthenticityError(PonteError):
    """Falha de autenticidade: registrada como evento de segurança."""

    error_code = "AUTHENTICITY_ERROR"
    http_status = 401


class MissingHeadersError(AuthenticityError):
    """Cabeçalhos de assinatura/timestamp ausentes."""

    error_code = "MISSING_HEADERS"
    http_status = 401


class InvalidSignatureError(AuthenticityError):
    """Assinatura HMAC não confere."""

    error_code = "INVALID_SIGNATURE"
    http_status = 403


class TimestampExpiredError(AuthenticityError):
    """Timestamp fora da janela de tolerância."""

    error_code = "TIMESTAMP_EXPIRED"
    http_status = 401


class InvalidTimestampError(AuthenticityError):
    """Timestamp não numérico."""

    error_code = "INVALID_TIMESTAMP"
    http_status = 401


class CapacityError(PonteError):
    """Requisição excede limites de capacidade."""

    error_code = "CAPACITY_ERROR"
    http_status = 413


class PayloadTooLargeError(CapacityError):
    """Corpo maior que o máximo configurado."""

    error_code = "PAYLOAD_TOO_LARGE"
    http_status = 413

    def __init__(self, size: int, max_bytes: int) -> None:
        super().__init__("payload_too_large")
        self.size = size
        self.max_bytes = max_bytes


class ConfigurationError(PonteError):
    """Configuração obrigatória ausente (ex.: secret do webhook)."""

    error_code = "CONFIGURATION_ERROR"
    http_status = 500


# ──────────────────────────────────────────────────────────────
# Execução (classificadas pelo executor)
# ──────────────────────────────────────────────────────────────


class TransientError(PonteError):
    """Falha recuperável: consome tentativa e agenda retry."""

    error_code = "TRANSIENT_ERROR"


class InfrastructureError(TransientError):
    """Base para falhas de infraestrutura transitórias."""

    error_code = "INFRASTRUCTURE_ERROR"


class RedisConnectionError(InfrastructureError):
    """Falha de conexão/timeout ao acessar Redis."""


class FirestoreUnavailableError(InfrastructureError):
    """Falha de indisponibilidade ao acessar Firestore."""


class CollaboratorUnavailableError(TransientError):
    """Colaborador externo respondeu 5xx/429 ou não respondeu."""

    error_code = "COLLABORATOR_UNAVAILABLE"

    def __init__(self, message: str = "", *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MissingParentError(TransientError):
    """Evento chegou antes do registro pai (ex.: mensagem antes da conversa)."""

    error_code = "MISSING_PARENT"


class PermanentBusinessError(PonteError):
    """Falha de negócio não recuperável: dead-letter imediato."""

    error_code = "PERMANENT_BUSINESS_ERROR"


class CollaboratorRejectedError(PermanentBusinessError):
    """Colaborador externo respondeu 4xx."""

    error_code = "COLLABORATOR_REJECTED"

    def __init__(self, message: str = "", *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
