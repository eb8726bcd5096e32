"""Exceções utilitárias compartilhadas."""

from .exceptions import (
    AuthenticityError,
    CapacityError,
    CollaboratorRejectedError,
    CollaboratorUnavailableError,
    ConfigurationError,
    FirestoreUnavailableError,
    InfrastructureError,
    InvalidJsonError,
    InvalidSignatureError,
    InvalidTimestampError,
    MissingHeadersError,
    MissingParentError,
    PayloadTooLargeError,
    PermanentBusinessError,
    PonteError,
    RedisConnectionError,
    TimestampExpiredError,
    TransientError,
    WebhookValidationError,
)

__all__ = [
    "AuthenticityError",
    "CapacityError",
    "CollaboratorRejectedError",
    "CollaboratorUnavailableError",
    "ConfigurationError",
    "FirestoreUnavailableError",
    "InfrastructureError",
    "InvalidJsonError",
    "InvalidSignatureError",
    "InvalidTimestampError",
    "MissingHeadersError",
    "MissingParentError",
    "PayloadTooLargeError",
    "PermanentBusinessError",
    "PonteError",
    "RedisConnectionError",
    "TimestampExpiredError",
    "TransientError",
    "WebhookValidationError",
]
