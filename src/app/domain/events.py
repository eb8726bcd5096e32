"""Modelos pydantic dos eventos do Chatwoot.

Validação estrutural dos payloads após a autenticidade. Campos livres
são sanitizados antes da validação (tags removidas, e-mails em
minúsculas, telefones restritos a dígitos e pontuação).

Política de id: conversation_created e message_created exigem `id`.
conversation_status_changed aceita `conversation_id` no lugar de `id`;
sem `id`, o evento não é deduplicável.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from app.domain.envelope import EventType
from utils.errors import WebhookValidationError

_TAG_RE = re.compile(r"<[^>]*>")
_PHONE_STRIP_RE = re.compile(r"[^0-9+\-\s()]")

ConversationStatus = Literal["open", "resolved", "pending", "snoozed"]


def strip_tags(value: str) -> str:
    return _TAG_RE.sub("", value).strip()


def _clean_email(value: Any) -> Any:
    if isinstance(value, str):
        cleaned = value.strip().lower()
        return cleaned or None
    return value


class _EventModel(BaseModel):
    model_config = ConfigDict(extra="allow", str_strip_whitespace=True)


class ContactPayload(_EventModel):
    id: int = Field(..., ge=1)
    name: str = Field(..., min_length=1, max_length=255)
    email: str | None = Field(None, max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    phone_number: str | None = Field(None, max_length=50)

    @field_validator("name", mode="before")
    @classmethod
    def _sanitize_name(cls, value: Any) -> Any:
        return strip_tags(value) if isinstance(value, str) else value

    @field_validator("email", mode="before")
    @classmethod
    def _sanitize_email(cls, value: Any) -> Any:
        return _clean_email(value)

    @field_validator("phone_number", mode="before")
    @classmethod
    def _sanitize_phone(cls, value: Any) -> Any:
        if isinstance(value, str):
            return _PHONE_STRIP_RE.sub("", value).strip() or None
        return value


class AssigneePayload(_EventModel):
    id: int | None = Field(None, ge=1)
    name: str | None = Field(None, max_length=255)
    email: str | None = Field(None, max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

    @field_validator("name", mode="before")
    @classmethod
    def _sanitize_name(cls, value: Any) -> Any:
        return strip_tags(value) if isinstance(value, str) else value

    @field_validator("email", mode="before")
    @classmethod
    def _sanitize_email(cls, value: Any) -> Any:
        return _clean_email(value)


class TeamPayload(_EventModel):
    id: int | None = Field(None, ge=1)
    name: str | None = Field(None, max_length=255)


class SenderPayload(_EventModel):
    id: int | None = Field(None, ge=1)
    name: str = Field(..., min_length=1, max_length=255)
    type: Literal["contact", "agent", "bot"]
    email: str | None = Field(None, max_length=255)

    @field_validator("name", mode="before")
    @classmethod
    def _sanitize_name(cls, value: Any) -> Any:
        return strip_tags(value) if isinstance(value, str) else value

    @field_validator("email", mode="before")
    @classmethod
    def _sanitize_email(cls, value: Any) -> Any:
        return _clean_email(value)


class ConversationCreatedEvent(_EventModel):
    event: Literal["conversation_created"]
    id: int = Field(..., ge=1)
    account_id: int = Field(..., ge=1)
    inbox_id: int = Field(..., ge=1)
    contact_id: int = Field(..., ge=1)
    status: ConversationStatus
    created_at: datetime
    contact: ContactPayload
    assignee: AssigneePayload | None = None
    team: TeamPayload | None = None
    labels: list[str] = Field(default_factory=list)

    @field_validator("labels")
    @classmethod
    def _label_length(cls, value: list[str]) -> list[str]:
        if any(len(label) > 100 for label in value):
            raise ValueError("Label cannot exceed 100 characters")
        return value


class MessageCreatedEvent(_EventModel):
    event: Literal["message_created"]
    id: int = Field(..., ge=1)
    conversation_id: int = Field(..., ge=1)
    account_id: int = Field(..., ge=1)
    content: str = Field(..., max_length=10000)
    message_type: Literal["incoming", "outgoing", "activity"]
    content_type: Literal[
        "text", "image", "video", "audio", "file", "location", "fallback"
    ]
    created_at: datetime
    sender: SenderPayload
    private: bool = False

    @field_validator("content", mode="before")
    @classmethod
    def _sanitize_content(cls, value: Any) -> Any:
        return strip_tags(value) if isinstance(value, str) else value


class ConversationStatusChangedEvent(_EventModel):
    event: Literal["conversation_status_changed"]
    id: int | None = Field(None, ge=1)
    conversation_id: int | None = Field(None, ge=1)
    account_id: int = Field(..., ge=1)
    status: ConversationStatus
    previous_status: ConversationStatus | None = None
    changed_at: datetime
    assignee: AssigneePayload | None = None

    @model_validator(mode="after")
    def _requires_conversation_reference(self) -> ConversationStatusChangedEvent:
        if self.id is None and self.conversation_id is None:
            raise ValueError("id or conversation_id is required")
        return self

    @property
    def conversation_ref(self) -> int:
        return self.conversation_id or self.id  # type: ignore[return-value]


EVENT_MODELS: dict[EventType, type[_EventModel]] = {
    EventType.CONVERSATION_CREATED: ConversationCreatedEvent,
    EventType.MESSAGE_CREATED: MessageCreatedEvent,
    EventType.CONVERSATION_STATUS_CHANGED: ConversationStatusChangedEvent,
}


def _format_errors(exc: ValidationError) -> dict[str, list[str]]:
    details: dict[str, list[str]] = {}
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "body"
        details.setdefault(location, []).append(str(error.get("msg", "invalid")))
    return details


def validate_event(event_type: EventType, payload: dict[str, Any]) -> _EventModel:
    """Valida o payload contra o modelo do evento.

    Raises:
        WebhookValidationError: Com `details` por campo.
    """
    model = EVENT_MODELS[event_type]
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise WebhookValidationError(
            "Webhook validation failed", details=_format_errors(exc)
        ) from exc


def idempotency_key(payload: dict[str, Any]) -> str | None:
    """Chave de idempotência: o `id` do payload, quando presente."""
    raw = payload.get("id")
    if raw is None or raw == "":
        return None
    return str(raw)


def dedupe_key(event_type: EventType, webhook_id: str) -> str:
    """Chave no store de idempotência.

    O Chatwoot reaproveita o mesmo `id` entre tipos de evento (conversa 100
    e mensagem 100), então a chave carrega o tipo como namespace.
    """
    return f"{event_type}:{webhook_id}"
