"""Transformações de negócio executadas pelos workers.

Cada handler recebe o QueuedJob e sincroniza Chatwoot -> Krayin usando
o store de mapeamentos. Todos são seguros para reexecução: registros já
mapeados não geram nova chamada ao CRM.

Namespaces do MappingStore:
    contact        chatwoot_contact_id      -> krayin_lead_id
    conversation   chatwoot_conversation_id -> krayin_lead_id, status, contagem
    activity       chatwoot_message_id      -> krayin_activity_id
    stage_change   webhook_id               -> estágio aplicado
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from app.domain.envelope import EventType
from utils.errors import CollaboratorUnavailableError, MissingParentError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from app.domain.job import QueuedJob
    from app.protocols.audit_store import SecurityAuditStoreProtocol
    from app.protocols.http_client import ChatClientProtocol, CrmClientProtocol
    from app.protocols.mapping_store import MappingStoreProtocol
    from config.settings.krayin import KrayinSettings

logger = logging.getLogger(__name__)

CONTACT = "contact"
CONVERSATION = "conversation"
ACTIVITY = "activity"
STAGE_CHANGE = "stage_change"

STAGE_NAMES = {
    "open": "In Progress",
    "resolved": "Follow-up",
    "pending": "Waiting",
    "snoozed": "Waiting",
}


def build_lead_data(contact: dict[str, Any], settings: KrayinSettings) -> dict[str, Any]:
    """Payload de criação de lead no Krayin."""
    email = contact.get("email")
    phone = contact.get("phone_number")
    return {
        "title": f"{contact['name']} - Consulta via Chat",
        "person": {
            "name": contact["name"],
            "emails": [email] if email else [],
            "contact_numbers": [phone] if phone else [],
        },
        "lead_pipeline_id": settings.default_pipeline_id,
        "lead_pipeline_stage_id": settings.default_stage_id,
        "custom_fields": {
            "source": "Chatwoot",
            "chatwoot_contact_id": contact["id"],
            "created_via_webhook": True,
        },
    }


def _activity_title(sender: dict[str, Any], message_type: str) -> str:
    name = sender.get("name", "")
    if message_type == "incoming":
        return f"Mensagem recebida de {name}"
    if message_type == "outgoing":
        return f"Mensagem enviada para {name}"
    return f"Atividade: {name}"


def _activity_description(payload: dict[str, Any]) -> str:
    sender = payload.get("sender") or {}
    lines = [
        f"Tipo: {payload['message_type']}",
        f"Remetente: {sender.get('name', '')} ({sender.get('type', '')})",
        f"Conteúdo: {payload['content_type']}",
        "",
    ]
    if payload["content_type"] == "text":
        lines.append(f"Mensagem: {payload.get('content', '')}")
    else:
        lines.append("Arquivo anexado")
    return "\n".join(lines)


def _activity_type(message_type: str) -> str:
    if message_type == "incoming":
        return "call"
    if message_type == "outgoing":
        return "email"
    return "note"


def build_activity_data(payload: dict[str, Any]) -> dict[str, Any]:
    """Payload de atividade do Krayin para uma mensagem do Chatwoot."""
    sender = payload.get("sender") or {}
    return {
        "title": _activity_title(sender, payload["message_type"]),
        "description": _activity_description(payload),
        "activity_type": _activity_type(payload["message_type"]),
        "date": payload.get("created_at"),
        "custom_fields": {
            "chatwoot_message_id": payload["id"],
            "chatwoot_conversation_id": payload["conversation_id"],
            "sender_name": sender.get("name"),
            "sender_type": sender.get("type"),
            "message_type": payload["message_type"],
            "content_type": payload["content_type"],
            "is_private": bool(payload.get("private", False)),
        },
    }


def _required_id(body: dict[str, Any], what: str) -> int:
    raw = body.get("id")
    if raw is None:
        raise CollaboratorUnavailableError(f"krayin returned no {what} id")
    return int(raw)


class CrmSyncHandlers:
    """Handlers por tipo de evento.

    Args:
        crm: Cliente do Krayin
        mappings: Store de mapeamentos
        krayin_settings: Pipeline e estágios
        chat: Cliente do Chatwoot (recupera conversas ainda não mapeadas)
        audit_store: Trilha de auditoria (webhook_processed)
        clock: Relógio em unix seconds
    """

    def __init__(
        self,
        *,
        crm: CrmClientProtocol,
        mappings: MappingStoreProtocol,
        krayin_settings: KrayinSettings,
        chat: ChatClientProtocol | None = None,
        audit_store: SecurityAuditStoreProtocol | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._crm = crm
        self._mappings = mappings
        self._settings = krayin_settings
        self._chat = chat
        self._audit = audit_store
        self._clock = clock

    def as_mapping(self) -> dict[EventType, Callable[[QueuedJob], Awaitable[None]]]:
        return {
            EventType.CONVERSATION_CREATED: self.conversation_created,
            EventType.MESSAGE_CREATED: self.message_created,
            EventType.CONVERSATION_STATUS_CHANGED: self.conversation_status_changed,
        }

    def _now_iso(self) -> str:
        if self._clock is None:
            return datetime.now(UTC).isoformat()
        return datetime.fromtimestamp(self._clock(), UTC).isoformat()

    def stage_for_status(self, status: str) -> tuple[int, str]:
        """Estágio do Krayin (id, nome) para o status da conversa."""
        stage_ids = {
            "open": self._settings.stage_in_progress_id,
            "resolved": self._settings.stage_follow_up_id,
            "pending": self._settings.stage_waiting_id,
            "snoozed": self._settings.stage_waiting_id,
        }
        return stage_ids[status], STAGE_NAMES[status]

    async def _audit_processed(self, job: QueuedJob, **fields: Any) -> None:
        if self._audit is None:
            return
        await self._audit.append(
            {
                "event_type": "webhook_processed",
                "webhook_type": str(job.event_type),
                "webhook_id": job.webhook_id,
                "job_id": job.job_id,
                "attempt": job.attempt,
                **fields,
            }
        )

    async def conversation_created(self, job: QueuedJob) -> None:
        payload = job.payload
        contact = payload["contact"]
        conversation_id = str(payload["id"])
        contact_key = str(contact["id"])

        existing = await self._mappings.get(CONTACT, contact_key)
        if existing is not None:
            lead_id = int(existing["krayin_lead_id"])
            logger.info(
                "contact_mapping_reused",
                extra={"webhook_id": job.webhook_id, "krayin_lead_id": lead_id},
            )
        else:
            lead = await self._crm.create_lead(build_lead_data(contact, self._settings))
            lead_id = _required_id(lead, "lead")
            await self._mappings.upsert(
                CONTACT,
                contact_key,
                {
                    "krayin_lead_id": lead_id,
                    "contact_name": contact["name"],
                    "contact_email": contact.get("email"),
                    "contact_phone": contact.get("phone_number"),
                    "created_at": self._now_iso(),
                },
            )

        if await self._mappings.get(CONVERSATION, conversation_id) is None:
            await self._mappings.upsert(
                CONVERSATION,
                conversation_id,
                {
                    "krayin_lead_id": lead_id,
                    "status": payload.get("status"),
                    "created_at": payload.get("created_at"),
                    "message_count": 0,
                },
            )

        await self._audit_processed(
            job,
            krayin_lead_id=lead_id,
            chatwoot_contact_id=contact["id"],
            chatwoot_conversation_id=payload["id"],
        )
        logger.info(
            "conversation_created_synced",
            extra={
                "webhook_id": job.webhook_id,
                "krayin_lead_id": lead_id,
                "contact_reused": existing is not None,
            },
        )

    async def _resolve_conversation(self, conversation_id: int) -> dict[str, Any]:
        """Mapeamento da conversa; tenta derivar via API do Chatwoot.

        Raises:
            MissingParentError: Conversa ainda sem lead (evento fora de ordem).
        """
        key = str(conversation_id)
        mapping = await self._mappings.get(CONVERSATION, key)
        if mapping is not None:
            return mapping

        if self._chat is not None:
            conversation = await self._chat.get_conversation(conversation_id)
            sender = (conversation.get("meta") or {}).get("sender") or {}
            contact_id = sender.get("id") or conversation.get("contact_id")
            contact = (
                await self._mappings.get(CONTACT, str(contact_id)) if contact_id else None
            )
            if contact is not None:
                logger.info(
                    "conversation_mapping_recovered",
                    extra={"conversation_id": conversation_id, "contact_id": contact_id},
                )
                return await self._mappings.upsert(
                    CONVERSATION,
                    key,
                    {
                        "krayin_lead_id": int(contact["krayin_lead_id"]),
                        "status": conversation.get("status"),
                        "created_at": self._now_iso(),
                        "message_count": 0,
                    },
                )

        raise MissingParentError(f"conversation {conversation_id} not mapped yet")

    async def message_created(self, job: QueuedJob) -> None:
        payload = job.payload
        message_key = str(payload["id"])

        if await self._mappings.get(ACTIVITY, message_key) is not None:
            logger.info(
                "activity_already_synced",
                extra={"webhook_id": job.webhook_id, "message_id": payload["id"]},
            )
            return

        conversation = await self._resolve_conversation(int(payload["conversation_id"]))
        lead_id = int(conversation["krayin_lead_id"])
        activity = await self._crm.create_activity(lead_id, build_activity_data(payload))
        activity_id = _required_id(activity, "activity")
        sender = payload.get("sender") or {}

        await self._mappings.upsert(
            ACTIVITY,
            message_key,
            {
                "krayin_activity_id": activity_id,
                "krayin_lead_id": lead_id,
                "message_type": payload["message_type"],
                "content_type": payload["content_type"],
                "sender_name": sender.get("name"),
                "sender_type": sender.get("type"),
                "created_at": payload.get("created_at"),
            },
        )
        await self._mappings.upsert(
            CONVERSATION,
            str(payload["conversation_id"]),
            {
                "message_count": int(conversation.get("message_count") or 0) + 1,
                "last_activity_at": payload.get("created_at"),
            },
        )
        await self._audit_processed(
            job,
            krayin_lead_id=lead_id,
            krayin_activity_id=activity_id,
            sender_type=sender.get("type"),
        )
        logger.info(
            "message_created_synced",
            extra={
                "webhook_id": job.webhook_id,
                "krayin_lead_id": lead_id,
                "krayin_activity_id": activity_id,
            },
        )

    async def conversation_status_changed(self, job: QueuedJob) -> None:
        payload = job.payload
        conversation_ref = int(payload.get("conversation_id") or payload["id"])
        status = payload["status"]
        previous_status = payload.get("previous_status")
        changed_at = payload.get("changed_at")
        # O id do evento pode ser o da conversa: sozinho não distingue mudanças.
        change_key = f"{conversation_ref}:{status}:{changed_at or job.webhook_id}"

        if await self._mappings.get(STAGE_CHANGE, change_key) is not None:
            logger.info(
                "stage_change_already_applied",
                extra={"webhook_id": job.webhook_id, "conversation_id": conversation_ref},
            )
            return

        conversation = await self._resolve_conversation(conversation_ref)
        lead_id = int(conversation["krayin_lead_id"])
        stage_id, stage_name = self.stage_for_status(status)
        previous_stage = STAGE_NAMES.get(previous_status) if previous_status else None

        await self._crm.update_lead_stage(lead_id, stage_id)
        await self._mappings.upsert(CONVERSATION, str(conversation_ref), {"status": status})
        await self._mappings.upsert(
            STAGE_CHANGE,
            change_key,
            {
                "krayin_lead_id": lead_id,
                "chatwoot_conversation_id": conversation_ref,
                "previous_stage": previous_stage,
                "new_stage": stage_name,
                "previous_status": previous_status,
                "new_status": status,
                "changed_at": changed_at or self._now_iso(),
            },
        )
        await self._audit_processed(
            job,
            krayin_lead_id=lead_id,
            previous_stage=previous_stage,
            new_stage=stage_name,
        )
        logger.info(
            "conversation_status_synced",
            extra={
                "webhook_id": job.webhook_id,
                "krayin_lead_id": lead_id,
                "previous_stage": previous_stage,
                "new_stage": stage_name,
            },
        )
