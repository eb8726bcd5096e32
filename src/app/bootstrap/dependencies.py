"""Wiring do pipeline de webhooks.

Monta dispatcher, executor, worker pool e consultas sobre os stores
criados em dependencies_stores.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from api.connectors.chatwoot import create_chatwoot_client
from api.connectors.krayin import create_krayin_client
from app.bootstrap.dependencies_stores import (
    create_audit_store,
    create_counter_store,
    create_dead_letter_store,
    create_idempotency_store,
    create_job_queue,
    create_mapping_store,
)
from app.services import SecurityEventMonitor, WebhookRateLimiter
from app.use_cases.webhooks import (
    CrmSyncHandlers,
    JobExecutor,
    WebhookIntakeDispatcher,
    WebhookStatusQuery,
    WorkerPool,
)
from config.settings import (
    get_chatwoot_settings,
    get_idempotency_settings,
    get_krayin_settings,
    get_queue_settings,
    get_security_settings,
    get_webhook_security_settings,
)

if TYPE_CHECKING:
    from app.protocols.audit_store import SecurityAuditStoreProtocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WebhookPipeline:
    """Componentes do pipeline compartilhados pelas rotas e pelo lifespan."""

    dispatcher: WebhookIntakeDispatcher
    executor: JobExecutor
    worker_pool: WorkerPool
    status_query: WebhookStatusQuery
    monitor: SecurityEventMonitor


def create_crm_handlers(
    audit_store: SecurityAuditStoreProtocol | None = None,
) -> CrmSyncHandlers:
    """Handlers de negócio com clientes Krayin/Chatwoot reais."""
    chatwoot_settings = get_chatwoot_settings()
    chat = create_chatwoot_client(chatwoot_settings) if chatwoot_settings.base_url else None
    return CrmSyncHandlers(
        crm=create_krayin_client(get_krayin_settings()),
        mappings=create_mapping_store(),
        krayin_settings=get_krayin_settings(),
        chat=chat,
        audit_store=audit_store,
    )


def create_webhook_pipeline() -> WebhookPipeline:
    """Monta o pipeline completo a partir das settings de ambiente."""
    queue_settings = get_queue_settings()
    security = get_security_settings()

    idempotency_store = create_idempotency_store()
    counters = create_counter_store()
    queue = create_job_queue()
    dead_letters = create_dead_letter_store()
    audit_store = create_audit_store()

    monitor = SecurityEventMonitor(
        counters,
        audit_store=audit_store,
        block_duration_seconds=security.block_duration_seconds,
    )
    dispatcher = WebhookIntakeDispatcher(
        webhook_settings=get_webhook_security_settings(),
        idempotency_settings=get_idempotency_settings(),
        queue_settings=queue_settings,
        idempotency_store=idempotency_store,
        job_queue=queue,
        rate_limiter=WebhookRateLimiter(counters, security),
        monitor=monitor,
        audit_store=audit_store,
    )
    executor = JobExecutor(
        queue=queue,
        dead_letters=dead_letters,
        handlers=create_crm_handlers(audit_store).as_mapping(),
        settings=queue_settings,
        audit_store=audit_store,
    )
    worker_pool = WorkerPool(
        queue=queue,
        executor=executor,
        concurrency=queue_settings.worker_concurrency,
        poll_interval_seconds=queue_settings.poll_interval_seconds,
    )
    logger.info("webhook_pipeline_created", extra={"component": "bootstrap"})
    return WebhookPipeline(
        dispatcher=dispatcher,
        executor=executor,
        worker_pool=worker_pool,
        status_query=WebhookStatusQuery(idempotency_store, dead_letters),
        monitor=monitor,
    )
