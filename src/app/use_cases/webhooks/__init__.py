"""Use cases do pipeline de webhooks do Chatwoot."""

from .executor import JobExecutor, backoff_delay, is_transient
from .handlers import CrmSyncHandlers
from .intake import WebhookIntakeDispatcher
from .status import WebhookStatusQuery
from .worker import WorkerPool

__all__ = [
    # Intake (caminho HTTP)
    "WebhookIntakeDispatcher",
    "WebhookStatusQuery",
    # Execução assíncrona
    "CrmSyncHandlers",
    "JobExecutor",
    "WorkerPool",
    "backoff_delay",
    "is_transient",
]
