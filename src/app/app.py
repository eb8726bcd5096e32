"""Entrypoint da aplicação ponte-crm.

Inicializa o bootstrap e expõe a aplicação ASGI (FastAPI). O lifespan
sobe o worker pool que drena a fila de jobs e o para no shutdown.

Uso (produção):
    uvicorn app.app:app --host 0.0.0.0 --port 8080

Uso (desenvolvimento):
    uvicorn app.app:app --reload --host 0.0.0.0 --port 8080
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from api.routes import create_api_router
from app.bootstrap import get_webhook_pipeline, initialize_app, validate_runtime_settings
from app.bootstrap.clients import create_async_redis_client
from config.logging import get_logger
from config.settings import get_base_settings, get_queue_settings

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from app.bootstrap.dependencies import WebhookPipeline

# Inicializar logging ANTES de qualquer import que use logger
initialize_app()

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Gerencia ciclo de vida da aplicação.

    Startup:
    - Valida configurações
    - Inicializa Redis (quando configurado) para o readiness
    - Sobe o worker pool

    Shutdown:
    - Para o worker pool aguardando jobs em voo
    - Fecha conexões
    """
    logger.info("app_starting", extra={"service": "ponte-crm"})
    validate_runtime_settings()

    if app.state.pipeline is None:
        app.state.pipeline = get_webhook_pipeline()
    pipeline: WebhookPipeline = app.state.pipeline

    app.state.redis_client = None
    if get_base_settings().redis_url:
        try:
            app.state.redis_client = create_async_redis_client()
        except Exception as exc:
            logger.warning("redis_client_not_ready", extra={"error_type": type(exc).__name__})

    if app.state.start_workers:
        pipeline.worker_pool.start()

    yield

    logger.info("app_shutting_down", extra={"service": "ponte-crm"})
    if pipeline.worker_pool.running:
        await pipeline.worker_pool.stop(
            timeout_seconds=get_queue_settings().shutdown_timeout_seconds
        )
    redis_client = app.state.redis_client
    if redis_client is not None:
        await redis_client.aclose()


def create_app(
    pipeline: WebhookPipeline | None = None,
    *,
    start_workers: bool = True,
) -> FastAPI:
    """Cria e configura a aplicação FastAPI.

    Args:
        pipeline: Pipeline já montado (testes). Sem ele, o lifespan usa
            o singleton de `get_webhook_pipeline`.
        start_workers: Se False, o worker pool não é iniciado.

    Returns:
        Aplicação FastAPI configurada.
    """
    fastapi_app = FastAPI(
        title="ponte-crm",
        description="Ponte de webhooks Chatwoot → Krayin CRM",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    fastapi_app.state.pipeline = pipeline
    fastapi_app.state.start_workers = start_workers
    fastapi_app.state.redis_client = None

    fastapi_app.include_router(create_api_router())

    logger.info("app_configured", extra={"service": "ponte-crm"})

    return fastapi_app


# Aplicação ASGI exposta para uvicorn
app = create_app()


def main() -> None:
    """Entrypoint para execução direta (desenvolvimento)."""
    import uvicorn

    logger.info("Starting ponte-crm in development mode")
    uvicorn.run(
        "app.app:app",
        host="0.0.0.0",
        port=8080,
        reload=True,
    )


if __name__ == "__main__":
    main()
