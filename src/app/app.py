"""Entrypoint da aplicação agenda-sync.

Este módulo é o ponto de entrada principal do serviço.
Inicializa o bootstrap e expõe a aplicação ASGI (FastAPI).

Uso (produção):
    uvicorn app.app:app --host 0.0.0.0 --port 8080

Uso (desenvolvimento):
    uvicorn app.app:app --reload --host 0.0.0.0 --port 8080

Cloud Run:
    O container deve expor a porta 8080 (padrão do Cloud Run).
"""

from __future__ import annotations

import asyncio
import os
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import create_api_router
from app.bootstrap import get_container, initialize_app, validate_runtime_settings
from app.bootstrap.background import BackgroundTasks
from app.bootstrap.clients import create_async_redis_client, create_firestore_client
from config.logging import get_logger
from config.settings import get_firestore_settings

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from app.bootstrap.dependencies import AppContainer

# Inicializar logging e dependências ANTES de qualquer import que use logger
initialize_app()

logger = get_logger(__name__)

SHUTDOWN_DRAIN_SECONDS = 30.0


async def _seed_firestore_health_doc(firestore_client: object) -> None:
    """Escreve documento mínimo de health para check de readiness."""

    def _write_doc() -> None:
        firestore_client.collection("_health").document("check").set(  # type: ignore[attr-defined]
            {
                "updated_at": datetime.now(UTC).isoformat(),
                "service": "agenda-sync",
            }
        )

    await asyncio.to_thread(_write_doc)


def start_background_work(container: AppContainer) -> BackgroundTasks:
    """Sobe worker da fila e rotinas periódicas de manutenção."""
    tasks = BackgroundTasks()
    queue = container.queue
    queue_settings = queue.settings
    protection_settings = container.protection_settings

    tasks.spawn("queue_worker", queue.run_worker(tasks.stop_event))
    tasks.run_periodic("queue_retry_sweep", queue_settings.retry_sweep_interval_seconds, queue.retry_sweep)
    tasks.run_periodic("queue_cleanup", queue_settings.cleanup_interval_seconds, queue.cleanup)
    tasks.run_periodic(
        "throttle_adjust",
        protection_settings.throttle_adjust_interval_seconds,
        container.protection.adjust_throttles,
    )
    tasks.run_periodic(
        "health_period_reset",
        protection_settings.health_reset_interval_seconds,
        container.protection.reset_health_period,
    )
    tasks.run_periodic(
        "pending_resolution_expiry",
        container.conflict_settings.expiry_sweep_interval_seconds,
        container.pending.expire_pending,
    )
    return tasks


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Gerencia ciclo de vida da aplicação.

    Startup:
    - Valida configurações
    - Inicializa conexões (Redis, Firestore) e o container
    - Sobe worker e rotinas periódicas

    Shutdown:
    - Para o worker e drena jobs em execução
    - Fecha conexões gracefully
    """
    logger.info("app_starting", extra={"service": "agenda-sync"})
    validate_runtime_settings()
    app.state.redis_client = None
    app.state.firestore_client = None

    if os.getenv("REDIS_URL"):
        try:
            app.state.redis_client = create_async_redis_client()
        except Exception as exc:
            logger.warning("redis_client_not_ready", extra={"error_type": type(exc).__name__})

    if get_firestore_settings().enabled:
        try:
            app.state.firestore_client = create_firestore_client()
            await _seed_firestore_health_doc(app.state.firestore_client)
        except Exception as exc:
            logger.warning("firestore_client_not_ready", extra={"error_type": type(exc).__name__})

    if getattr(app.state, "container", None) is None:
        app.state.container = get_container()
    container: AppContainer = app.state.container
    background = start_background_work(container)

    yield

    logger.info("app_shutting_down", extra={"service": "agenda-sync"})
    background.stop_event.set()
    await container.queue.drain(timeout_seconds=SHUTDOWN_DRAIN_SECONDS)
    await background.drain(timeout_seconds=SHUTDOWN_DRAIN_SECONDS)
    redis_client = getattr(app.state, "redis_client", None)
    if redis_client is not None:
        close_async = getattr(redis_client, "aclose", None)
        close_sync = getattr(redis_client, "close", None)
        if callable(close_async):
            await close_async()
        elif callable(close_sync):
            await close_sync()


def create_app(container: AppContainer | None = None) -> FastAPI:
    """Cria e configura a aplicação FastAPI.

    Args:
        container: Container pré-montado (testes); None monta do ambiente.

    Returns:
        Aplicação FastAPI configurada.
    """
    fastapi_app = FastAPI(
        title="agenda-sync",
        description="Sincronização de calendários e reuniões via webhooks",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    fastapi_app.state.container = container

    allowed_origins = [
        origin.strip() for origin in os.getenv("CORS_ALLOWED_ORIGINS", "*").split(",") if origin.strip()
    ]
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Registra todas as rotas
    fastapi_app.include_router(create_api_router())

    logger.info("app_configured", extra={"service": "agenda-sync"})

    return fastapi_app


# Aplicação ASGI exposta para uvicorn
app = create_app()


def main() -> None:
    """Entrypoint para execução direta (desenvolvimento)."""
    import uvicorn

    logger.info("Starting agenda-sync in development mode")
    uvicorn.run(
        "app.app:app",
        host="0.0.0.0",
        port=8080,
        reload=True,
    )


if __name__ == "__main__":
    main()
