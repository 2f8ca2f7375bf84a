"""Bootstrap da aplicação: inicialização e wiring.

Este módulo é o composition root: configura logging, valida settings e
expõe o container com as implementações concretas.

Uso:
    from app.bootstrap import initialize_app, get_container

    # Na inicialização do serviço
    initialize_app()

    # Serviços montados
    container = get_container()
    await container.gateway.handle(inbound)
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import TYPE_CHECKING

from app.observability import get_correlation_id
from config.logging import configure_logging
from config.settings import (
    get_base_settings,
    get_conflict_settings,
    get_dedupe_settings,
    get_firestore_settings,
    get_protection_settings,
    get_queue_settings,
    get_webhook_settings,
)

if TYPE_CHECKING:
    from app.bootstrap.dependencies import AppContainer

# Nome do serviço para logs e métricas
SERVICE_NAME = "agenda_sync"

# Nível de log padrão (pode ser sobrescrito por env)
DEFAULT_LOG_LEVEL = "INFO"
STRICT_VALIDATION_ENVS = {"staging", "production"}

logger = logging.getLogger(__name__)


def initialize_app() -> None:
    """Inicializa a aplicação com todas as configurações necessárias.

    Deve ser chamada uma vez no início do serviço.
    """
    log_level = os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()

    configure_logging(
        level=log_level,
        service_name=SERVICE_NAME,
        correlation_id_getter=get_correlation_id,
    )


def initialize_test_app() -> None:
    """Inicializa a aplicação para testes.

    Configura logging em nível DEBUG sem JSON para facilitar debug.
    """
    configure_logging(
        level="DEBUG",
        service_name=f"{SERVICE_NAME}_test",
        correlation_id_getter=get_correlation_id,
    )


def collect_settings_errors() -> list[str]:
    """Agrega erros de validação de todas as settings, prefixados por domínio."""
    base = get_base_settings()
    errors: list[str] = []
    errors.extend(f"base: {error}" for error in base.validate())
    errors.extend(f"dedupe: {error}" for error in get_dedupe_settings().validate(base))
    errors.extend(f"webhooks: {error}" for error in get_webhook_settings().validate())
    errors.extend(f"queue: {error}" for error in get_queue_settings().validate(base.redis_url))
    errors.extend(f"protection: {error}" for error in get_protection_settings().validate())
    errors.extend(f"conflicts: {error}" for error in get_conflict_settings().validate_strategy())

    gcp_project = base.gcp_project or os.getenv("GCLOUD_PROJECT", "")
    errors.extend(f"firestore: {error}" for error in get_firestore_settings().validate(gcp_project))
    return errors


def validate_runtime_settings() -> None:
    """Valida settings obrigatórias no startup.

    Em `staging`/`production` falha rápido para impedir boot inválido.
    Em `development`/`test` mantém alerta sem bloquear execução local.
    """
    environment = os.getenv("ENVIRONMENT", "development").lower()
    strict_mode = environment in STRICT_VALIDATION_ENVS
    errors = collect_settings_errors()

    if not errors:
        logger.info(
            "settings_validated",
            extra={"component": "bootstrap", "result": "ok", "environment": environment},
        )
        return

    logger.warning(
        "settings_validation_failed",
        extra={
            "component": "bootstrap",
            "result": "failed",
            "environment": environment,
            "error_count": len(errors),
            "errors": errors,
        },
    )
    if strict_mode:
        details = "\n".join(f"- {error}" for error in errors)
        raise RuntimeError(f"Configuração inválida para {environment}:\n{details}")


# ──────────────────────────────────────────────────────────────────────────────
# Container (lazy initialization com cache)
# ──────────────────────────────────────────────────────────────────────────────


@lru_cache(maxsize=1)
def get_container() -> AppContainer:
    """Obtém o container do processo (singleton).

    Returns:
        AppContainer configurado conforme env
    """
    from app.bootstrap.dependencies import build_container

    return build_container()
