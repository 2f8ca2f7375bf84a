"""Configuração centralizada de logging.

Funções para configurar logging estruturado JSON com:
- Campos obrigatórios (correlation_id, provider, service, level, logger, message)
- Formatação padronizada
- Níveis configuráveis por ambiente

Uso:
    from config.logging import configure_logging, get_logger

    configure_logging(level="INFO", service_name="agenda-sync")
    logger = get_logger(__name__)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from config.logging.filters import WebhookContextFilter
from config.logging.formatters import create_json_formatter

if TYPE_CHECKING:
    from collections.abc import Callable

VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

DEFAULT_SERVICE_NAME = "agenda-sync"

# Eventos de proteção que indicam degradação (logados como WARNING)
_WARNING_PROTECTION_EVENTS = frozenset(
    {
        "circuit_opened",
        "request_blocked",
        "rate_limited",
        "security_violation",
        "bypass_used",
    }
)


def configure_logging(
    level: str = "INFO",
    service_name: str = DEFAULT_SERVICE_NAME,
    correlation_id_getter: Callable[[], str] | None = None,
    provider_getter: Callable[[], str] | None = None,
) -> None:
    """Configura logging JSON estruturado para o serviço.

    Deve ser chamada uma vez na inicialização do serviço (app/bootstrap/).

    Args:
        level: Nível de log (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        service_name: Nome do serviço para identificação nos logs.
        correlation_id_getter: Retorna o correlation_id do contexto atual.
        provider_getter: Retorna o provider do contexto atual.

    Raises:
        ValueError: Se o nível de log for inválido.
    """
    level_upper = level.upper()
    if level_upper not in VALID_LOG_LEVELS:
        raise ValueError(
            f"Nível de log inválido: {level}. "
            f"Válidos: {', '.join(sorted(VALID_LOG_LEVELS))}"
        )

    handler = logging.StreamHandler()
    handler.setLevel(level_upper)
    handler.setFormatter(create_json_formatter())
    handler.addFilter(
        WebhookContextFilter(service_name, correlation_id_getter, provider_getter)
    )

    root = logging.getLogger()
    root.setLevel(level_upper)
    # Substituir handlers existentes para evitar duplicação
    root.handlers = [handler]


def get_logger(name: str) -> logging.Logger:
    """Retorna logger para o módulo especificado.

    O filter injeta automaticamente service, provider e correlation_id.
    """
    return logging.getLogger(name)


def log_protection_event(
    logger: logging.Logger,
    event_type: str,
    *,
    provider: str | None = None,
    **data: object,
) -> None:
    """Log padronizado de evento da camada de proteção/gateway.

    Eventos de degradação (breaker aberto, bloqueio, rate limit, violação de
    segurança, uso de bypass) saem em WARNING; os demais em INFO.

    Args:
        logger: Logger instance.
        event_type: Tipo do evento (ex: "circuit_opened", "webhook_accepted").
        provider: Provider envolvido, quando houver.
        **data: Campos adicionais (sem tokens ou payload bruto).

    Exemplo:
        log_protection_event(logger, "circuit_opened", provider="zoom", failures=5)
    """
    extra: dict[str, object] = {"protection_event": event_type, **data}
    if provider:
        extra["provider"] = provider
    level = logging.WARNING if event_type in _WARNING_PROTECTION_EVENTS else logging.INFO
    logger.log(level, "protection_%s", event_type, extra=extra)
