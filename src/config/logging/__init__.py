"""Configuração de logging estruturado.

Uso:
    from config.logging import configure_logging, get_logger

    # Na inicialização (bootstrap)
    configure_logging(level="INFO", service_name="agenda-sync")

    # Em qualquer módulo
    logger = get_logger(__name__)
    logger.info("job_completed", extra={"job_id": "job_abc"})

Campos obrigatórios em todo log: correlation_id, provider, service, level,
logger, message, asctime.
"""

from config.logging.config import configure_logging, get_logger, log_protection_event
from config.logging.filters import WebhookContextFilter
from config.logging.formatters import (
    FIELD_RENAME_MAP,
    REQUIRED_LOG_FIELDS,
    create_json_formatter,
)

__all__ = [
    "FIELD_RENAME_MAP",
    "REQUIRED_LOG_FIELDS",
    "WebhookContextFilter",
    "configure_logging",
    "create_json_formatter",
    "get_logger",
    "log_protection_event",
]
