"""Filters de logging para injeção de contexto.

Campos injetados:
- correlation_id: webhookId da entrega em processamento
- provider: provider da entrega/job corrente (quando houver)
- service: Nome do serviço (ex: agenda-sync)

Nunca adicionar payloads brutos de webhook ou tokens nos logs.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable


class WebhookContextFilter(logging.Filter):
    """Injeta correlation_id, provider e service em cada record de log.

    Valores passados explicitamente via `extra` são preservados.

    Args:
        service_name: Nome do serviço para identificação nos logs.
        correlation_id_getter: Função que retorna o correlation_id atual.
        provider_getter: Função que retorna o provider do contexto atual.
    """

    def __init__(
        self,
        service_name: str,
        correlation_id_getter: Callable[[], str] | None = None,
        provider_getter: Callable[[], str] | None = None,
    ) -> None:
        super().__init__()
        self._service_name = service_name
        self._get_correlation_id = correlation_id_getter or (lambda: "")
        self._get_provider = provider_getter or (lambda: "")

    def filter(self, record: logging.LogRecord) -> bool:
        """Enriquece o record sem filtrar nada."""
        existing = getattr(record, "correlation_id", None)
        record.correlation_id = existing if existing else self._get_correlation_id()
        if not getattr(record, "provider", None):
            record.provider = self._get_provider()
        record.service = self._service_name
        return True
