"""Roteamento de jobs para o handler do seu tipo."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from utils.errors import ValidationError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from app.domain.job import Job, JobKind
    from app.protocols.job_handler import JobHandlerProtocol


class JobDispatcher:
    """Mapeia JobKind → handler."""

    def __init__(self, handlers: Mapping[JobKind, JobHandlerProtocol]) -> None:
        self._handlers = dict(handlers)

    def register(self, kind: JobKind, handler: JobHandlerProtocol) -> None:
        self._handlers[kind] = handler

    async def dispatch(self, job: Job) -> dict[str, Any]:
        handler = self._handlers.get(job.kind)
        if handler is None:
            # Sem handler não há retentativa que resolva
            raise ValidationError(f"Nenhum handler para jobs do tipo {job.kind.value}")
        return await handler.handle(job)
