"""Contrato de handler de job por tipo."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from app.domain.job import Job


@runtime_checkable
class JobHandlerProtocol(Protocol):
    """Processa um job; exceções sinalizam falha (classificada pela fila)."""

    async def handle(self, job: Job) -> dict[str, Any]:
        """Executa o efeito do job e retorna o resultado registrado."""
        ...
