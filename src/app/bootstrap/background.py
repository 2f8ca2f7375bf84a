"""Tasks de fundo do processo: worker da fila e rotinas periódicas."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Coroutine

logger = logging.getLogger(__name__)


class BackgroundTasks:
    """Conjunto de tasks vivas durante o ciclo de vida da aplicação.

    Todas compartilham um `stop_event`; `drain` sinaliza parada, aguarda até
    o timeout e cancela o que restar.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()
        self.stop_event = asyncio.Event()

    @property
    def active(self) -> int:
        return len(self._tasks)

    def spawn(self, name: str, coroutine: Coroutine[Any, Any, None]) -> asyncio.Task[Any]:
        task = asyncio.create_task(coroutine, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        logger.info("background_task_started", extra={"task": name, "active_tasks": len(self._tasks)})
        return task

    def run_periodic(
        self,
        name: str,
        interval_seconds: float,
        fn: Callable[[], Awaitable[Any]],
    ) -> asyncio.Task[Any]:
        """Executa `fn` a cada intervalo até o stop_event."""
        return self.spawn(name, self._periodic(name, interval_seconds, fn))

    async def _periodic(
        self,
        name: str,
        interval_seconds: float,
        fn: Callable[[], Awaitable[Any]],
    ) -> None:
        while not self.stop_event.is_set():
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(self.stop_event.wait(), timeout=interval_seconds)
            if self.stop_event.is_set():
                return
            try:
                result = await fn()
            except Exception as exc:
                # Uma rodada com falha não derruba a rotina
                logger.error(
                    "periodic_task_failed",
                    extra={"task": name, "error_type": type(exc).__name__, "error": str(exc)},
                )
                continue
            logger.debug("periodic_task_ran", extra={"task": name, "result": result})

    def _on_task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        with contextlib.suppress(asyncio.CancelledError):
            exc = task.exception()
            if exc is not None:
                logger.error(
                    "background_task_failed",
                    extra={
                        "task": task.get_name(),
                        "error_type": type(exc).__name__,
                        "active_tasks": len(self._tasks),
                    },
                )

    async def drain(self, timeout_seconds: float = 30.0) -> None:
        """Sinaliza parada e aguarda tasks pendentes durante o shutdown."""
        self.stop_event.set()
        if not self._tasks:
            return

        pending_now = list(self._tasks)
        logger.info(
            "background_tasks_shutdown_wait",
            extra={"pending_tasks": len(pending_now), "timeout_seconds": timeout_seconds},
        )
        _, pending = await asyncio.wait(pending_now, timeout=timeout_seconds)
        if not pending:
            return

        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        logger.warning("background_tasks_shutdown_cancelled", extra={"cancelled_tasks": len(pending)})


__all__ = ["BackgroundTasks"]
