"""Registro de métricas via structured logging.

As métricas são registradas como logs estruturados e agregadas depois
(BigQuery, Cloud Logging metrics, etc.).

Métricas suportadas:
- Latência: tempo de execução por componente/operação (ex: chamada ao provider)
- Job outcome: counter por tipo/prioridade/resultado
- Breaker transition: counter de transições de estado por provider
- Queue depth: gauge de profundidade por prioridade

Uso:
    from app.observability.metrics import record_latency, record_job_outcome

    start = time.perf_counter()
    # ... operação ...
    record_latency("protection", "google_calendar.get_event", (time.perf_counter() - start) * 1000)
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


def record_latency(
    component: str,
    operation: str,
    latency_ms: float,
    correlation_id: str | None = None,
) -> None:
    """Registra latência de operação.

    Args:
        component: Nome do componente (ex: "protection", "gateway")
        operation: Nome da operação (ex: "zoom.get_event")
        latency_ms: Latência em milissegundos
        correlation_id: ID de correlação para rastreamento
    """
    extra: dict[str, object] = {
        "metric_type": "latency",
        "component": component,
        "operation": operation,
        "latency_ms": round(latency_ms, 2),
    }
    if correlation_id:
        extra["correlation_id"] = correlation_id
    logger.info("metric_latency", extra=extra)


def record_job_outcome(
    kind: str,
    priority: str,
    outcome: str,
    attempts: int,
    duration_ms: float | None = None,
) -> None:
    """Registra resultado de processamento de job.

    Args:
        kind: sync | meeting_event
        priority: high | medium | low
        outcome: completed | retry | failed
        attempts: Tentativas consumidas até aqui
        duration_ms: Duração da execução
    """
    extra: dict[str, object] = {
        "metric_type": "job_outcome",
        "component": "job_queue",
        "job_kind": kind,
        "priority": priority,
        "outcome": outcome,
        "attempts": attempts,
    }
    if duration_ms is not None:
        extra["duration_ms"] = round(duration_ms, 2)
    logger.info("metric_job_outcome", extra=extra)


def record_breaker_transition(provider: str, from_state: str, to_state: str) -> None:
    """Registra transição de estado do circuit breaker."""
    logger.info(
        "metric_breaker_transition",
        extra={
            "metric_type": "breaker_transition",
            "component": "protection",
            "provider": provider,
            "from_state": from_state,
            "to_state": to_state,
        },
    )


def record_queue_depth(depth: dict[str, int], in_flight: int) -> None:
    """Registra profundidade da fila por prioridade."""
    logger.info(
        "metric_queue_depth",
        extra={
            "metric_type": "queue_depth",
            "component": "job_queue",
            "in_flight": in_flight,
            **{f"depth_{priority}": count for priority, count in depth.items()},
        },
    )
