"""Observabilidade: contexto de correlação e métricas via logs estruturados.

Uso:
    from app.observability import get_correlation_id, generate_webhook_id
    from app.observability import record_latency, record_job_outcome
"""

from app.observability.correlation import (
    bind_webhook_context,
    generate_webhook_id,
    get_correlation_id,
    get_current_provider,
    reset_correlation_id,
    reset_webhook_context,
    set_correlation_id,
)
from app.observability.metrics import (
    record_breaker_transition,
    record_job_outcome,
    record_latency,
    record_queue_depth,
)

__all__ = [
    "bind_webhook_context",
    "generate_webhook_id",
    "get_correlation_id",
    "get_current_provider",
    "record_breaker_transition",
    "record_job_outcome",
    "record_latency",
    "record_queue_depth",
    "reset_correlation_id",
    "reset_webhook_context",
    "set_correlation_id",
]
