"""Gateway de webhooks: recebe, autentica, normaliza e enfileira.

Fluxo por entrega:
    1. webhookId gerado e vinculado ao contexto de log
    2. Verificação de autenticidade (401 + evento de segurança)
    3. Handshake respondido sem enfileirar (Graph, Zoom)
    4. Rate limit por provider e IP de origem (429 + retryAfter)
    5. Normalização (400 para payload malformado)
    6. Integração resolvida pela chave de correlação (desconhecida → ignorada)
    7. Um job por ChangeEvent; a resposta nunca espera o processamento
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from api.normalizers import classify_priority, job_kind_for, normalize
from api.verifiers import verify_webhook
from app.domain.change_event import Provider
from app.domain.job import Job, JobKind, MeetingEventJobPayload, SyncJobPayload
from app.observability import bind_webhook_context, generate_webhook_id, reset_webhook_context
from app.protocols.monitoring import MonitoringEventType
from utils.errors import InfrastructureError, ValidationError

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from api.verifiers import VerificationResult
    from app.domain.change_event import ChangeEvent
    from app.protocols.integration_directory import (
        Integration,
        IntegrationDirectoryProtocol,
    )
    from app.protocols.monitoring import MonitoringSinkProtocol
    from app.protocols.rate_limiter import RateLimiterProtocol
    from app.queue.job_queue import PriorityJobQueue
    from config.settings.webhooks import WebhookSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GatewayResult:
    """Resposta HTTP produzida pelo gateway."""

    status_code: int
    body: Any
    media_type: str = "application/json"
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class InboundWebhook:
    """Requisição recebida, já lida pela rota."""

    provider: str
    headers: Mapping[str, str]
    raw_body: bytes
    query: Mapping[str, str] = field(default_factory=dict)
    source_ip: str = "unknown"


def _timestamp() -> str:
    return datetime.now(UTC).isoformat()


def _envelope(success: bool, webhook_id: str, message: str, **extra: Any) -> dict[str, Any]:
    return {
        "success": success,
        "webhookId": webhook_id,
        "message": message,
        "timestamp": _timestamp(),
        **extra,
    }


class WebhookGateway:
    """Borda de entrada dos webhooks de todos os providers.

    Args:
        queue: Fila priorizada (enqueue nunca bloqueia em workers)
        rate_limiter: Janela deslizante por provider e origem
        integrations: Diretório de integrações por chave de correlação
        monitoring: Recebe violações de segurança
        settings: Segredos e limites de entrada
    """

    def __init__(
        self,
        *,
        queue: PriorityJobQueue,
        rate_limiter: RateLimiterProtocol,
        integrations: IntegrationDirectoryProtocol,
        monitoring: MonitoringSinkProtocol,
        settings: WebhookSettings,
        verifier: Callable[..., VerificationResult] = verify_webhook,
    ) -> None:
        self._queue = queue
        self._rate_limiter = rate_limiter
        self._integrations = integrations
        self._monitoring = monitoring
        self._settings = settings
        self._verifier = verifier

    async def handle(self, inbound: InboundWebhook) -> GatewayResult:
        webhook_id = generate_webhook_id()
        tokens = bind_webhook_context(webhook_id, inbound.provider)
        try:
            return await self._handle(webhook_id, inbound)
        except Exception:
            logger.exception("webhook_processing_error", extra={"provider": inbound.provider})
            return GatewayResult(500, _envelope(False, webhook_id, "Internal error"))
        finally:
            reset_webhook_context(tokens)

    async def _handle(self, webhook_id: str, inbound: InboundWebhook) -> GatewayResult:
        provider = Provider.parse(inbound.provider)
        if provider is None:
            logger.warning("webhook_unknown_provider", extra={"provider": inbound.provider})
            return GatewayResult(400, _envelope(False, webhook_id, "Unsupported provider"))

        verification = self._verifier(
            provider,
            inbound.headers,
            inbound.raw_body,
            query=inbound.query,
            settings=self._settings,
        )
        if not verification.ok:
            await self._report_violation(webhook_id, provider, verification.reason, inbound.source_ip)
            return GatewayResult(401, _envelope(False, webhook_id, "Invalid signature"))

        if verification.malformed:
            logger.warning(
                "webhook_payload_invalid",
                extra={"provider": provider.value, "error": verification.reason},
            )
            return GatewayResult(400, _envelope(False, webhook_id, "Invalid payload"))

        if verification.is_handshake:
            logger.info("webhook_handshake_answered", extra={"provider": provider.value})
            return GatewayResult(
                200,
                verification.challenge_response,
                media_type=verification.challenge_media_type,
            )

        limited = await self._check_rate_limit(webhook_id, provider, inbound.source_ip)
        if limited is not None:
            return limited

        try:
            events = normalize(provider, inbound.headers, inbound.raw_body)
        except ValidationError as exc:
            logger.warning(
                "webhook_payload_invalid",
                extra={"provider": provider.value, "error": str(exc)},
            )
            return GatewayResult(400, _envelope(False, webhook_id, "Invalid payload"))

        if not events:
            return GatewayResult(
                200,
                _envelope(True, webhook_id, "No actionable change", jobsQueued=0),
            )

        try:
            job_ids = await self._enqueue_events(webhook_id, events)
        except InfrastructureError as exc:
            logger.error(
                "webhook_enqueue_failed",
                extra={"provider": provider.value, "error_type": type(exc).__name__},
            )
            return GatewayResult(500, _envelope(False, webhook_id, "Queue unavailable"))

        logger.info(
            "webhook_accepted",
            extra={
                "provider": provider.value,
                "events": len(events),
                "jobs_queued": len(job_ids),
                "payload_size": len(inbound.raw_body),
            },
        )
        message = "Webhook queued for processing" if job_ids else "Webhook acknowledged"
        return GatewayResult(200, _envelope(True, webhook_id, message, jobsQueued=len(job_ids)))

    async def _report_violation(
        self,
        webhook_id: str,
        provider: Provider,
        reason: str,
        source_ip: str,
    ) -> None:
        logger.warning(
            "webhook_verification_failed",
            extra={"provider": provider.value, "reason": reason},
        )
        await self._monitoring.record(
            MonitoringEventType.SECURITY_VIOLATION,
            {
                "provider": provider.value,
                "reason": reason,
                "source_ip": source_ip,
                "webhook_id": webhook_id,
            },
        )

    async def _check_rate_limit(
        self,
        webhook_id: str,
        provider: Provider,
        source_ip: str,
    ) -> GatewayResult | None:
        key = f"webhook:{provider.value}:{source_ip}"
        try:
            decision = await self._rate_limiter.check(
                key,
                self._settings.inbound_limit(provider.value),
                self._settings.rate_limit_window_seconds,
            )
        except InfrastructureError as exc:
            # Limiter indisponível não derruba a ingestão
            logger.warning(
                "webhook_rate_limiter_unavailable",
                extra={"provider": provider.value, "error_type": type(exc).__name__},
            )
            return None

        if decision.allowed:
            return None

        retry_after = max(1, int(decision.reset_after_seconds + 0.999))
        logger.warning(
            "webhook_rate_limited",
            extra={"provider": provider.value, "retry_after": retry_after},
        )
        return GatewayResult(
            429,
            _envelope(False, webhook_id, "Rate limit exceeded", retryAfter=retry_after),
            headers={"Retry-After": str(retry_after)},
        )

    async def _enqueue_events(self, webhook_id: str, events: list[ChangeEvent]) -> list[str]:
        job_ids: list[str] = []
        for event in events:
            kind = job_kind_for(event.provider)
            integration: Integration | None = None
            if kind == JobKind.SYNC:
                integration = await self._integrations.resolve(
                    event.provider.value,
                    event.raw_correlation_id,
                )
                if integration is None:
                    logger.info(
                        "webhook_unknown_channel",
                        extra={"provider": event.provider.value, "change_kind": event.change_kind.value},
                    )
                    continue

            job = Job(
                payload=build_payload(event, integration),
                priority=classify_priority(event),
                max_attempts=self._queue.settings.max_attempts,
                webhook_id=webhook_id,
            )
            job_ids.append(await self._queue.enqueue(job))
        return job_ids


def build_payload(
    event: ChangeEvent,
    integration: Integration | None,
) -> SyncJobPayload | MeetingEventJobPayload:
    """Payload tipado do job derivado do evento."""
    if job_kind_for(event.provider) == JobKind.MEETING_EVENT:
        return MeetingEventJobPayload(
            provider=event.provider,
            meeting_id=event.external_id,
            event_type=event.event_type,
            fingerprint=event.fingerprint,
            event_data=dict(event.details),
        )
    if integration is None:
        raise ValidationError("Integração obrigatória para job de sync")
    return SyncJobPayload(
        provider=event.provider,
        external_id=event.external_id,
        change_kind=event.change_kind,
        correlation_key=event.raw_correlation_id,
        fingerprint=event.fingerprint,
        integration_id=integration.integration_id,
        user_id=integration.user_id,
        resource_uri=event.resource_uri,
    )


__all__ = ["GatewayResult", "InboundWebhook", "WebhookGateway", "build_payload"]
