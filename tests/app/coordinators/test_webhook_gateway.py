"""Testes do gateway de webhooks."""

from __future__ import annotations

import json
import time
from unittest.mock import AsyncMock, MagicMock

import pytest

from api.verifiers.zoom import expected_signature
from app.coordinators.webhooks.gateway import InboundWebhook, WebhookGateway
from app.domain.job import JobKind, JobPriority
from app.infra.monitoring import LogMonitoringSink
from app.infra.rate_limit import MemoryRateLimiter
from app.infra.stores import MemoryIntegrationDirectory, MemoryJobStore
from app.protocols.integration_directory import Integration
from app.protocols.monitoring import MonitoringEventType
from app.queue import JobDispatcher, PriorityJobQueue
from config.settings.webhooks import WebhookSettings
from utils.errors import RedisConnectionError

SETTINGS = WebhookSettings(
    google_channel_token="channel-secret",
    graph_client_state="graph-state",
    zoom_secret_token="zoom-secret",
    caldav_api_key="caldav-key",
)
EVENT_URI = "https://www.googleapis.com/calendar/v3/calendars/primary/events/evt123"


class _FailingJobStore(MemoryJobStore):
    async def add(self, job) -> None:  # type: ignore[no-untyped-def]
        raise RedisConnectionError("redis fora")


def _google_headers(**overrides: str) -> dict[str, str]:
    headers = {
        "X-Goog-Channel-ID": "channel-1",
        "X-Goog-Resource-ID": "evt123",
        "X-Goog-Resource-State": "exists",
        "X-Goog-Resource-URI": EVENT_URI,
        "X-Goog-Message-Number": "7",
        "X-Goog-Channel-Token": "channel-secret",
    }
    headers.update(overrides)
    return headers


def _zoom_request(payload: dict) -> tuple[dict[str, str], bytes]:
    body = json.dumps(payload).encode()
    timestamp = str(int(time.time()))
    return {
        "x-zm-request-timestamp": timestamp,
        "x-zm-signature": expected_signature("zoom-secret", timestamp, body),
    }, body


class _Harness:
    def __init__(
        self,
        *,
        settings: WebhookSettings = SETTINGS,
        store: MemoryJobStore | None = None,
        rate_limiter: object | None = None,
    ) -> None:
        self.store = store or MemoryJobStore()
        self.monitoring = LogMonitoringSink(keep_last=20)
        self.queue = PriorityJobQueue(self.store, JobDispatcher({}), self.monitoring)
        self.integrations = MemoryIntegrationDirectory(
            [
                Integration(
                    integration_id="int-1",
                    user_id="user-1",
                    provider="google_calendar",
                    correlation_key="channel-1",
                )
            ]
        )
        self.gateway = WebhookGateway(
            queue=self.queue,
            rate_limiter=rate_limiter or MemoryRateLimiter(),
            integrations=self.integrations,
            monitoring=self.monitoring,
            settings=settings,
        )

    async def post(
        self,
        provider: str,
        headers: dict[str, str],
        body: bytes = b"",
        query: dict[str, str] | None = None,
    ):
        return await self.gateway.handle(
            InboundWebhook(
                provider=provider,
                headers=headers,
                raw_body=body,
                query=query or {},
                source_ip="203.0.113.7",
            )
        )


class TestAccepted:
    """Entregas válidas viram jobs sem esperar processamento."""

    @pytest.mark.asyncio
    async def test_google_notification_enqueues_sync_job(self) -> None:
        harness = _Harness()

        result = await harness.post("google_calendar", _google_headers())

        assert result.status_code == 200
        assert result.body["success"] is True
        assert result.body["jobsQueued"] == 1
        webhook_id = result.body["webhookId"]
        assert webhook_id.startswith("webhook_")
        [job] = await harness.queue.list_jobs_for_webhook(webhook_id)
        assert job.kind == JobKind.SYNC
        assert job.priority == JobPriority.LOW
        assert job.payload.user_id == "user-1"
        assert job.payload.integration_id == "int-1"
        assert job.payload.external_id == "evt123"

    @pytest.mark.asyncio
    async def test_zoom_meeting_event_is_high_priority(self) -> None:
        harness = _Harness()
        headers, body = _zoom_request(
            {
                "event": "meeting.started",
                "event_ts": 1,
                "payload": {"object": {"id": "85234", "start_time": "2026-03-10T12:00:00Z"}},
            }
        )

        result = await harness.post("zoom", headers, body)

        assert result.status_code == 200
        [job] = await harness.queue.list_jobs_for_webhook(result.body["webhookId"])
        assert job.kind == JobKind.MEETING_EVENT
        assert job.priority == JobPriority.HIGH
        assert job.payload.meeting_id == "85234"

    @pytest.mark.asyncio
    async def test_unknown_channel_is_acknowledged_without_job(self) -> None:
        harness = _Harness()

        result = await harness.post("google_calendar", _google_headers(**{"X-Goog-Channel-ID": "other"}))

        assert result.status_code == 200
        assert result.body["jobsQueued"] == 0
        assert result.body["message"] == "Webhook acknowledged"

    @pytest.mark.asyncio
    async def test_sync_state_has_no_actionable_change(self) -> None:
        harness = _Harness()

        result = await harness.post(
            "google_calendar", _google_headers(**{"X-Goog-Resource-State": "sync"})
        )

        assert result.status_code == 200
        assert result.body["message"] == "No actionable change"


class TestHandshakes:
    @pytest.mark.asyncio
    async def test_graph_validation_token_is_echoed(self) -> None:
        harness = _Harness()

        result = await harness.post("microsoft_graph", {}, query={"validationToken": "abc 123"})

        assert result.status_code == 200
        assert result.body == "abc 123"
        assert result.media_type == "text/plain"

    @pytest.mark.asyncio
    async def test_zoom_url_validation_is_answered(self) -> None:
        harness = _Harness()
        headers, body = _zoom_request(
            {"event": "endpoint.url_validation", "payload": {"plainToken": "plain-1"}}
        )

        result = await harness.post("zoom", headers, body)

        assert result.status_code == 200
        assert result.body["plainToken"] == "plain-1"
        assert len(result.body["encryptedToken"]) == 64
        stats = await harness.queue.get_stats()
        assert stats["health"]["queued"] == 0


class TestRejected:
    """Falhas de autenticidade, formato e limite."""

    @pytest.mark.asyncio
    async def test_unknown_provider_is_400(self) -> None:
        result = await _Harness().post("myspace", {})

        assert result.status_code == 400
        assert result.body["message"] == "Unsupported provider"

    @pytest.mark.asyncio
    async def test_invalid_token_is_401_and_reported(self) -> None:
        harness = _Harness()

        result = await harness.post(
            "google_calendar", _google_headers(**{"X-Goog-Channel-Token": "wrong"})
        )

        assert result.status_code == 401
        [violation] = harness.monitoring.events_of(MonitoringEventType.SECURITY_VIOLATION)
        assert violation["reason"] == "invalid_channel_token"
        assert violation["source_ip"] == "203.0.113.7"

    @pytest.mark.asyncio
    async def test_malformed_payload_is_400(self) -> None:
        harness = _Harness()
        headers, body = _zoom_request({"payload": {}})

        result = await harness.post("zoom", headers, body)

        assert result.status_code == 400
        assert result.body["message"] == "Invalid payload"

    @pytest.mark.asyncio
    async def test_graph_resource_data_not_object_is_400(self) -> None:
        harness = _Harness()
        body = json.dumps(
            {
                "value": [
                    {
                        "subscriptionId": "sub-1",
                        "clientState": "graph-state",
                        "changeType": "updated",
                        "resource": "Users/u1/Events/e1",
                        "resourceData": "oops",
                    }
                ]
            }
        ).encode()

        result = await harness.post("microsoft_graph", {}, body)

        assert result.status_code == 400
        assert result.body["message"] == "Invalid payload"
        assert harness.monitoring.events_of(MonitoringEventType.SECURITY_VIOLATION) == []

    @pytest.mark.parametrize(
        "validation_payload",
        [{}, {"plainToken": ""}, "x", ["plain-1"]],
        ids=["no_token", "empty_token", "string_payload", "list_payload"],
    )
    @pytest.mark.asyncio
    async def test_signed_url_validation_without_token_is_400(self, validation_payload: object) -> None:
        harness = _Harness()
        headers, body = _zoom_request(
            {"event": "endpoint.url_validation", "payload": validation_payload}
        )

        result = await harness.post("zoom", headers, body)

        assert result.status_code == 400
        assert result.body["message"] == "Invalid payload"
        assert harness.monitoring.events_of(MonitoringEventType.SECURITY_VIOLATION) == []

    @pytest.mark.asyncio
    async def test_rate_limit_is_429_with_retry_after(self) -> None:
        settings = WebhookSettings(
            google_channel_token="channel-secret",
            inbound_limits_per_minute={"google_calendar": 1},
        )
        harness = _Harness(settings=settings)

        first = await harness.post("google_calendar", _google_headers())
        second = await harness.post("google_calendar", _google_headers())

        assert first.status_code == 200
        assert second.status_code == 429
        assert second.headers["Retry-After"] == "60"
        assert second.body["retryAfter"] == 60

    @pytest.mark.asyncio
    async def test_rate_limiter_outage_does_not_block_ingestion(self) -> None:
        limiter = AsyncMock()
        limiter.check.side_effect = RedisConnectionError("redis fora")
        harness = _Harness(rate_limiter=limiter)

        result = await harness.post("google_calendar", _google_headers())

        assert result.status_code == 200
        assert result.body["jobsQueued"] == 1

    @pytest.mark.asyncio
    async def test_queue_failure_is_500(self) -> None:
        harness = _Harness(store=_FailingJobStore())

        result = await harness.post("google_calendar", _google_headers())

        assert result.status_code == 500
        assert result.body["message"] == "Queue unavailable"

    @pytest.mark.asyncio
    async def test_unexpected_error_is_500(self) -> None:
        harness = _Harness()
        gateway = WebhookGateway(
            queue=harness.queue,
            rate_limiter=MemoryRateLimiter(),
            integrations=harness.integrations,
            monitoring=harness.monitoring,
            settings=SETTINGS,
            verifier=MagicMock(side_effect=RuntimeError("boom")),
        )

        result = await gateway.handle(
            InboundWebhook(provider="google_calendar", headers=_google_headers(), raw_body=b"")
        )

        assert result.status_code == 500
        assert result.body["success"] is False
