"""Testes do handler de jobs de sincronização."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from app.conflicts import ConflictDetector, ConflictResolver, PendingResolutionService
from app.domain.change_event import ChangeKind, Provider
from app.domain.commitment import Commitment
from app.domain.conflict import ResolutionStrategy
from app.domain.job import Job, JobPriority, MeetingEventJobPayload, SyncJobPayload
from app.infra.monitoring import LogMonitoringSink
from app.infra.rate_limit import MemoryRateLimiter
from app.infra.stores import MemoryCommitmentStore, MemoryDedupeStore, MemoryPendingResolutionStore
from app.protection.bypass_tokens import BypassTokenRegistry
from app.protection.registry import ProviderRegistry
from app.protection.service import OutboundProtectionService
from app.protocols.provider_client import ProviderOperation, ProviderResponse
from app.use_cases.sync import ProcessSyncJobUseCase, commitment_id_for
from tests.fakes.fake_provider_client import FakeProviderClient, event_response
from utils.errors import TransientProviderError, ValidationError

NOW = datetime(2026, 3, 9, 18, 0, tzinfo=UTC)
MIRROR_ID = "google_calendar:evt-1"


class _Harness:
    def __init__(
        self,
        client: FakeProviderClient,
        existing: list[Commitment] | None = None,
        strategy: ResolutionStrategy = ResolutionStrategy.USER_CHOICE,
    ) -> None:
        self.client = client
        self.monitoring = LogMonitoringSink(keep_last=20)
        self.commitments = MemoryCommitmentStore(existing)
        self.dedupe = MemoryDedupeStore()
        self.pending = PendingResolutionService(MemoryPendingResolutionStore(), self.monitoring)
        protection = OutboundProtectionService(
            registry=ProviderRegistry(),
            clients={Provider.GOOGLE_CALENDAR: client},
            rate_limiter=MemoryRateLimiter(),
            monitoring=self.monitoring,
            bypass_tokens=BypassTokenRegistry(),
        )
        self.use_case = ProcessSyncJobUseCase(
            protection=protection,
            commitments=self.commitments,
            dedupe=self.dedupe,
            detector=ConflictDetector(self.commitments),
            resolver=ConflictResolver(),
            pending=self.pending,
            strategy=strategy,
            now=lambda: NOW,
        )


def _job(
    change_kind: ChangeKind = ChangeKind.UPDATED,
    fingerprint: str = "fp-1",
    external_id: str = "evt-1",
) -> Job:
    payload = SyncJobPayload(
        provider=Provider.GOOGLE_CALENDAR,
        external_id=external_id,
        change_kind=change_kind,
        correlation_key="channel-1",
        fingerprint=fingerprint,
        integration_id="int-1",
        user_id="user-1",
    )
    return Job(payload=payload, priority=JobPriority.MEDIUM)


def _mirror(**kwargs: object) -> Commitment:
    data: dict[str, object] = {
        "id": MIRROR_ID,
        "user_id": "user-1",
        "kind": "calendar_event",
        "start": datetime(2026, 3, 10, 10, 0, tzinfo=UTC),
        "end": datetime(2026, 3, 10, 11, 0, tzinfo=UTC),
        "title": "Reunião",
        "provider": "google_calendar",
        "external_id": "evt-1",
    }
    data.update(kwargs)
    return Commitment(**data)


def _appointment(priority: int = 0) -> Commitment:
    return Commitment(
        id="appt-1",
        user_id="user-1",
        start=datetime(2026, 3, 10, 10, 30, tzinfo=UTC),
        end=datetime(2026, 3, 10, 11, 30, tzinfo=UTC),
        title="Consulta",
        priority=priority,
    )


class TestCreateAndUpdate:
    @pytest.mark.asyncio
    async def test_new_event_creates_mirror(self) -> None:
        harness = _Harness(FakeProviderClient([event_response()]))

        result = await harness.use_case.handle(_job(ChangeKind.CREATED))

        assert result == {"outcome": "created", "commitment_id": MIRROR_ID, "outbound_calls": 1}
        [mirror] = harness.commitments.all()
        assert mirror.id == commitment_id_for("google_calendar", "evt-1")
        assert mirror.kind == "calendar_event"
        assert mirror.metadata["integration_id"] == "int-1"
        assert harness.client.calls[0].operation == ProviderOperation.GET_EVENT
        assert harness.client.calls[0].external_id == "evt-1"

    @pytest.mark.asyncio
    async def test_redelivery_makes_no_outbound_call(self) -> None:
        harness = _Harness(FakeProviderClient([event_response()]))
        await harness.use_case.handle(_job())

        result = await harness.use_case.handle(_job())

        assert result == {"outcome": "already_applied", "outbound_calls": 0}
        assert harness.client.call_count == 1

    @pytest.mark.asyncio
    async def test_same_state_is_unchanged(self) -> None:
        harness = _Harness(FakeProviderClient([event_response()]), existing=[_mirror()])

        result = await harness.use_case.handle(_job())

        assert result["outcome"] == "unchanged"

    @pytest.mark.asyncio
    async def test_changed_event_updates_mirror(self) -> None:
        harness = _Harness(
            FakeProviderClient([event_response(title="Reunião de planejamento")]),
            existing=[_mirror(priority=2, meeting_id="zoom-1")],
        )

        result = await harness.use_case.handle(_job())

        assert result["outcome"] == "updated"
        [mirror] = harness.commitments.all()
        assert mirror.title == "Reunião de planejamento"
        assert mirror.priority == 2
        assert mirror.meeting_id == "zoom-1"

    @pytest.mark.asyncio
    async def test_invalid_provider_payload_is_validation_error(self) -> None:
        harness = _Harness(FakeProviderClient([ProviderResponse(data={"external_id": "evt-1"})]))

        with pytest.raises(ValidationError):
            await harness.use_case.handle(_job())

    @pytest.mark.asyncio
    async def test_provider_failure_does_not_mark_applied(self) -> None:
        client = FakeProviderClient([TransientProviderError("503", status_code=503), event_response()])
        harness = _Harness(client)

        with pytest.raises(TransientProviderError):
            await harness.use_case.handle(_job())
        result = await harness.use_case.handle(_job())

        assert result["outcome"] == "created"
        assert client.call_count == 2


class TestDeletion:
    @pytest.mark.asyncio
    async def test_deleted_change_cancels_mirror_without_calls(self) -> None:
        client = FakeProviderClient()
        harness = _Harness(client, existing=[_mirror()])

        result = await harness.use_case.handle(_job(ChangeKind.DELETED))

        assert result["outcome"] == "cancelled"
        assert result["outbound_calls"] == 0
        assert client.call_count == 0
        assert harness.commitments.all()[0].is_cancelled

    @pytest.mark.asyncio
    async def test_event_gone_from_provider_cancels_mirror(self) -> None:
        client = FakeProviderClient([ProviderResponse(found=False, status_code=404)])
        harness = _Harness(client, existing=[_mirror()])

        result = await harness.use_case.handle(_job())

        assert result == {"outcome": "cancelled", "commitment_id": MIRROR_ID, "outbound_calls": 1}

    @pytest.mark.asyncio
    async def test_deleting_unknown_event_is_noop(self) -> None:
        harness = _Harness(FakeProviderClient())

        result = await harness.use_case.handle(_job(ChangeKind.DELETED))

        assert result["outcome"] == "not_mirrored"


@pytest.mark.asyncio
async def test_calendar_level_change_lists_calendars() -> None:
    client = FakeProviderClient(
        [ProviderResponse(data={"calendars": [{"id": "primary"}, {"id": "team"}]})]
    )
    harness = _Harness(client)

    result = await harness.use_case.handle(_job(ChangeKind.CALENDAR_LEVEL))

    assert result["outcome"] == "calendars_refreshed"
    assert result["calendar_count"] == 2
    assert client.calls[0].operation == ProviderOperation.LIST_CALENDARS


class TestConflicts:
    @pytest.mark.asyncio
    async def test_user_choice_records_pending_resolution(self) -> None:
        harness = _Harness(FakeProviderClient([event_response()]), existing=[_appointment()])

        result = await harness.use_case.handle(_job())

        assert result["outcome"] == "pending_resolution"
        assert result["conflicts"] == 2
        pending = await harness.pending.get_pending(MIRROR_ID)
        assert pending is not None
        assert pending.metadata["strategy"] == "user_choice"
        assert [item.id for item in harness.commitments.all()] == ["appt-1"]

    @pytest.mark.asyncio
    async def test_automatic_strategy_applies_mirror_with_resolutions(self) -> None:
        harness = _Harness(
            FakeProviderClient([event_response()]),
            existing=[_appointment(priority=1)],
            strategy=ResolutionStrategy.PRIORITY_BASED,
        )

        result = await harness.use_case.handle(_job(ChangeKind.CREATED))

        assert result["outcome"] == "created_with_resolution"
        assert result["resolutions"] == ["keep_existing", "keep_existing"]
        mirror = await harness.commitments.get_by_external("google_calendar", "evt-1")
        assert mirror.metadata["conflict_resolutions"] == ["keep_existing", "keep_existing"]


@pytest.mark.asyncio
async def test_wrong_payload_type_is_rejected() -> None:
    harness = _Harness(FakeProviderClient())
    job = Job(
        payload=MeetingEventJobPayload(
            provider=Provider.ZOOM,
            meeting_id="m-1",
            event_type="meeting.started",
            fingerprint="fp",
        ),
        priority=JobPriority.HIGH,
    )

    with pytest.raises(ValidationError):
        await harness.use_case.handle(job)
