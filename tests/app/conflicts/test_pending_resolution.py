"""Testes do ciclo de vida das resoluções pendentes."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from app.conflicts import suggestions
from app.conflicts.pending import DISMISS_ACTION, PendingResolutionService
from app.domain.conflict import (
    Conflict,
    ConflictingItem,
    ConflictType,
    PendingStatus,
    Severity,
)
from app.infra.monitoring import LogMonitoringSink
from app.infra.stores import MemoryPendingResolutionStore
from app.protocols.monitoring import MonitoringEventType
from utils.errors import ConflictUnresolvedError, ValidationError

START = datetime(2026, 3, 10, 9, 0, tzinfo=UTC)


class _Clock:
    def __init__(self) -> None:
        self.now = START

    def __call__(self) -> datetime:
        return self.now


def _conflict() -> Conflict:
    return Conflict(
        type=ConflictType.TIME_OVERLAP,
        severity=Severity.HIGH,
        conflicting_item=ConflictingItem(
            id="existing",
            kind="appointment",
            start=START,
            end=START + timedelta(hours=1),
        ),
        overlap_minutes=30,
        resolution_suggestions=suggestions.time_overlap_suggestions(in_person=False),
    )


def _service() -> tuple[PendingResolutionService, MemoryPendingResolutionStore, LogMonitoringSink, _Clock]:
    store = MemoryPendingResolutionStore()
    monitoring = LogMonitoringSink(keep_last=20)
    clock = _Clock()
    service = PendingResolutionService(store, monitoring, now=clock)
    return service, store, monitoring, clock


class TestRecordPending:
    @pytest.mark.asyncio
    async def test_records_with_24h_window_and_notifies(self) -> None:
        service, store, monitoring, _ = _service()

        pending = await service.record_pending(
            candidate_id="cand-1",
            user_id="user-1",
            conflicts=[_conflict()],
            metadata={"provider": "zoom"},
        )

        assert pending.expires_at == START + timedelta(hours=24)
        assert pending.status == PendingStatus.PENDING
        assert await store.get("cand-1") is pending
        [notification] = monitoring.events_of(MonitoringEventType.NOTIFICATION_REQUIRED)
        assert notification["candidate_id"] == "cand-1"
        assert notification["conflict_types"] == ["time_overlap"]


class TestResolvePending:
    @pytest.mark.asyncio
    async def test_suggested_action_resolves(self) -> None:
        service, _, _, clock = _service()
        await service.record_pending(candidate_id="cand-1", user_id="user-1", conflicts=[_conflict()])
        clock.now = START + timedelta(hours=2)

        pending = await service.resolve_pending("cand-1", "reschedule_existing")

        assert pending.status == PendingStatus.RESOLVED
        assert pending.chosen_action == "reschedule_existing"
        assert pending.decided_at == START + timedelta(hours=2)

    @pytest.mark.asyncio
    async def test_dismiss_is_always_accepted(self) -> None:
        service, _, _, _ = _service()
        await service.record_pending(candidate_id="cand-1", user_id="user-1", conflicts=[_conflict()])

        pending = await service.resolve_pending("cand-1", DISMISS_ACTION)

        assert pending.chosen_action == DISMISS_ACTION

    @pytest.mark.asyncio
    async def test_unsuggested_action_is_rejected(self) -> None:
        service, _, _, _ = _service()
        await service.record_pending(candidate_id="cand-1", user_id="user-1", conflicts=[_conflict()])

        with pytest.raises(ValidationError):
            await service.resolve_pending("cand-1", "change_to_virtual")

    @pytest.mark.asyncio
    async def test_second_decision_is_rejected(self) -> None:
        service, _, _, _ = _service()
        await service.record_pending(candidate_id="cand-1", user_id="user-1", conflicts=[_conflict()])
        await service.resolve_pending("cand-1", "reschedule_new")

        with pytest.raises(ValidationError, match="já decidida"):
            await service.resolve_pending("cand-1", "reschedule_new")

    @pytest.mark.asyncio
    async def test_expired_window_raises_unresolved(self) -> None:
        service, store, monitoring, clock = _service()
        await service.record_pending(candidate_id="cand-1", user_id="user-1", conflicts=[_conflict()])
        clock.now = START + timedelta(hours=24)

        with pytest.raises(ConflictUnresolvedError) as exc_info:
            await service.resolve_pending("cand-1", "reschedule_new")

        assert exc_info.value.candidate_id == "cand-1"
        assert (await store.get("cand-1")).status == PendingStatus.ABANDONED
        assert len(monitoring.events_of(MonitoringEventType.CONFLICT_ABANDONED)) == 1

    @pytest.mark.asyncio
    async def test_unknown_candidate_returns_none(self) -> None:
        service, _, _, _ = _service()

        assert await service.resolve_pending("missing", "dismiss") is None


class TestExpirePending:
    @pytest.mark.asyncio
    async def test_sweep_abandons_only_expired(self) -> None:
        service, store, monitoring, clock = _service()
        await service.record_pending(candidate_id="old-1", user_id="user-1", conflicts=[_conflict()])
        await service.record_pending(candidate_id="old-2", user_id="user-1", conflicts=[_conflict()])
        clock.now = START + timedelta(hours=12)
        await service.record_pending(candidate_id="fresh", user_id="user-1", conflicts=[_conflict()])

        abandoned = await service.expire_pending(START + timedelta(hours=25))

        assert abandoned == 2
        assert (await store.get("fresh")).status == PendingStatus.PENDING
        assert len(monitoring.events_of(MonitoringEventType.CONFLICT_ABANDONED)) == 2
        assert await service.expire_pending(START + timedelta(hours=25)) == 0

    @pytest.mark.asyncio
    async def test_resolved_items_are_not_abandoned(self) -> None:
        service, _, _, _ = _service()
        await service.record_pending(candidate_id="cand-1", user_id="user-1", conflicts=[_conflict()])
        await service.resolve_pending("cand-1", "dismiss")

        assert await service.expire_pending(START + timedelta(days=2)) == 0
