"""Testes do handler de eventos de reunião online."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from app.domain.change_event import ChangeKind, Provider
from app.domain.commitment import Commitment
from app.domain.job import Job, JobPriority, MeetingEventJobPayload, SyncJobPayload
from app.infra.stores import MemoryCommitmentStore, MemoryDedupeStore
from app.use_cases.sync import ProcessMeetingEventJobUseCase
from app.use_cases.sync.process_meeting_event_job import (
    MEETING_ENDED,
    MEETING_STARTED,
    PARTICIPANT_JOINED,
)
from utils.errors import ValidationError

NOW = datetime(2026, 3, 10, 10, 1, tzinfo=UTC)


def _linked(commitment_id: str = "appt-1", **kwargs: object) -> Commitment:
    data: dict[str, object] = {
        "id": commitment_id,
        "user_id": "user-1",
        "start": datetime(2026, 3, 10, 10, 0, tzinfo=UTC),
        "end": datetime(2026, 3, 10, 11, 0, tzinfo=UTC),
        "meeting_type": "virtual",
        "meeting_id": "zoom-123",
    }
    data.update(kwargs)
    return Commitment(**data)


def _job(event_type: str, fingerprint: str = "fp-1", **event_data: object) -> Job:
    return Job(
        payload=MeetingEventJobPayload(
            provider=Provider.ZOOM,
            meeting_id="zoom-123",
            event_type=event_type,
            fingerprint=fingerprint,
            event_data=dict(event_data),
        ),
        priority=JobPriority.HIGH,
    )


def _use_case(*linked: Commitment) -> tuple[ProcessMeetingEventJobUseCase, MemoryCommitmentStore]:
    store = MemoryCommitmentStore(list(linked))
    use_case = ProcessMeetingEventJobUseCase(
        commitments=store,
        dedupe=MemoryDedupeStore(),
        now=lambda: NOW,
    )
    return use_case, store


class TestMeetingLifecycle:
    @pytest.mark.asyncio
    async def test_started_marks_in_progress(self) -> None:
        use_case, store = _use_case(_linked())

        result = await use_case.handle(_job(MEETING_STARTED, timestamp="2026-03-10T10:00:30Z"))

        assert result == {"outcome": "applied", "updated": 1, "outbound_calls": 0}
        [commitment] = store.all()
        assert commitment.status == "in_progress"
        assert commitment.metadata["started_at"] == "2026-03-10T10:00:30Z"
        assert commitment.updated_at == NOW

    @pytest.mark.asyncio
    async def test_ended_marks_completed(self) -> None:
        use_case, store = _use_case(_linked(status="in_progress"))

        await use_case.handle(_job(MEETING_ENDED))

        [commitment] = store.all()
        assert commitment.status == "completed"
        assert commitment.metadata["ended_at"] == NOW.isoformat()

    @pytest.mark.asyncio
    async def test_repeated_state_is_not_rewritten(self) -> None:
        use_case, _ = _use_case(_linked(status="in_progress"))

        result = await use_case.handle(_job(MEETING_STARTED, fingerprint="fp-other"))

        assert result["updated"] == 0

    @pytest.mark.asyncio
    async def test_updates_every_linked_commitment(self) -> None:
        use_case, store = _use_case(
            _linked("appt-1"),
            _linked("google_calendar:evt-9", kind="calendar_event"),
            _linked("unrelated", meeting_id="zoom-999"),
        )

        result = await use_case.handle(_job(MEETING_STARTED))

        assert result["updated"] == 2
        statuses = {item.id: item.status for item in store.all()}
        assert statuses["unrelated"] == "confirmed"


class TestParticipants:
    @pytest.mark.asyncio
    async def test_participant_entries_are_idempotent(self) -> None:
        use_case, store = _use_case(_linked())
        data = {"participant_id": "p-1", "participant_name": "Ana", "timestamp": "2026-03-10T10:02:00Z"}

        await use_case.handle(_job(PARTICIPANT_JOINED, fingerprint="fp-a", **data))
        second = await use_case.handle(_job(PARTICIPANT_JOINED, fingerprint="fp-b", **data))

        assert second["updated"] == 0
        [commitment] = store.all()
        assert commitment.metadata["participants"] == [
            {
                "participant_id": "p-1",
                "name": "Ana",
                "event": "joined",
                "at": "2026-03-10T10:02:00Z",
            }
        ]

    @pytest.mark.asyncio
    async def test_unknown_event_is_recorded_as_last_event(self) -> None:
        use_case, store = _use_case(_linked())

        await use_case.handle(_job("meeting.recording_completed"))

        [commitment] = store.all()
        assert commitment.metadata["last_meeting_event"]["type"] == "meeting.recording_completed"


class TestIdempotency:
    @pytest.mark.asyncio
    async def test_same_fingerprint_is_already_applied(self) -> None:
        use_case, _ = _use_case(_linked())
        await use_case.handle(_job(MEETING_STARTED))

        result = await use_case.handle(_job(MEETING_STARTED))

        assert result == {"outcome": "already_applied", "updated": 0, "outbound_calls": 0}

    @pytest.mark.asyncio
    async def test_without_linked_commitments(self) -> None:
        use_case, _ = _use_case()

        result = await use_case.handle(_job(MEETING_STARTED))

        assert result["outcome"] == "no_linked_commitments"

    @pytest.mark.asyncio
    async def test_sync_payload_is_rejected(self) -> None:
        use_case, _ = _use_case()
        job = Job(
            payload=SyncJobPayload(
                provider=Provider.GOOGLE_CALENDAR,
                external_id="evt-1",
                change_kind=ChangeKind.UPDATED,
                correlation_key="c",
                fingerprint="f",
                integration_id="i",
                user_id="u",
            ),
            priority=JobPriority.MEDIUM,
        )

        with pytest.raises(ValidationError):
            await use_case.handle(job)
