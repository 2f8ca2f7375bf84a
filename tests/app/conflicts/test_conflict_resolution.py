"""Testes das estratégias de resolução de conflitos."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from app.conflicts import suggestions
from app.conflicts.resolution import (
    KEEP_EXISTING,
    KEEP_NEW,
    USER_CHOICE_REQUIRED,
    ConflictResolver,
    ResolutionContext,
)
from app.domain.commitment import Commitment
from app.domain.conflict import (
    Conflict,
    ConflictingItem,
    ConflictType,
    ResolutionStatus,
    ResolutionStrategy,
    Severity,
)

BASE = datetime(2026, 3, 10, 10, 0, tzinfo=UTC)


def _commitment(item_id: str, **kwargs: object) -> Commitment:
    data: dict[str, object] = {
        "id": item_id,
        "user_id": "user-1",
        "start": BASE,
        "end": BASE + timedelta(hours=1),
    }
    data.update(kwargs)
    return Commitment(**data)


def _conflict(
    item_id: str = "existing",
    conflict_type: ConflictType = ConflictType.TIME_OVERLAP,
    suggestion_set: tuple = suggestions.time_overlap_suggestions(in_person=False),
) -> Conflict:
    return Conflict(
        type=conflict_type,
        severity=Severity.HIGH,
        conflicting_item=ConflictingItem(
            id=item_id,
            kind="appointment",
            start=BASE,
            end=BASE + timedelta(hours=1),
        ),
        overlap_minutes=60,
        resolution_suggestions=suggestion_set,
    )


def _context(candidate: Commitment, *existing: Commitment, **preferences: object) -> ResolutionContext:
    return ResolutionContext(
        candidate=candidate,
        existing={item.id: item for item in existing},
        preferences=preferences,
    )


RESOLVER = ConflictResolver()


class TestUserChoice:
    def test_awaits_user_with_suggestions_as_options(self) -> None:
        conflict = _conflict()

        [result] = RESOLVER.resolve_conflicts([conflict], ResolutionStrategy.USER_CHOICE)

        assert result.status == ResolutionStatus.AWAITING_USER
        assert result.resolution.action == USER_CHOICE_REQUIRED
        assert result.resolution.automated is False
        assert result.resolution.options == conflict.resolution_suggestions

    def test_one_result_per_conflict(self) -> None:
        conflicts = [_conflict("a"), _conflict("b"), _conflict("c")]

        results = RESOLVER.resolve_conflicts(conflicts)

        assert [r.conflict for r in results] == conflicts


class TestPriorityBased:
    def test_higher_priority_candidate_wins(self) -> None:
        context = _context(_commitment("new", priority=5), _commitment("existing", priority=3))

        [result] = RESOLVER.resolve_conflicts(
            [_conflict()], ResolutionStrategy.PRIORITY_BASED, context
        )

        assert result.status == ResolutionStatus.RESOLVED
        assert result.resolution.action == KEEP_NEW

    def test_tie_keeps_existing(self) -> None:
        context = _context(_commitment("new", priority=3), _commitment("existing", priority=3))

        [result] = RESOLVER.resolve_conflicts(
            [_conflict()], ResolutionStrategy.PRIORITY_BASED, context
        )

        assert result.resolution.action == KEEP_EXISTING

    def test_missing_context_is_explicit_failure(self) -> None:
        [result] = RESOLVER.resolve_conflicts([_conflict()], ResolutionStrategy.PRIORITY_BASED)

        assert result.status == ResolutionStatus.FAILED
        assert result.error == "priority_context_missing"
        assert result.resolution is None


class TestTimeBased:
    def test_first_scheduled_wins(self) -> None:
        context = _context(
            _commitment("new", created_at=BASE - timedelta(days=1)),
            _commitment("existing", created_at=BASE - timedelta(days=2)),
        )

        [result] = RESOLVER.resolve_conflicts([_conflict()], ResolutionStrategy.TIME_BASED, context)

        assert result.resolution.action == KEEP_EXISTING

    def test_earlier_candidate_wins(self) -> None:
        context = _context(
            _commitment("new", created_at=BASE - timedelta(days=3)),
            _commitment("existing", created_at=BASE - timedelta(days=2)),
        )

        [result] = RESOLVER.resolve_conflicts([_conflict()], ResolutionStrategy.TIME_BASED, context)

        assert result.resolution.action == KEEP_NEW

    def test_without_dates_candidate_is_newcomer(self) -> None:
        [result] = RESOLVER.resolve_conflicts([_conflict()], ResolutionStrategy.TIME_BASED)

        assert result.status == ResolutionStatus.RESOLVED
        assert result.resolution.action == KEEP_EXISTING


class TestAutomatic:
    def test_picks_first_automated_suggestion(self) -> None:
        [result] = RESOLVER.resolve_conflicts([_conflict()], ResolutionStrategy.AUTOMATIC)

        assert result.status == ResolutionStatus.RESOLVED
        assert result.resolution.action == "reschedule_new"
        assert result.resolution.automated is True

    def test_respects_avoided_actions(self) -> None:
        conflict = _conflict(suggestion_set=suggestions.time_overlap_suggestions(in_person=True))
        context = ResolutionContext(preferences={"avoid_actions": ["reschedule_new"]})

        [result] = RESOLVER.resolve_conflicts([conflict], ResolutionStrategy.AUTOMATIC, context)

        assert result.resolution.action == "change_to_virtual"

    def test_fails_without_automated_option(self) -> None:
        conflict = _conflict(
            conflict_type=ConflictType.VENUE_CONFLICT,
            suggestion_set=suggestions.venue_suggestions(),
        )
        context = ResolutionContext(preferences={"avoid_actions": ["change_to_virtual"]})

        [result] = RESOLVER.resolve_conflicts([conflict], ResolutionStrategy.AUTOMATIC, context)

        assert result.status == ResolutionStatus.FAILED
        assert result.error == "no_automated_suggestion"


class TestNewestWins:
    @pytest.mark.parametrize(
        ("candidate_offset", "expected"),
        [(10, KEEP_NEW), (-10, KEEP_EXISTING)],
    )
    def test_latest_modification_wins(self, candidate_offset: int, expected: str) -> None:
        context = _context(
            _commitment("new", updated_at=BASE + timedelta(seconds=candidate_offset)),
            _commitment("existing", updated_at=BASE),
        )

        [result] = RESOLVER.resolve_conflicts([_conflict()], ResolutionStrategy.NEWEST_WINS, context)

        assert result.status == ResolutionStatus.RESOLVED
        assert result.resolution.action == expected

    def test_clock_skew_is_tie_for_user(self) -> None:
        context = _context(
            _commitment("new", updated_at=BASE + timedelta(seconds=3)),
            _commitment("existing", updated_at=BASE),
        )

        [result] = RESOLVER.resolve_conflicts([_conflict()], ResolutionStrategy.NEWEST_WINS, context)

        assert result.status == ResolutionStatus.AWAITING_USER
        assert result.resolution.action == USER_CHOICE_REQUIRED

    def test_missing_timestamps_fail(self) -> None:
        context = _context(_commitment("new"), _commitment("existing"))

        [result] = RESOLVER.resolve_conflicts([_conflict()], ResolutionStrategy.NEWEST_WINS, context)

        assert result.status == ResolutionStatus.FAILED
        assert result.error == "modification_time_missing"


def test_double_booking_uses_every_item() -> None:
    conflict = Conflict(
        type=ConflictType.DOUBLE_BOOKING,
        severity=Severity.CRITICAL,
        conflicting_item=ConflictingItem(
            id="a",
            kind="multiple",
            start=BASE,
            end=BASE + timedelta(hours=2),
            item_ids=("a", "b"),
        ),
        resolution_suggestions=suggestions.double_booking_suggestions(),
    )
    context = _context(
        _commitment("new", priority=4),
        _commitment("a", priority=1),
        _commitment("b", priority=7),
    )

    [result] = RESOLVER.resolve_conflicts([conflict], ResolutionStrategy.PRIORITY_BASED, context)

    assert result.resolution.action == KEEP_EXISTING


def test_resolution_is_deterministic() -> None:
    context = _context(_commitment("new", priority=2), _commitment("existing", priority=1))
    conflicts = [_conflict(), _conflict(conflict_type=ConflictType.DOUBLE_BOOKING)]

    first = RESOLVER.resolve_conflicts(conflicts, ResolutionStrategy.PRIORITY_BASED, context)
    second = RESOLVER.resolve_conflicts(conflicts, ResolutionStrategy.PRIORITY_BASED, context)

    assert first == second
