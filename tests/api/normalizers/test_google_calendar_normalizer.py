"""Testes do normalizer Google Calendar."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from api.normalizers.google_calendar import normalize_notification, targets_single_event
from app.domain.change_event import ChangeKind, Provider
from utils.errors import ValidationError

RECEIVED_AT = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)
EVENT_URI = "https://www.googleapis.com/calendar/v3/calendars/primary/events/evt123"
LIST_URI = "https://www.googleapis.com/calendar/v3/calendars/primary/events?alt=json"


def _headers(state: str, uri: str = EVENT_URI) -> dict[str, str]:
    return {
        "x-goog-channel-id": "channel-1",
        "x-goog-resource-id": "evt123",
        "x-goog-resource-state": state,
        "x-goog-resource-uri": uri,
        "x-goog-message-number": "42",
    }


def test_exists_becomes_updated_event() -> None:
    events = normalize_notification(_headers("exists"), RECEIVED_AT)

    assert len(events) == 1
    event = events[0]
    assert event.provider == Provider.GOOGLE_CALENDAR
    assert event.change_kind == ChangeKind.UPDATED
    assert event.external_id == "evt123"
    assert event.raw_correlation_id == "channel-1"
    assert event.version == "42"
    assert event.received_at == RECEIVED_AT


def test_not_exists_becomes_deleted() -> None:
    [event] = normalize_notification(_headers("not_exists"), RECEIVED_AT)

    assert event.change_kind == ChangeKind.DELETED


def test_sync_handshake_has_no_actionable_change() -> None:
    assert normalize_notification(_headers("sync"), RECEIVED_AT) == []


def test_collection_uri_is_calendar_level() -> None:
    [event] = normalize_notification(_headers("exists", uri=LIST_URI), RECEIVED_AT)

    assert event.change_kind == ChangeKind.CALENDAR_LEVEL


@pytest.mark.parametrize(
    ("uri", "expected"),
    [
        (EVENT_URI, True),
        (LIST_URI, False),
        ("https://www.googleapis.com/calendar/v3/calendars/primary/events/", False),
        ("", True),
    ],
)
def test_targets_single_event(uri: str, expected: bool) -> None:
    assert targets_single_event(uri) is expected


def test_missing_headers_raise_validation_error() -> None:
    with pytest.raises(ValidationError):
        normalize_notification({"x-goog-channel-id": "c"}, RECEIVED_AT)


def test_fingerprint_is_stable_for_redelivery() -> None:
    [first] = normalize_notification(_headers("exists"), RECEIVED_AT)
    [second] = normalize_notification(_headers("exists"), datetime.now(UTC))

    assert first.fingerprint == second.fingerprint
