"""Testes do normalizer Zoom."""

from __future__ import annotations

import json

import pytest

from api.normalizers.zoom import normalize_notification
from app.domain.change_event import ChangeKind, Provider
from utils.errors import ValidationError


def _body(event: str, **obj: object) -> bytes:
    return json.dumps(
        {
            "event": event,
            "event_ts": 1760000000123,
            "payload": {"account_id": "acc-1", "object": {"id": "85234", "topic": "Consulta", **obj}},
        }
    ).encode()


def test_participant_joined_carries_participant_details() -> None:
    body = _body(
        "meeting.participant_joined",
        participant={"user_id": "p-1", "user_name": "Ana", "join_time": "2026-03-10T12:01:00Z"},
    )

    [event] = normalize_notification(body)

    assert event.provider == Provider.ZOOM
    assert event.change_kind == ChangeKind.UPDATED
    assert event.external_id == "85234"
    assert event.raw_correlation_id == "85234"
    assert event.event_type == "meeting.participant_joined"
    assert event.version == "1760000000123"
    assert event.details["participant_id"] == "p-1"
    assert event.details["participant_name"] == "Ana"
    assert event.details["timestamp"] == "2026-03-10T12:01:00Z"


def test_meeting_started_uses_start_time() -> None:
    [event] = normalize_notification(_body("meeting.started", start_time="2026-03-10T12:00:00Z"))

    assert event.details["timestamp"] == "2026-03-10T12:00:00Z"
    assert event.details["topic"] == "Consulta"


@pytest.mark.parametrize(
    ("zoom_event", "kind"),
    [
        ("meeting.created", ChangeKind.CREATED),
        ("meeting.deleted", ChangeKind.DELETED),
        ("meeting.ended", ChangeKind.UPDATED),
    ],
)
def test_change_kind_mapping(zoom_event: str, kind: ChangeKind) -> None:
    [event] = normalize_notification(_body(zoom_event))

    assert event.change_kind == kind


def test_non_meeting_event_is_ignored() -> None:
    assert normalize_notification(_body("recording.completed")) == []


def test_missing_object_is_rejected() -> None:
    body = json.dumps({"event": "meeting.started", "payload": {}}).encode()

    with pytest.raises(ValidationError):
        normalize_notification(body)
