"""Normalizer Zoom: eventos de reunião para ChangeEvent."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from app.domain.change_event import ChangeEvent, ChangeKind, Provider

from .extractor import ZoomNotification, extract_notification

logger = logging.getLogger(__name__)

MEETING_EVENT_PREFIX = "meeting."

_EXPLICIT_KINDS = {
    "meeting.created": ChangeKind.CREATED,
    "meeting.deleted": ChangeKind.DELETED,
}


def _details(notification: ZoomNotification) -> dict[str, Any]:
    details: dict[str, Any] = {}
    if notification.topic:
        details["topic"] = notification.topic
    if notification.account_id:
        details["account_id"] = notification.account_id
    participant = notification.participant
    if participant:
        details["participant_id"] = str(participant.get("user_id") or participant.get("id") or "")
        details["participant_name"] = str(participant.get("user_name") or "")
        at = participant.get("join_time") or participant.get("leave_time")
        if at:
            details["timestamp"] = str(at)
    elif notification.event == "meeting.started" and notification.start_time:
        details["timestamp"] = notification.start_time
    elif notification.event == "meeting.ended" and notification.end_time:
        details["timestamp"] = notification.end_time
    return details


def normalize_notification(
    raw_body: bytes,
    received_at: datetime | None = None,
) -> list[ChangeEvent]:
    notification = extract_notification(raw_body)

    if not notification.event.startswith(MEETING_EVENT_PREFIX):
        logger.info("zoom_event_ignored", extra={"zoom_event": notification.event})
        return []

    return [
        ChangeEvent(
            provider=Provider.ZOOM,
            external_id=notification.meeting_id,
            change_kind=_EXPLICIT_KINDS.get(notification.event, ChangeKind.UPDATED),
            raw_correlation_id=notification.meeting_id,
            received_at=received_at or datetime.now(UTC),
            event_type=notification.event,
            version=notification.event_ts,
            details=_details(notification),
        )
    ]
