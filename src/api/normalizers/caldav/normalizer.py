"""Normalizer CalDAV: notificação do bridge para ChangeEvent."""

from __future__ import annotations

from datetime import UTC, datetime

from app.domain.change_event import ChangeEvent, ChangeKind, Provider

from .extractor import extract_notification


def normalize_notification(
    raw_body: bytes,
    received_at: datetime | None = None,
) -> list[ChangeEvent]:
    notification = extract_notification(raw_body)

    if notification.change_type == "calendar_changed" or not notification.event_uid:
        kind = ChangeKind.CALENDAR_LEVEL
        external_id = notification.calendar_url
    else:
        kind = ChangeKind(notification.change_type)
        external_id = notification.event_uid

    return [
        ChangeEvent(
            provider=Provider.CALDAV,
            external_id=external_id,
            change_kind=kind,
            raw_correlation_id=notification.calendar_url,
            received_at=received_at or datetime.now(UTC),
            event_type=notification.change_type,
            version=notification.etag,
            resource_uri=notification.calendar_url,
        )
    ]
