"""Normalizer Google Calendar: headers do canal para ChangeEvent."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from urllib.parse import urlparse

from app.domain.change_event import ChangeEvent, ChangeKind, Provider

from .extractor import extract_notification

logger = logging.getLogger(__name__)

_STATE_TO_KIND = {
    "exists": ChangeKind.UPDATED,
    "not_exists": ChangeKind.DELETED,
}


def targets_single_event(resource_uri: str) -> bool:
    """True quando a URI aponta para um evento (`.../events/{id}`)."""
    if not resource_uri:
        return True
    path = urlparse(resource_uri).path.rstrip("/")
    head, _, tail = path.rpartition("/events/")
    return bool(head) and bool(tail) and "/" not in tail


def normalize_notification(
    headers: dict[str, str],
    received_at: datetime | None = None,
) -> list[ChangeEvent]:
    notification = extract_notification(headers)

    if notification.resource_state == "sync":
        logger.debug("google_sync_handshake", extra={"channel_id": notification.channel_id})
        return []

    kind = _STATE_TO_KIND.get(notification.resource_state)
    if kind is None:
        logger.info(
            "google_resource_state_ignored",
            extra={"resource_state": notification.resource_state},
        )
        return []

    if not targets_single_event(notification.resource_uri):
        kind = ChangeKind.CALENDAR_LEVEL

    return [
        ChangeEvent(
            provider=Provider.GOOGLE_CALENDAR,
            external_id=notification.resource_id,
            change_kind=kind,
            raw_correlation_id=notification.channel_id,
            received_at=received_at or datetime.now(UTC),
            event_type=notification.resource_state,
            version=notification.message_number,
            resource_uri=notification.resource_uri,
        )
    ]
