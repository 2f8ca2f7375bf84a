"""Normalizer Microsoft Graph: um ChangeEvent por item de `value`."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from app.domain.change_event import ChangeEvent, ChangeKind, Provider

from .extractor import GraphNotification, extract_notifications

logger = logging.getLogger(__name__)

_CHANGE_TYPES = {
    "created": ChangeKind.CREATED,
    "updated": ChangeKind.UPDATED,
    "deleted": ChangeKind.DELETED,
}


def _is_event_resource(resource: str) -> bool:
    return "/events/" in resource.lower()


def _external_id(notification: GraphNotification) -> str:
    if notification.resource_id:
        return notification.resource_id
    return notification.resource.rstrip("/").rsplit("/", 1)[-1]


def normalize_notifications(
    raw_body: bytes,
    received_at: datetime | None = None,
) -> list[ChangeEvent]:
    received_at = received_at or datetime.now(UTC)
    events: list[ChangeEvent] = []

    for notification in extract_notifications(raw_body):
        kind = _CHANGE_TYPES.get(notification.change_type)
        if kind is None:
            logger.info(
                "graph_change_type_ignored",
                extra={"change_type": notification.change_type},
            )
            continue
        if not _is_event_resource(notification.resource):
            kind = ChangeKind.CALENDAR_LEVEL

        events.append(
            ChangeEvent(
                provider=Provider.MICROSOFT_GRAPH,
                external_id=_external_id(notification),
                change_kind=kind,
                raw_correlation_id=notification.subscription_id,
                received_at=received_at,
                event_type=notification.change_type,
                version=notification.etag,
                resource_uri=notification.resource,
                details={"tenant_id": notification.tenant_id} if notification.tenant_id else {},
            )
        )
    return events
