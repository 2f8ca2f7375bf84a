"""Extrator de notificações do bridge CalDAV.

    {"calendar_url": "https://dav.example/cal/u1/",
     "event_uid": "abc@example", "change_type": "updated", "etag": "\\"123\\""}
"""

from __future__ import annotations

from dataclasses import dataclass

from api.normalizers._payload import load_json_object, require_str
from utils.errors import ValidationError

VALID_CHANGE_TYPES = frozenset({"created", "updated", "deleted", "calendar_changed"})


@dataclass(frozen=True, slots=True)
class CalDavNotification:
    calendar_url: str
    change_type: str
    event_uid: str = ""
    etag: str = ""


def extract_notification(raw_body: bytes) -> CalDavNotification:
    payload = load_json_object(raw_body)
    change_type = require_str(payload, "change_type", "caldav").lower()
    if change_type not in VALID_CHANGE_TYPES:
        raise ValidationError(f"change_type CalDAV inválido: {change_type}")

    return CalDavNotification(
        calendar_url=require_str(payload, "calendar_url", "caldav"),
        change_type=change_type,
        event_uid=str(payload.get("event_uid") or ""),
        etag=str(payload.get("etag") or ""),
    )
