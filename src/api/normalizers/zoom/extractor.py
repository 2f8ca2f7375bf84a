"""Extrator de webhooks Zoom.

Estrutura típica:
    {"event": "meeting.participant_joined", "event_ts": 1700000000000,
     "payload": {"account_id": "...",
                 "object": {"id": "8523...", "uuid": "...", "topic": "...",
                            "participant": {"user_id": "...", "user_name": "...",
                                            "join_time": "..."}}}}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from api.normalizers._payload import load_json_object, require_str
from utils.errors import ValidationError


@dataclass(frozen=True, slots=True)
class ZoomNotification:
    event: str
    meeting_id: str
    event_ts: str = ""
    account_id: str = ""
    topic: str = ""
    participant: dict[str, Any] = field(default_factory=dict)
    start_time: str = ""
    end_time: str = ""


def extract_notification(raw_body: bytes) -> ZoomNotification:
    payload = load_json_object(raw_body)
    event = require_str(payload, "event", "zoom")

    body = payload.get("payload")
    if not isinstance(body, dict):
        raise ValidationError("Payload Zoom sem objeto 'payload'")
    obj = body.get("object")
    if not isinstance(obj, dict):
        raise ValidationError("Payload Zoom sem 'payload.object'")

    participant = obj.get("participant")
    return ZoomNotification(
        event=event,
        meeting_id=require_str(obj, "id", "zoom payload.object"),
        event_ts=str(payload.get("event_ts") or ""),
        account_id=str(body.get("account_id") or ""),
        topic=str(obj.get("topic") or ""),
        participant=participant if isinstance(participant, dict) else {},
        start_time=str(obj.get("start_time") or ""),
        end_time=str(obj.get("end_time") or ""),
    )
