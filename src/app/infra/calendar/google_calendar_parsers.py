"""Helpers internos de parsing para respostas da Google Calendar API."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from zoneinfo import ZoneInfo

    from googleapiclient.errors import HttpError


def map_calendar_event(payload: dict[str, Any], zone: ZoneInfo) -> dict[str, Any]:
    """Evento da API v3 no formato interno de ProviderEvent."""
    return {
        "external_id": str(payload.get("id") or ""),
        "start": _extract_event_datetime(payload.get("start"), zone).isoformat(),
        "end": _extract_event_datetime(payload.get("end"), zone).isoformat(),
        "title": str(payload.get("summary") or ""),
        "location": str(payload.get("location") or ""),
        "status": str(payload.get("status") or "confirmed"),
        "last_modified": payload.get("updated"),
    }


def map_calendar_list(payload: dict[str, Any]) -> dict[str, Any]:
    items = payload.get("items") if isinstance(payload, dict) else []
    return {
        "calendars": [
            {"id": str(item.get("id") or ""), "summary": str(item.get("summary") or "")}
            for item in items or []
            if isinstance(item, dict)
        ]
    }


def parse_google_datetime(value: Any, zone: ZoneInfo) -> datetime | None:
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed.replace(tzinfo=zone) if parsed.tzinfo is None else parsed.astimezone(zone)


def http_status(exc: HttpError) -> int | None:
    response = getattr(exc, "resp", None)
    return int(response.status) if response and getattr(response, "status", None) else None


def _extract_event_datetime(value: Any, zone: ZoneInfo) -> datetime:
    if isinstance(value, dict):
        if parsed := parse_google_datetime(value.get("dateTime"), zone):
            return parsed
        if isinstance(value.get("date"), str):
            return datetime.fromisoformat(value["date"]).replace(tzinfo=zone)
    # Evento sem horário não pode virar intervalo falso
    raise ValueError("missing_event_datetime")
