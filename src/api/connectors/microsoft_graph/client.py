"""Cliente Microsoft Graph (eventos de calendário)."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from api.connectors.http_base import (
    HttpClientConfig,
    HttpRoute,
    JsonHttpProviderClient,
    bearer_headers,
)
from app.protocols.provider_client import ProviderOperation, ProviderRequest
from utils.errors import PermanentProviderError

if TYPE_CHECKING:
    import httpx

_UTC = ZoneInfo("UTC")


def parse_graph_datetime(value: Any) -> str | None:
    """`{"dateTime": "2026-10-19T09:00:00.0000000", "timeZone": "UTC"}` → ISO com offset."""
    if not isinstance(value, dict) or not value.get("dateTime"):
        return None
    raw = str(value["dateTime"])
    head, dot, fraction = raw.partition(".")
    if dot:
        # Graph usa 7 casas decimais
        raw = f"{head}.{fraction[:6]}"
    parsed = datetime.fromisoformat(raw)
    if parsed.tzinfo is None:
        try:
            zone = ZoneInfo(str(value.get("timeZone") or "UTC"))
        except (ZoneInfoNotFoundError, ValueError):
            zone = _UTC
        parsed = parsed.replace(tzinfo=zone)
    return parsed.isoformat()


def map_graph_event(payload: dict[str, Any]) -> dict[str, Any]:
    location = payload.get("location") or {}
    return {
        "external_id": str(payload.get("id") or ""),
        "start": parse_graph_datetime(payload.get("start")),
        "end": parse_graph_datetime(payload.get("end")),
        "title": str(payload.get("subject") or ""),
        "location": str(location.get("displayName") or "") if isinstance(location, dict) else "",
        "status": "cancelled" if payload.get("isCancelled") else "confirmed",
        "last_modified": payload.get("lastModifiedDateTime"),
    }


class GraphCalendarClient(JsonHttpProviderClient):
    """Eventos em `/me/events` com bearer token já adquirido."""

    component = "microsoft_graph_client"

    def __init__(
        self,
        *,
        base_url: str,
        access_token: str,
        timeout_seconds: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(
            HttpClientConfig(
                base_url=base_url,
                timeout_seconds=timeout_seconds,
                default_headers=bearer_headers(access_token),
            ),
            transport=transport,
        )

    def route(self, request: ProviderRequest) -> HttpRoute:
        operation = request.operation
        if operation == ProviderOperation.LIST_CALENDARS:
            return HttpRoute("GET", "me/calendars")
        if operation == ProviderOperation.CREATE_EVENT:
            return HttpRoute("POST", "me/events", json=request.body)
        if not request.external_id:
            raise PermanentProviderError(f"external_id obrigatório para {operation.value}")
        path = f"me/events/{request.external_id}"
        if operation == ProviderOperation.GET_EVENT:
            return HttpRoute("GET", path)
        if operation == ProviderOperation.UPDATE_EVENT:
            return HttpRoute("PATCH", path, json=request.body)
        return HttpRoute("DELETE", path)

    def parse(self, request: ProviderRequest, payload: dict[str, Any]) -> dict[str, Any]:
        if request.operation == ProviderOperation.LIST_CALENDARS:
            return {"calendars": list(payload.get("value") or [])}
        if request.operation in (ProviderOperation.GET_EVENT, ProviderOperation.CREATE_EVENT):
            return map_graph_event(payload)
        return payload
