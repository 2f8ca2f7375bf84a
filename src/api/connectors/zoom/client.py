"""Cliente Zoom (reuniões agendadas)."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

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

DEFAULT_DURATION_MINUTES = 60


def map_zoom_meeting(payload: dict[str, Any]) -> dict[str, Any]:
    start_raw = payload.get("start_time")
    start = end = None
    if start_raw:
        start_dt = datetime.fromisoformat(str(start_raw).replace("Z", "+00:00"))
        duration = int(payload.get("duration") or DEFAULT_DURATION_MINUTES)
        start = start_dt.isoformat()
        end = (start_dt + timedelta(minutes=duration)).isoformat()
    return {
        "external_id": str(payload.get("id") or ""),
        "start": start,
        "end": end,
        "title": str(payload.get("topic") or ""),
        "location": "",
        "status": "cancelled" if payload.get("status") == "deleted" else "confirmed",
        "last_modified": None,
    }


class ZoomMeetingClient(JsonHttpProviderClient):
    """Reuniões do usuário autenticado (`/users/me/meetings`)."""

    component = "zoom_client"

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
            raise PermanentProviderError("Zoom não expõe calendários")
        if operation == ProviderOperation.CREATE_EVENT:
            return HttpRoute("POST", "users/me/meetings", json=request.body)
        if not request.external_id:
            raise PermanentProviderError(f"external_id obrigatório para {operation.value}")
        path = f"meetings/{request.external_id}"
        if operation == ProviderOperation.GET_EVENT:
            return HttpRoute("GET", path)
        if operation == ProviderOperation.UPDATE_EVENT:
            return HttpRoute("PATCH", path, json=request.body)
        return HttpRoute("DELETE", path)

    def parse(self, request: ProviderRequest, payload: dict[str, Any]) -> dict[str, Any]:
        if request.operation in (ProviderOperation.GET_EVENT, ProviderOperation.CREATE_EVENT):
            return map_zoom_meeting(payload)
        return payload
