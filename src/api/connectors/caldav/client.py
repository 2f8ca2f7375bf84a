"""Cliente do bridge CalDAV.

O bridge traduz CalDAV/iCalendar para JSON; eventos já chegam no formato
interno (`external_id`, `start`, `end`, `title`, `location`, `status`,
`last_modified`).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from api.connectors.http_base import HttpClientConfig, HttpRoute, JsonHttpProviderClient
from app.protocols.provider_client import ProviderOperation, ProviderRequest
from utils.errors import PermanentProviderError

if TYPE_CHECKING:
    import httpx


class CalDavBridgeClient(JsonHttpProviderClient):
    component = "caldav_bridge_client"

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        timeout_seconds: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(
            HttpClientConfig(
                base_url=base_url,
                timeout_seconds=timeout_seconds,
                default_headers={"x-api-key": api_key, "Accept": "application/json"},
            ),
            transport=transport,
        )

    def route(self, request: ProviderRequest) -> HttpRoute:
        operation = request.operation
        params = {"integration_id": request.integration_id} if request.integration_id else {}
        if operation == ProviderOperation.LIST_CALENDARS:
            return HttpRoute("GET", "calendars", params=params)
        if operation == ProviderOperation.CREATE_EVENT:
            return HttpRoute("POST", "events", json=request.body, params=params)
        if not request.external_id:
            raise PermanentProviderError(f"event_uid obrigatório para {operation.value}")
        path = f"events/{quote(request.external_id, safe='')}"
        if operation == ProviderOperation.GET_EVENT:
            return HttpRoute("GET", path, params=params)
        if operation == ProviderOperation.UPDATE_EVENT:
            return HttpRoute("PUT", path, json=request.body, params=params)
        return HttpRoute("DELETE", path, params=params)

    def parse(self, request: ProviderRequest, payload: dict[str, Any]) -> dict[str, Any]:
        if request.operation == ProviderOperation.LIST_CALENDARS:
            return {"calendars": list(payload.get("calendars") or payload.get("items") or [])}
        return payload
