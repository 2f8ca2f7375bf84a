"""Testes do cliente Microsoft Graph sobre transporte httpx simulado."""

from __future__ import annotations

import json

import httpx
import pytest

from api.connectors.microsoft_graph import GraphCalendarClient
from api.connectors.microsoft_graph.client import parse_graph_datetime
from app.protocols.provider_client import ProviderOperation, ProviderRequest
from utils.errors import PermanentProviderError, TransientProviderError

GRAPH_EVENT = {
    "id": "AAMk1",
    "subject": "Consulta",
    "start": {"dateTime": "2026-03-10T09:00:00.0000000", "timeZone": "UTC"},
    "end": {"dateTime": "2026-03-10T10:00:00.0000000", "timeZone": "UTC"},
    "location": {"displayName": "Sala 2"},
    "isCancelled": False,
    "lastModifiedDateTime": "2026-03-09T18:00:00Z",
}


def _client(handler) -> GraphCalendarClient:
    return GraphCalendarClient(
        base_url="https://graph.test/v1.0",
        access_token="token-1",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_get_event_maps_graph_payload() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=GRAPH_EVENT)

    response = await _client(handler).invoke(
        ProviderRequest(operation=ProviderOperation.GET_EVENT, external_id="AAMk1")
    )

    assert seen[0].method == "GET"
    assert seen[0].url.path == "/v1.0/me/events/AAMk1"
    assert seen[0].headers["Authorization"] == "Bearer token-1"
    assert response.found is True
    assert response.data["title"] == "Consulta"
    assert response.data["location"] == "Sala 2"
    assert response.data["start"] == "2026-03-10T09:00:00+00:00"
    assert response.data["status"] == "confirmed"


@pytest.mark.asyncio
async def test_missing_event_returns_not_found() -> None:
    response = await _client(lambda request: httpx.Response(404)).invoke(
        ProviderRequest(operation=ProviderOperation.GET_EVENT, external_id="gone")
    )

    assert response.found is False
    assert response.status_code == 404


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [429, 500, 503, 408])
async def test_retryable_statuses_are_transient(status: int) -> None:
    with pytest.raises(TransientProviderError) as exc_info:
        await _client(lambda request: httpx.Response(status)).invoke(
            ProviderRequest(operation=ProviderOperation.GET_EVENT, external_id="x")
        )

    assert exc_info.value.status_code == status


@pytest.mark.asyncio
async def test_client_errors_are_permanent() -> None:
    with pytest.raises(PermanentProviderError):
        await _client(lambda request: httpx.Response(403)).invoke(
            ProviderRequest(operation=ProviderOperation.GET_EVENT, external_id="x")
        )


@pytest.mark.asyncio
async def test_connection_error_is_transient() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(TransientProviderError):
        await _client(handler).invoke(
            ProviderRequest(operation=ProviderOperation.GET_EVENT, external_id="x")
        )


@pytest.mark.asyncio
async def test_list_calendars_wraps_value_array() -> None:
    response = await _client(
        lambda request: httpx.Response(200, json={"value": [{"id": "cal-1"}, {"id": "cal-2"}]})
    ).invoke(ProviderRequest(operation=ProviderOperation.LIST_CALENDARS))

    assert response.data == {"calendars": [{"id": "cal-1"}, {"id": "cal-2"}]}


@pytest.mark.asyncio
async def test_update_sends_patch_with_body() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "AAMk1"})

    await _client(handler).invoke(
        ProviderRequest(
            operation=ProviderOperation.UPDATE_EVENT,
            external_id="AAMk1",
            body={"subject": "Novo"},
        )
    )

    assert seen[0].method == "PATCH"
    assert json.loads(seen[0].content) == {"subject": "Novo"}


@pytest.mark.asyncio
async def test_event_operations_require_external_id() -> None:
    with pytest.raises(PermanentProviderError):
        await _client(lambda request: httpx.Response(200)).invoke(
            ProviderRequest(operation=ProviderOperation.GET_EVENT)
        )


def test_parse_graph_datetime_applies_time_zone() -> None:
    value = {"dateTime": "2026-03-10T09:00:00.1234567", "timeZone": "America/Sao_Paulo"}

    assert parse_graph_datetime(value) == "2026-03-10T09:00:00.123456-03:00"


def test_parse_graph_datetime_unknown_zone_falls_back_to_utc() -> None:
    value = {"dateTime": "2026-03-10T09:00:00", "timeZone": "Nowhere/Invalid"}

    assert parse_graph_datetime(value) == "2026-03-10T09:00:00+00:00"


def test_parse_graph_datetime_without_value() -> None:
    assert parse_graph_datetime(None) is None
    assert parse_graph_datetime({"timeZone": "UTC"}) is None
