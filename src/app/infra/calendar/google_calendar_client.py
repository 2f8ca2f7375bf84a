"""Client concreto de Google Calendar (service account, API v3)."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any
from zoneinfo import ZoneInfo

from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from app.infra.calendar.google_calendar_parsers import (
    http_status,
    map_calendar_event,
    map_calendar_list,
)
from app.observability import get_correlation_id
from app.protocols.provider_client import ProviderOperation, ProviderRequest, ProviderResponse
from utils.errors import PermanentProviderError, TransientProviderError, classify_http_status

logger = logging.getLogger(__name__)

_COMPONENT = "google_calendar_client"
_CALENDAR_SCOPE = "https://www.googleapis.com/auth/calendar"
_NOT_FOUND = {404, 410}


class GoogleCalendarClient:
    """Implementacao de `invoke(request)` sobre a API v3 do Google.

    O SDK é síncrono; cada chamada roda em `asyncio.to_thread`.
    """

    __slots__ = ("_calendar_id", "_service", "_zone")

    def __init__(
        self,
        *,
        calendar_id: str,
        credentials_json: str,
        timezone: str,
        service: Any | None = None,
    ) -> None:
        self._calendar_id = calendar_id
        self._zone = ZoneInfo(timezone)
        if service is not None:
            self._service = service
            return
        credentials = service_account.Credentials.from_service_account_info(
            json.loads(credentials_json),
            scopes=[_CALENDAR_SCOPE],
        )
        self._service = build("calendar", "v3", credentials=credentials, cache_discovery=False)

    async def invoke(self, request: ProviderRequest) -> ProviderResponse:
        operation = request.operation
        try:
            if operation == ProviderOperation.LIST_CALENDARS:
                payload = await asyncio.to_thread(self._list_calendars_sync)
                return ProviderResponse(data=map_calendar_list(payload))
            if operation == ProviderOperation.CREATE_EVENT:
                payload = await asyncio.to_thread(self._insert_event_sync, request.body)
                return ProviderResponse(data=map_calendar_event(payload, self._zone))

            if not request.external_id:
                raise PermanentProviderError(f"external_id obrigatório para {operation.value}")
            if operation == ProviderOperation.GET_EVENT:
                payload = await asyncio.to_thread(self._get_event_sync, request.external_id)
                return ProviderResponse(data=map_calendar_event(payload, self._zone))
            if operation == ProviderOperation.UPDATE_EVENT:
                payload = await asyncio.to_thread(
                    self._patch_event_sync, request.external_id, request.body
                )
                return ProviderResponse(data=map_calendar_event(payload, self._zone))
            await asyncio.to_thread(self._delete_event_sync, request.external_id)
            return ProviderResponse()
        except HttpError as exc:
            status_code = http_status(exc)
            if status_code in _NOT_FOUND and operation in (
                ProviderOperation.GET_EVENT,
                ProviderOperation.DELETE_EVENT,
            ):
                logger.info(
                    "google_calendar_event_missing",
                    extra={
                        "component": _COMPONENT,
                        "action": operation.value,
                        "result": "not_found",
                        "correlation_id": get_correlation_id(),
                    },
                )
                return ProviderResponse(found=False, status_code=status_code)
            self._log_error(action=operation.value, exc=exc)
            if status_code is None:
                raise TransientProviderError(f"{_COMPONENT}:{operation.value}:http_error") from exc
            error_cls = classify_http_status(status_code)
            raise error_cls(
                f"{_COMPONENT}:{operation.value}:http_{status_code}",
                status_code=status_code,
            ) from exc

    def _list_calendars_sync(self) -> dict[str, Any]:
        return self._service.calendarList().list().execute()

    def _insert_event_sync(self, body: dict[str, Any]) -> dict[str, Any]:
        return self._service.events().insert(
            calendarId=self._calendar_id,
            body=body,
            sendUpdates="all",
        ).execute()

    def _patch_event_sync(self, event_id: str, body: dict[str, Any]) -> dict[str, Any]:
        return self._service.events().patch(
            calendarId=self._calendar_id,
            eventId=event_id,
            body=body,
            sendUpdates="all",
        ).execute()

    def _delete_event_sync(self, event_id: str) -> None:
        self._service.events().delete(
            calendarId=self._calendar_id,
            eventId=event_id,
            sendUpdates="all",
        ).execute()

    def _get_event_sync(self, event_id: str) -> dict[str, Any]:
        return self._service.events().get(calendarId=self._calendar_id, eventId=event_id).execute()

    def _log_error(self, *, action: str, exc: HttpError) -> None:
        logger.error(
            "google_calendar_http_error",
            extra={
                "component": _COMPONENT,
                "action": action,
                "result": "error",
                "status_code": http_status(exc),
                "error_type": type(exc).__name__,
                "correlation_id": get_correlation_id(),
            },
        )
