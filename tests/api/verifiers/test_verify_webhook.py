"""Testes do despacho de verificação por provider e do bridge CalDAV."""

from __future__ import annotations

import pytest

from api.verifiers import verify_webhook
from api.verifiers.base import constant_time_equals
from app.domain.change_event import Provider
from config.settings.webhooks import WebhookSettings

SETTINGS = WebhookSettings(
    google_channel_token="g",
    graph_client_state="m",
    zoom_secret_token="z",
    caldav_api_key="caldav-key",
)


@pytest.mark.parametrize(
    "headers",
    [
        {"X-API-Key": "caldav-key"},
        {"Authorization": "Bearer caldav-key"},
    ],
)
def test_caldav_accepts_api_key_or_bearer(headers: dict[str, str]) -> None:
    result = verify_webhook(Provider.CALDAV, headers, b"{}", settings=SETTINGS)

    assert result.ok is True


def test_caldav_rejects_wrong_key() -> None:
    result = verify_webhook(Provider.CALDAV, {"x-api-key": "nope"}, b"{}", settings=SETTINGS)

    assert result.reason == "invalid_api_key"


def test_caldav_rejects_missing_key() -> None:
    result = verify_webhook(Provider.CALDAV, {}, b"{}", settings=SETTINGS)

    assert result.reason == "missing_api_key"


def test_headers_are_matched_case_insensitively() -> None:
    headers = {
        "X-Goog-Channel-ID": "c",
        "X-Goog-Resource-ID": "r",
        "X-Goog-Resource-State": "sync",
        "X-Goog-Channel-Token": "g",
    }

    result = verify_webhook(Provider.GOOGLE_CALENDAR, headers, b"", settings=SETTINGS)

    assert result.ok is True


def test_graph_query_is_forwarded() -> None:
    result = verify_webhook(
        Provider.MICROSOFT_GRAPH,
        {},
        b"",
        query={"validationToken": "tok"},
        settings=SETTINGS,
    )

    assert result.challenge_response == "tok"


def test_constant_time_equals_never_matches_empty() -> None:
    assert constant_time_equals("", "") is False
    assert constant_time_equals(None, "x") is False
    assert constant_time_equals("x", "x") is True
