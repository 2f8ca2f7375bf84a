"""Testes da verificação de webhooks Zoom."""

from __future__ import annotations

import hashlib
import hmac
import json

from api.verifiers.zoom import expected_signature, verify_zoom
from config.settings.webhooks import WebhookSettings

SECRET = "zoom-secret"
SETTINGS = WebhookSettings(zoom_secret_token=SECRET)
NOW = 1_760_000_000


def _signed_headers(body: bytes, timestamp: int = NOW) -> dict[str, str]:
    return {
        "x-zm-request-timestamp": str(timestamp),
        "x-zm-signature": expected_signature(SECRET, str(timestamp), body),
    }


def test_expected_signature_format() -> None:
    body = b'{"event":"meeting.started"}'
    digest = hmac.new(SECRET.encode(), b"v0:123:" + body, hashlib.sha256).hexdigest()

    assert expected_signature(SECRET, "123", body) == f"v0={digest}"


def test_valid_signature_is_accepted() -> None:
    body = b'{"event":"meeting.started","payload":{"object":{"id":"1"}}}'

    result = verify_zoom(_signed_headers(body), body, SETTINGS, now=NOW)

    assert result.ok is True
    assert result.is_handshake is False


def test_tampered_body_is_rejected() -> None:
    body = b'{"event":"meeting.started"}'
    headers = _signed_headers(body)

    result = verify_zoom(headers, b'{"event":"meeting.ended"}', SETTINGS, now=NOW)

    assert result.reason == "invalid_signature"


def test_timestamp_outside_tolerance_is_rejected() -> None:
    body = b"{}"
    headers = _signed_headers(body, timestamp=NOW - 301)

    result = verify_zoom(headers, body, SETTINGS, now=NOW)

    assert result.reason == "timestamp_out_of_tolerance"


def test_timestamp_at_tolerance_edge_is_accepted() -> None:
    body = b"{}"
    headers = _signed_headers(body, timestamp=NOW - 300)

    assert verify_zoom(headers, body, SETTINGS, now=NOW).ok is True


def test_non_numeric_timestamp_is_rejected() -> None:
    headers = {"x-zm-request-timestamp": "yesterday", "x-zm-signature": "v0=abc"}

    assert verify_zoom(headers, b"{}", SETTINGS, now=NOW).reason == "invalid_timestamp"


def test_missing_signature_header_is_rejected() -> None:
    headers = {"x-zm-request-timestamp": str(NOW)}

    assert verify_zoom(headers, b"{}", SETTINGS, now=NOW).reason == "missing_header:x-zm-signature"


def test_url_validation_returns_encrypted_token() -> None:
    body = json.dumps(
        {"event": "endpoint.url_validation", "payload": {"plainToken": "plain-abc"}}
    ).encode()

    result = verify_zoom(_signed_headers(body), body, SETTINGS, now=NOW)

    expected = hmac.new(SECRET.encode(), b"plain-abc", hashlib.sha256).hexdigest()
    assert result.is_handshake is True
    assert result.challenge_response == {"plainToken": "plain-abc", "encryptedToken": expected}


def test_url_validation_requires_valid_signature() -> None:
    body = json.dumps(
        {"event": "endpoint.url_validation", "payload": {"plainToken": "plain-abc"}}
    ).encode()
    headers = {"x-zm-request-timestamp": str(NOW), "x-zm-signature": "v0=forged"}

    result = verify_zoom(headers, body, SETTINGS, now=NOW)

    assert result.ok is False
    assert result.reason == "invalid_signature"


def test_signed_url_validation_with_bad_payload_is_malformed() -> None:
    body = json.dumps({"event": "endpoint.url_validation", "payload": "x"}).encode()

    result = verify_zoom(_signed_headers(body), body, SETTINGS, now=NOW)

    assert result.ok is True
    assert result.malformed is True
    assert result.is_handshake is False
    assert result.reason == "invalid_validation_payload"
