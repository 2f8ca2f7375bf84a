"""Verificação de webhooks Zoom.

Assinatura: `x-zm-signature = v0=<hex(HMAC-SHA256(secret, "v0:{ts}:{body}"))>`
com `x-zm-request-timestamp` dentro da tolerância (default 5 min).

Handshake `endpoint.url_validation`: responde
`{plainToken, encryptedToken=hex(HMAC-SHA256(secret, plainToken))}`.
"""

from __future__ import annotations

import json
import time
from typing import TYPE_CHECKING

from api.verifiers.base import (
    VerificationResult,
    accepted,
    constant_time_equals,
    hmac_sha256_hex,
    malformed,
    rejected,
)

if TYPE_CHECKING:
    from config.settings.webhooks import WebhookSettings

SIGNATURE_VERSION = "v0"
URL_VALIDATION_EVENT = "endpoint.url_validation"


def expected_signature(secret: str, timestamp: str, raw_body: bytes) -> str:
    message = f"{SIGNATURE_VERSION}:{timestamp}:".encode() + raw_body
    return f"{SIGNATURE_VERSION}={hmac_sha256_hex(secret, message)}"


def _url_validation(raw_body: bytes, secret: str) -> VerificationResult | None:
    try:
        payload = json.loads(raw_body or b"{}")
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    if not isinstance(payload, dict) or payload.get("event") != URL_VALIDATION_EVENT:
        return None

    # Assinatura já conferida: estrutura inválida é payload inválido
    body = payload.get("payload")
    if not isinstance(body, dict):
        return malformed("invalid_validation_payload")
    plain_token = body.get("plainToken")
    if not isinstance(plain_token, str) or not plain_token:
        return malformed("missing_plain_token")
    return VerificationResult(
        ok=True,
        challenge_response={
            "plainToken": plain_token,
            "encryptedToken": hmac_sha256_hex(secret, str(plain_token).encode("utf-8")),
        },
    )


def verify_zoom(
    headers: dict[str, str],
    raw_body: bytes,
    settings: WebhookSettings,
    now: float | None = None,
) -> VerificationResult:
    secret = settings.zoom_secret_token
    if not secret:
        return rejected("secret_token_not_configured")

    signature = headers.get("x-zm-signature")
    timestamp = headers.get("x-zm-request-timestamp")
    if not signature:
        return rejected("missing_header:x-zm-signature")
    if not timestamp:
        return rejected("missing_header:x-zm-request-timestamp")

    try:
        sent_at = int(timestamp)
    except ValueError:
        return rejected("invalid_timestamp")
    current = time.time() if now is None else now
    if abs(current - sent_at) > settings.zoom_timestamp_tolerance_seconds:
        return rejected("timestamp_out_of_tolerance")

    if not constant_time_equals(signature, expected_signature(secret, timestamp, raw_body)):
        return rejected("invalid_signature")

    # Handshake também chega assinado
    return _url_validation(raw_body, secret) or accepted()
