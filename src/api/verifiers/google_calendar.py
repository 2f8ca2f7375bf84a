"""Verificação de notificações push do Google Calendar.

O Google não assina o corpo: a autenticidade vem do token registrado no
watch (`x-goog-channel-token`) e dos headers obrigatórios do canal.
"""

from __future__ import annotations

from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from typing import TYPE_CHECKING

from api.verifiers.base import VerificationResult, accepted, constant_time_equals, rejected

if TYPE_CHECKING:
    from config.settings.webhooks import WebhookSettings

REQUIRED_HEADERS = ("x-goog-channel-id", "x-goog-resource-id", "x-goog-resource-state")
VALID_RESOURCE_STATES = frozenset({"exists", "not_exists", "sync"})


def _parse_expiration(raw: str) -> datetime | None:
    # Google envia RFC 1123 (ex.: "Tue, 19 Nov 2026 01:13:52 GMT")
    try:
        parsed = parsedate_to_datetime(raw)
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def verify_google_calendar(
    headers: dict[str, str],
    settings: WebhookSettings,
    now: datetime | None = None,
) -> VerificationResult:
    if not settings.google_channel_token:
        return rejected("channel_token_not_configured")

    for name in REQUIRED_HEADERS:
        if not headers.get(name):
            return rejected(f"missing_header:{name}")

    if headers["x-goog-resource-state"] not in VALID_RESOURCE_STATES:
        return rejected("invalid_resource_state")

    if not constant_time_equals(headers.get("x-goog-channel-token"), settings.google_channel_token):
        return rejected("invalid_channel_token")

    raw_expiration = headers.get("x-goog-channel-expiration")
    if raw_expiration:
        expiration = _parse_expiration(raw_expiration)
        if expiration is None:
            return rejected("invalid_channel_expiration")
        if expiration < (now or datetime.now(UTC)):
            return rejected("channel_expired")

    return accepted()
