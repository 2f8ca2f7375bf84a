"""Verificação do bridge CalDAV (chave pré-compartilhada).

CalDAV não tem assinatura de servidor; o bridge envia `x-api-key` ou
`Authorization: Bearer <key>`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from api.verifiers.base import VerificationResult, accepted, constant_time_equals, rejected

if TYPE_CHECKING:
    from config.settings.webhooks import WebhookSettings

BEARER_PREFIX = "bearer "


def _presented_key(headers: dict[str, str]) -> str | None:
    api_key = headers.get("x-api-key")
    if api_key:
        return api_key
    authorization = headers.get("authorization", "")
    if authorization.lower().startswith(BEARER_PREFIX):
        return authorization[len(BEARER_PREFIX):].strip()
    return None


def verify_caldav(headers: dict[str, str], settings: WebhookSettings) -> VerificationResult:
    if not settings.caldav_api_key:
        return rejected("api_key_not_configured")

    presented = _presented_key(headers)
    if presented is None:
        return rejected("missing_api_key")
    if not constant_time_equals(presented, settings.caldav_api_key):
        return rejected("invalid_api_key")
    return accepted()
