"""Verificação de notificações de subscription do Microsoft Graph.

Handshake: na criação da subscription o Graph envia `validationToken` na
query e espera o token de volta em text/plain. Notificações comuns trazem
`clientState` em cada item de `value`.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from api.verifiers.base import VerificationResult, accepted, constant_time_equals, rejected

if TYPE_CHECKING:
    from collections.abc import Mapping

    from config.settings.webhooks import WebhookSettings


def verify_microsoft_graph(
    raw_body: bytes,
    query: Mapping[str, str],
    settings: WebhookSettings,
) -> VerificationResult:
    validation_token = query.get("validationToken")
    if validation_token:
        return VerificationResult(
            ok=True,
            challenge_response=validation_token,
            challenge_media_type="text/plain",
        )

    if not settings.graph_client_state:
        return rejected("client_state_not_configured")

    try:
        payload = json.loads(raw_body or b"{}")
    except (json.JSONDecodeError, UnicodeDecodeError):
        return rejected("invalid_json")

    notifications = payload.get("value") if isinstance(payload, dict) else None
    if not isinstance(notifications, list) or not notifications:
        return rejected("missing_value_array")

    for notification in notifications:
        client_state = notification.get("clientState") if isinstance(notification, dict) else None
        if not constant_time_equals(client_state, settings.graph_client_state):
            return rejected("invalid_client_state")

    return accepted()
