"""Extrator de push notifications do Google Calendar.

O Google envia apenas headers (corpo vazio):
- X-Goog-Channel-ID: canal do watch (chave de correlação)
- X-Goog-Resource-ID: recurso observado
- X-Goog-Resource-State: sync | exists | not_exists
- X-Goog-Resource-URI: URI do recurso
- X-Goog-Message-Number: número crescente por canal
"""

from __future__ import annotations

from dataclasses import dataclass

from utils.errors import ValidationError


@dataclass(frozen=True, slots=True)
class GoogleNotification:
    channel_id: str
    resource_id: str
    resource_state: str
    resource_uri: str = ""
    message_number: str = ""
    channel_expiration: str = ""


def extract_notification(headers: dict[str, str]) -> GoogleNotification:
    """Extrai a notificação dos headers (nomes já em minúsculas)."""
    channel_id = headers.get("x-goog-channel-id", "")
    resource_id = headers.get("x-goog-resource-id", "")
    resource_state = headers.get("x-goog-resource-state", "")
    if not channel_id or not resource_id or not resource_state:
        raise ValidationError("Headers obrigatórios do Google Calendar ausentes")

    return GoogleNotification(
        channel_id=channel_id,
        resource_id=resource_id,
        resource_state=resource_state.lower(),
        resource_uri=headers.get("x-goog-resource-uri", ""),
        message_number=headers.get("x-goog-message-number", ""),
        channel_expiration=headers.get("x-goog-channel-expiration", ""),
    )
