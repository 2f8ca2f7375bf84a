"""Verificação de autenticidade de webhooks por provider.

Puro: não registra nem levanta; o gateway decide 401 e reporta ao
monitoramento. Falha fechada para header ausente ou secret não configurado.

Uso:
    from api.verifiers import verify_webhook

    result = verify_webhook(Provider.ZOOM, headers, raw_body, settings=settings)
    if not result.ok:
        ...
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from api.verifiers.base import VerificationResult, lower_headers, rejected
from api.verifiers.caldav import verify_caldav
from api.verifiers.google_calendar import verify_google_calendar
from api.verifiers.microsoft_graph import verify_microsoft_graph
from api.verifiers.zoom import verify_zoom
from app.domain.change_event import Provider
from config.settings.webhooks import get_webhook_settings

if TYPE_CHECKING:
    from collections.abc import Mapping

    from config.settings.webhooks import WebhookSettings


def verify_webhook(
    provider: Provider,
    headers: Mapping[str, str],
    raw_body: bytes,
    query: Mapping[str, str] | None = None,
    settings: WebhookSettings | None = None,
) -> VerificationResult:
    """Verifica a requisição conforme o esquema do provider."""
    settings = settings or get_webhook_settings()
    normalized = lower_headers(headers)

    if provider == Provider.GOOGLE_CALENDAR:
        return verify_google_calendar(normalized, settings)
    if provider == Provider.MICROSOFT_GRAPH:
        return verify_microsoft_graph(raw_body, query or {}, settings)
    if provider == Provider.ZOOM:
        return verify_zoom(normalized, raw_body, settings)
    if provider == Provider.CALDAV:
        return verify_caldav(normalized, settings)
    return rejected("unsupported_provider")


__all__ = ["VerificationResult", "verify_webhook"]
