"""Normalizers por provider: notificações externas para ChangeEvent.

Estrutura:
- google_calendar/: somente headers do canal
- microsoft_graph/: lote `value` (um evento por item)
- zoom/: eventos de reunião
- caldav/: bridge com payload JSON próprio

Cada provider tem seu próprio extractor e normalizer. Lista vazia significa
"nenhuma mudança acionável" (handshake, estado ignorado).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from app.domain.change_event import ChangeEvent, Provider
from utils.errors import ValidationError

from . import caldav, google_calendar, microsoft_graph, zoom
from .classification import REALTIME_MEETING_EVENTS, classify_priority, job_kind_for

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime


def normalize(
    provider: Provider,
    headers: Mapping[str, str],
    raw_body: bytes,
    received_at: datetime | None = None,
) -> list[ChangeEvent]:
    """Converte uma notificação autenticada em eventos canônicos.

    Raises:
        ValidationError: Payload malformado ou campos obrigatórios ausentes.
    """
    if provider == Provider.GOOGLE_CALENDAR:
        lowered = {key.lower(): value for key, value in headers.items()}
        return google_calendar.normalize_notification(lowered, received_at)
    if provider == Provider.MICROSOFT_GRAPH:
        return microsoft_graph.normalize_notifications(raw_body, received_at)
    if provider == Provider.ZOOM:
        return zoom.normalize_notification(raw_body, received_at)
    if provider == Provider.CALDAV:
        return caldav.normalize_notification(raw_body, received_at)
    raise ValidationError(f"Provider sem normalizer: {provider}")


__all__ = [
    "REALTIME_MEETING_EVENTS",
    "classify_priority",
    "job_kind_for",
    "normalize",
]
