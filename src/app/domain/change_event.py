"""Modelo canônico de notificação de provider.

Cada webhook autenticado é convertido em um ou mais ChangeEvent, independente
do formato original (headers, array JSON ou objeto único).
"""

from __future__ import annotations

import hashlib
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from types import MappingProxyType
from typing import Any


class Provider(str, Enum):
    """Providers externos sincronizados."""

    GOOGLE_CALENDAR = "google_calendar"
    MICROSOFT_GRAPH = "microsoft_graph"
    ZOOM = "zoom"
    CALDAV = "caldav"

    @classmethod
    def parse(cls, value: str) -> Provider | None:
        """Converte identificador de rota em Provider (None se desconhecido)."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class ChangeKind(str, Enum):
    """Classificação do que mudou no provider."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    CALENDAR_LEVEL = "calendar_level"


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    """Notificação normalizada e imutável.

    Atributos:
        provider: Provider de origem
        external_id: ID opaco do recurso no provider
        change_kind: Tipo de mudança
        received_at: Momento do recebimento
        raw_correlation_id: Chave de correlação (channel, subscription, meeting)
        event_type: Nome nativo do evento (ex: meeting.started, exists)
        version: Marcador de versão do provider (message number, etag, event_ts)
        resource_uri: URI do recurso quando o provider informa
        details: Campos extras somente leitura
    """

    provider: Provider
    external_id: str
    change_kind: ChangeKind
    raw_correlation_id: str
    received_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    event_type: str = ""
    version: str = ""
    resource_uri: str = ""
    details: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "details", MappingProxyType(dict(self.details)))

    @property
    def fingerprint(self) -> str:
        """Chave de idempotência do efeito (mesma mudança → mesmo fingerprint)."""
        raw = "|".join(
            (
                self.provider.value,
                self.external_id,
                self.change_kind.value,
                self.version,
                self.raw_correlation_id,
            )
        )
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()


__all__ = ["ChangeEvent", "ChangeKind", "Provider"]
