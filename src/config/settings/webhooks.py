"""Settings de recebimento de webhooks por provider.

Segredos de verificação e limites de entrada (por provider e por origem).
Secrets vazios fazem a verificação falhar fechada.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache

DEFAULT_INBOUND_LIMITS_PER_MINUTE: dict[str, int] = {
    "google_calendar": 100,
    "microsoft_graph": 120,
    "zoom": 80,
    "caldav": 60,
}


@dataclass(frozen=True)
class WebhookSettings:
    """Configurações do gateway de webhooks.

    Attributes:
        google_channel_token: Token registrado no watch do Google Calendar
        graph_client_state: clientState registrado na subscription do Graph
        zoom_secret_token: Secret token do app Zoom (HMAC)
        zoom_timestamp_tolerance_seconds: Janela aceita para x-zm-request-timestamp
        caldav_api_key: Chave pré-compartilhada do bridge CalDAV
        rate_limit_window_seconds: Janela do rate limit de entrada
        inbound_limits_per_minute: Requisições por provider por origem
        rate_limit_backend: memory|redis
    """

    google_channel_token: str = ""
    graph_client_state: str = ""
    zoom_secret_token: str = ""
    zoom_timestamp_tolerance_seconds: int = 300
    caldav_api_key: str = ""
    rate_limit_window_seconds: int = 60
    inbound_limits_per_minute: dict[str, int] = field(
        default_factory=lambda: dict(DEFAULT_INBOUND_LIMITS_PER_MINUTE)
    )
    rate_limit_backend: str = "memory"

    def inbound_limit(self, provider: str) -> int:
        return self.inbound_limits_per_minute.get(provider, 60)

    def validate(self) -> list[str]:
        """Valida segredos mínimos.

        Returns:
            Lista de erros de validação (vazia = tudo OK).
        """
        errors: list[str] = []

        if not self.google_channel_token:
            errors.append("GOOGLE_CHANNEL_TOKEN não configurado")
        if not self.graph_client_state:
            errors.append("GRAPH_CLIENT_STATE não configurado")
        if not self.zoom_secret_token:
            errors.append("ZOOM_WEBHOOK_SECRET_TOKEN não configurado")
        if not self.caldav_api_key:
            errors.append("CALDAV_WEBHOOK_API_KEY não configurado")
        if self.zoom_timestamp_tolerance_seconds <= 0:
            errors.append("ZOOM_TIMESTAMP_TOLERANCE_SECONDS deve ser > 0")
        if self.rate_limit_backend not in ("memory", "redis"):
            errors.append(f"WEBHOOK_RATE_LIMIT_BACKEND inválido: {self.rate_limit_backend}")
        if any(limit <= 0 for limit in self.inbound_limits_per_minute.values()):
            errors.append("Limites de entrada devem ser > 0")

        return errors


def _load_inbound_limits() -> dict[str, int]:
    limits = dict(DEFAULT_INBOUND_LIMITS_PER_MINUTE)
    for provider in limits:
        raw = os.getenv(f"WEBHOOK_RATE_LIMIT_{provider.upper()}")
        if raw:
            limits[provider] = int(raw)
    return limits


def _load_from_env() -> WebhookSettings:
    """Carrega WebhookSettings a partir de variáveis de ambiente."""
    return WebhookSettings(
        google_channel_token=os.getenv("GOOGLE_CHANNEL_TOKEN", ""),
        graph_client_state=os.getenv("GRAPH_CLIENT_STATE", ""),
        zoom_secret_token=os.getenv("ZOOM_WEBHOOK_SECRET_TOKEN", ""),
        zoom_timestamp_tolerance_seconds=int(
            os.getenv("ZOOM_TIMESTAMP_TOLERANCE_SECONDS", "300")
        ),
        caldav_api_key=os.getenv("CALDAV_WEBHOOK_API_KEY", ""),
        rate_limit_window_seconds=int(os.getenv("WEBHOOK_RATE_LIMIT_WINDOW_SECONDS", "60")),
        inbound_limits_per_minute=_load_inbound_limits(),
        rate_limit_backend=os.getenv("WEBHOOK_RATE_LIMIT_BACKEND", "memory").lower(),
    )


@lru_cache(maxsize=1)
def get_webhook_settings() -> WebhookSettings:
    """Retorna instância cacheada de WebhookSettings."""
    return _load_from_env()
