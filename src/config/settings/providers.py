"""Settings dos clientes de saida por provider.

Centralizar a leitura de env aqui evita espalhar parse de configuracao
pela aplicacao. Tokens OAuth ja chegam prontos (aquisicao fora do escopo).
"""

from __future__ import annotations

import os
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field


class ProviderClientSettings(BaseModel):
    """Configuracoes dos clientes concretos de Google, Graph e Zoom."""

    model_config = ConfigDict(extra="ignore")

    google_calendar_id: str = Field(
        default="primary",
        description="ID do calendario alvo no Google Calendar.",
    )
    google_service_account_json: str | None = Field(
        default=None,
        description="Credencial JSON da service account em formato texto.",
    )
    calendar_timezone: str = Field(
        default="America/Sao_Paulo",
        description="Timezone base para eventos sem offset.",
    )
    graph_base_url: str = Field(
        default="https://graph.microsoft.com/v1.0",
        description="URL base da Microsoft Graph API.",
    )
    graph_access_token: str | None = Field(
        default=None,
        description="Bearer token da Graph API.",
    )
    zoom_base_url: str = Field(
        default="https://api.zoom.us/v2",
        description="URL base da Zoom API.",
    )
    zoom_access_token: str | None = Field(
        default=None,
        description="Bearer token da Zoom API.",
    )
    caldav_bridge_url: str | None = Field(
        default=None,
        description="URL base do bridge CalDAV (JSON).",
    )
    caldav_bridge_api_key: str | None = Field(
        default=None,
        description="Chave do bridge CalDAV.",
    )
    http_timeout_seconds: float = Field(
        default=15.0,
        gt=0,
        description="Timeout das chamadas HTTP aos providers.",
    )

    @property
    def google_enabled(self) -> bool:
        return bool(self.google_service_account_json)

    @property
    def graph_enabled(self) -> bool:
        return bool(self.graph_access_token)

    @property
    def caldav_enabled(self) -> bool:
        return bool(self.caldav_bridge_url and self.caldav_bridge_api_key)

    @property
    def zoom_enabled(self) -> bool:
        return bool(self.zoom_access_token)


def _read_optional_env(key: str) -> str | None:
    """Retorna valor opcional da env sem propagar string vazia."""
    raw_value = os.getenv(key)
    if raw_value is None:
        return None
    stripped_value = raw_value.strip()
    return stripped_value or None


def _load_providers_from_env() -> ProviderClientSettings:
    """Carrega ProviderClientSettings a partir de variaveis de ambiente."""
    return ProviderClientSettings(
        google_calendar_id=os.getenv("GOOGLE_CALENDAR_ID", "primary"),
        google_service_account_json=_read_optional_env("GOOGLE_SERVICE_ACCOUNT_JSON"),
        calendar_timezone=os.getenv("CALENDAR_TIMEZONE", "America/Sao_Paulo"),
        graph_base_url=os.getenv("GRAPH_BASE_URL", "https://graph.microsoft.com/v1.0"),
        graph_access_token=_read_optional_env("GRAPH_ACCESS_TOKEN"),
        zoom_base_url=os.getenv("ZOOM_BASE_URL", "https://api.zoom.us/v2"),
        zoom_access_token=_read_optional_env("ZOOM_ACCESS_TOKEN"),
        caldav_bridge_url=_read_optional_env("CALDAV_BRIDGE_URL"),
        caldav_bridge_api_key=_read_optional_env("CALDAV_BRIDGE_API_KEY"),
        http_timeout_seconds=float(os.getenv("PROVIDER_HTTP_TIMEOUT_SECONDS", "15")),
    )


@lru_cache(maxsize=1)
def get_provider_client_settings() -> ProviderClientSettings:
    """Retorna instancia cacheada de ProviderClientSettings."""
    return _load_providers_from_env()


__all__ = ["ProviderClientSettings", "get_provider_client_settings"]
