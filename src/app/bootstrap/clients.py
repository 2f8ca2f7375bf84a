"""Factories de clientes externos: Redis, Firestore e providers.

Clientes de infraestrutura são singletons; clientes de provider só são
criados quando a configuração correspondente existe.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import TYPE_CHECKING

from app.domain.change_event import Provider

if TYPE_CHECKING:
    from google.cloud.firestore import Client as FirestoreClient
    from redis.asyncio import Redis as AsyncRedis

    from app.protocols.provider_client import ProviderClientProtocol
    from config.settings.providers import ProviderClientSettings

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────────────────────────────────────
# Redis Client Factory
# ──────────────────────────────────────────────────────────────────────────────


@lru_cache(maxsize=1)
def create_async_redis_client() -> AsyncRedis[bytes]:
    """Cria cliente Redis assíncrono (singleton).

    Returns:
        Cliente Redis assíncrono

    Raises:
        ValueError: Se REDIS_URL não configurado
    """
    from redis.asyncio import Redis as AsyncRedis

    redis_url = os.getenv("REDIS_URL")
    if not redis_url:
        msg = "REDIS_URL não configurado"
        raise ValueError(msg)

    client: AsyncRedis[bytes] = AsyncRedis.from_url(
        redis_url,
        decode_responses=False,
        socket_timeout=5.0,
        socket_connect_timeout=5.0,
    )

    logger.info("async_redis_client_created")
    return client


# ──────────────────────────────────────────────────────────────────────────────
# Firestore Client Factory
# ──────────────────────────────────────────────────────────────────────────────


@lru_cache(maxsize=1)
def create_firestore_client() -> FirestoreClient:
    """Cria cliente Firestore (singleton).

    Returns:
        Cliente Firestore
    """
    from google.cloud import firestore

    project_id = os.getenv("FIRESTORE_PROJECT_ID") or os.getenv("GCP_PROJECT")
    client = firestore.Client(project=project_id)
    logger.info("firestore_client_created", extra={"project": project_id})
    return client


# ──────────────────────────────────────────────────────────────────────────────
# Provider Client Factories
# ──────────────────────────────────────────────────────────────────────────────


def create_provider_clients(
    settings: ProviderClientSettings,
) -> dict[Provider, ProviderClientProtocol]:
    """Cria os clientes de provider configurados.

    Providers sem configuração ficam de fora; jobs para eles falham como
    PermanentProviderError na camada de proteção.
    """
    clients: dict[Provider, ProviderClientProtocol] = {}

    if settings.google_enabled and settings.google_service_account_json:
        from app.infra.calendar import GoogleCalendarClient

        clients[Provider.GOOGLE_CALENDAR] = GoogleCalendarClient(
            calendar_id=settings.google_calendar_id,
            credentials_json=settings.google_service_account_json,
            timezone=settings.calendar_timezone,
        )

    if settings.graph_enabled and settings.graph_access_token:
        from api.connectors.microsoft_graph import GraphCalendarClient

        clients[Provider.MICROSOFT_GRAPH] = GraphCalendarClient(
            base_url=settings.graph_base_url,
            access_token=settings.graph_access_token,
            timeout_seconds=settings.http_timeout_seconds,
        )

    if settings.zoom_enabled and settings.zoom_access_token:
        from api.connectors.zoom import ZoomMeetingClient

        clients[Provider.ZOOM] = ZoomMeetingClient(
            base_url=settings.zoom_base_url,
            access_token=settings.zoom_access_token,
            timeout_seconds=settings.http_timeout_seconds,
        )

    if settings.caldav_enabled and settings.caldav_bridge_url and settings.caldav_bridge_api_key:
        from api.connectors.caldav import CalDavBridgeClient

        clients[Provider.CALDAV] = CalDavBridgeClient(
            base_url=settings.caldav_bridge_url,
            api_key=settings.caldav_bridge_api_key,
            timeout_seconds=settings.http_timeout_seconds,
        )

    logger.info(
        "provider_clients_created",
        extra={
            "component": "bootstrap",
            "providers": sorted(provider.value for provider in clients),
        },
    )
    return clients
