"""Testes do composition root: validação de settings, clientes e container."""

from __future__ import annotations

import pytest

from app.bootstrap import collect_settings_errors, validate_runtime_settings
from app.bootstrap.clients import create_provider_clients
from app.bootstrap.dependencies import build_container
from app.domain.change_event import Provider
from app.infra.monitoring import LogMonitoringSink
from app.infra.rate_limit import MemoryRateLimiter
from app.infra.stores import MemoryCommitmentStore, MemoryDedupeStore, MemoryIntegrationDirectory
from config.settings import (
    ConflictSettings,
    DedupeSettings,
    FirestoreSettings,
    ProtectionSettings,
    ProviderClientSettings,
    QueueSettings,
    WebhookSettings,
    get_base_settings,
    get_conflict_settings,
    get_dedupe_settings,
    get_firestore_settings,
    get_protection_settings,
    get_queue_settings,
    get_webhook_settings,
)
from tests.fakes.fake_provider_client import FakeProviderClient

_GETTERS = (
    get_base_settings,
    get_conflict_settings,
    get_dedupe_settings,
    get_firestore_settings,
    get_protection_settings,
    get_queue_settings,
    get_webhook_settings,
)


@pytest.fixture
def fresh_settings(monkeypatch: pytest.MonkeyPatch):  # type: ignore[no-untyped-def]
    for name in ("REDIS_URL", "DEDUPE_BACKEND", "QUEUE_BACKEND", "MONITORING_BACKEND", "DIRECTORY_BACKEND"):
        monkeypatch.delenv(name, raising=False)
    for getter in _GETTERS:
        getter.cache_clear()
    yield monkeypatch
    for getter in _GETTERS:
        getter.cache_clear()


class TestRuntimeValidation:
    def test_errors_are_prefixed_by_domain(self, fresh_settings) -> None:  # type: ignore[no-untyped-def]
        fresh_settings.setenv("ENVIRONMENT", "development")

        errors = collect_settings_errors()

        assert "webhooks: GOOGLE_CHANNEL_TOKEN não configurado" in errors
        assert not any(error.startswith("dedupe:") for error in errors)

    def test_development_only_warns(self, fresh_settings) -> None:  # type: ignore[no-untyped-def]
        fresh_settings.setenv("ENVIRONMENT", "development")

        validate_runtime_settings()

    def test_production_fails_fast(self, fresh_settings) -> None:  # type: ignore[no-untyped-def]
        fresh_settings.setenv("ENVIRONMENT", "production")

        with pytest.raises(RuntimeError, match="Configuração inválida para production") as exc_info:
            validate_runtime_settings()

        assert "dedupe: DEDUPE_BACKEND=memory proibido" in str(exc_info.value)

    def test_production_with_complete_config_boots(self, fresh_settings) -> None:  # type: ignore[no-untyped-def]
        env = {
            "ENVIRONMENT": "production",
            "REDIS_URL": "redis://localhost:6379/0",
            "DEDUPE_BACKEND": "redis",
            "GOOGLE_CHANNEL_TOKEN": "a",
            "GRAPH_CLIENT_STATE": "b",
            "ZOOM_WEBHOOK_SECRET_TOKEN": "c",
            "CALDAV_WEBHOOK_API_KEY": "d",
        }
        for key, value in env.items():
            fresh_settings.setenv(key, value)

        validate_runtime_settings()


def test_only_configured_provider_clients_are_created() -> None:
    clients = create_provider_clients(
        ProviderClientSettings(graph_access_token="graph-token", zoom_access_token="zoom-token")
    )

    assert set(clients) == {Provider.MICROSOFT_GRAPH, Provider.ZOOM}


def test_no_configuration_means_no_clients() -> None:
    assert create_provider_clients(ProviderClientSettings()) == {}


def test_container_uses_memory_backends_by_default() -> None:
    client = FakeProviderClient()

    container = build_container(
        webhook_settings=WebhookSettings(),
        queue_settings=QueueSettings(concurrency=2),
        protection_settings=ProtectionSettings(),
        conflict_settings=ConflictSettings(default_buffer_minutes=5),
        dedupe_settings=DedupeSettings(),
        firestore_settings=FirestoreSettings(),
        provider_clients={Provider.CALDAV: client},
    )

    assert isinstance(container.commitments, MemoryCommitmentStore)
    assert isinstance(container.integrations, MemoryIntegrationDirectory)
    assert isinstance(container.dedupe, MemoryDedupeStore)
    assert isinstance(container.rate_limiter, MemoryRateLimiter)
    assert isinstance(container.monitoring, LogMonitoringSink)
    assert container.queue.settings.concurrency == 2
    assert container.conflict_settings.default_buffer_minutes == 5
