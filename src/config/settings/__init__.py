"""Agregador de settings do agenda-sync.

Re-exporta todas as settings e funções de cada módulo.
Organização por domínio para isolamento de mudanças.
"""

from __future__ import annotations

# Base settings
from config.settings.base import (
    BaseSettings,
    DedupeBackend,
    DedupeSettings,
    Environment,
    get_base_settings,
    get_dedupe_settings,
)

# Conflitos
from config.settings.conflicts import (
    ConflictSettings,
    get_conflict_settings,
)

# Infrastructure settings
from config.settings.infra import (
    DirectoryBackend,
    FirestoreSettings,
    MonitoringBackend,
    get_firestore_settings,
)

# Proteção de saída
from config.settings.protection import (
    ProtectionSettings,
    get_protection_settings,
)

# Clientes de provider
from config.settings.providers import (
    ProviderClientSettings,
    get_provider_client_settings,
)

# Fila
from config.settings.queue import (
    JobStoreBackend,
    QueueSettings,
    get_queue_settings,
)

# Webhooks
from config.settings.webhooks import (
    WebhookSettings,
    get_webhook_settings,
)

__all__ = [
    "BaseSettings",
    "ConflictSettings",
    "DedupeBackend",
    "DirectoryBackend",
    "DedupeSettings",
    "Environment",
    "FirestoreSettings",
    "JobStoreBackend",
    "MonitoringBackend",
    "ProtectionSettings",
    "ProviderClientSettings",
    "QueueSettings",
    "WebhookSettings",
    "get_base_settings",
    "get_conflict_settings",
    "get_dedupe_settings",
    "get_firestore_settings",
    "get_protection_settings",
    "get_provider_client_settings",
    "get_queue_settings",
    "get_webhook_settings",
]
