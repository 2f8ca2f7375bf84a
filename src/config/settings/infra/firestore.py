"""Settings do Firestore.

Firestore guarda a trilha de auditoria da camada de monitoramento
(violações de segurança, transições de breaker, falhas de job) e, quando
habilitado, os compromissos e integrações consultados pelos handlers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Literal

MonitoringBackend = Literal["log", "firestore"]
DirectoryBackend = Literal["memory", "firestore"]


@dataclass(frozen=True)
class FirestoreSettings:
    """Configurações do Firestore.

    Attributes:
        project_id: ID do projeto GCP (usa GCP_PROJECT se não definido)
        collection_audit: Collection para auditoria de monitoramento
        collection_commitments: Collection de compromissos
        collection_integrations: Collection de integrações de calendário
        monitoring_backend: log (apenas logs) | firestore (logs + persistência)
        directory_backend: memory | firestore para compromissos e integrações
    """

    project_id: str = ""
    collection_audit: str = "sync_audit"
    collection_commitments: str = "commitments"
    collection_integrations: str = "calendar_integrations"
    monitoring_backend: MonitoringBackend = "log"
    directory_backend: DirectoryBackend = "memory"

    @property
    def enabled(self) -> bool:
        return self.monitoring_backend == "firestore" or self.directory_backend == "firestore"

    def validate(self, gcp_project: str) -> list[str]:
        """Valida configurações do Firestore.

        Args:
            gcp_project: Projeto GCP padrão para fallback.

        Returns:
            Lista de erros de validação.
        """
        errors: list[str] = []
        if not self.enabled:
            return errors

        if not (self.project_id or gcp_project):
            errors.append("FIRESTORE_PROJECT_ID ou GCP_PROJECT deve estar configurado")

        return errors


def _load_firestore_from_env() -> FirestoreSettings:
    """Carrega FirestoreSettings de variáveis de ambiente."""
    backend_str = os.getenv("MONITORING_BACKEND", "log").lower()
    backend: MonitoringBackend = "firestore" if backend_str == "firestore" else "log"
    directory_str = os.getenv("DIRECTORY_BACKEND", "memory").lower()
    directory: DirectoryBackend = "firestore" if directory_str == "firestore" else "memory"
    return FirestoreSettings(
        project_id=os.getenv("FIRESTORE_PROJECT_ID", ""),
        collection_audit=os.getenv("FIRESTORE_COLLECTION_AUDIT", "sync_audit"),
        collection_commitments=os.getenv("FIRESTORE_COLLECTION_COMMITMENTS", "commitments"),
        collection_integrations=os.getenv(
            "FIRESTORE_COLLECTION_INTEGRATIONS", "calendar_integrations"
        ),
        monitoring_backend=backend,
        directory_backend=directory,
    )


@lru_cache(maxsize=1)
def get_firestore_settings() -> FirestoreSettings:
    """Retorna instância cacheada de FirestoreSettings."""
    return _load_firestore_from_env()
