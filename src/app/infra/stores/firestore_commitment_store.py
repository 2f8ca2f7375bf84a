"""Firestore Commitment Store e diretório de integrações.

Compromissos e integrações pertencem ao sistema de agendamento; aqui só as
consultas que os handlers de sync e o motor de conflitos usam.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from google.cloud.firestore_v1.base_query import FieldFilter

from app.domain.commitment import Commitment
from app.protocols.commitment_store import CommitmentStoreProtocol
from app.protocols.integration_directory import Integration, IntegrationDirectoryProtocol
from utils.errors import FirestoreUnavailableError

if TYPE_CHECKING:
    from datetime import datetime

    from google.cloud.firestore import Client as FirestoreClient

logger = logging.getLogger(__name__)

COMMITMENTS_COLLECTION = "commitments"
INTEGRATIONS_COLLECTION = "calendar_integrations"


class FirestoreCommitmentStore(CommitmentStoreProtocol):
    """Store de compromissos usando Firestore (documento por id)."""

    def __init__(
        self,
        firestore_client: FirestoreClient,
        collection_name: str = COMMITMENTS_COLLECTION,
    ) -> None:
        self._db = firestore_client
        self._collection = collection_name

    async def list_for_user(
        self,
        user_id: str,
        window_start: datetime,
        window_end: datetime,
    ) -> list[Commitment]:
        return await asyncio.to_thread(self._list_for_user_sync, user_id, window_start, window_end)

    def _list_for_user_sync(
        self,
        user_id: str,
        window_start: datetime,
        window_end: datetime,
    ) -> list[Commitment]:
        query = (
            self._db.collection(self._collection)
            .where(filter=FieldFilter("user_id", "==", user_id))
            .where(filter=FieldFilter("start", "<", window_end))
        )
        # Firestore aceita range em um campo só; `end` filtrado aqui
        return [
            commitment
            for commitment in self._stream(query, "commitment_list_failed")
            if commitment.end > window_start and not commitment.is_cancelled
        ]

    async def get_by_external(self, provider: str, external_id: str) -> Commitment | None:
        return await asyncio.to_thread(self._get_by_external_sync, provider, external_id)

    def _get_by_external_sync(self, provider: str, external_id: str) -> Commitment | None:
        query = (
            self._db.collection(self._collection)
            .where(filter=FieldFilter("provider", "==", provider))
            .where(filter=FieldFilter("external_id", "==", external_id))
            .limit(1)
        )
        found = self._stream(query, "commitment_get_external_failed")
        return found[0] if found else None

    async def upsert(self, commitment: Commitment) -> None:
        await asyncio.to_thread(self._upsert_sync, commitment)

    def _upsert_sync(self, commitment: Commitment) -> None:
        try:
            self._db.collection(self._collection).document(commitment.id).set(
                commitment.model_dump()
            )
        except Exception as exc:
            logger.error(
                "commitment_upsert_failed",
                extra={"error": str(exc), "error_type": type(exc).__name__},
            )
            raise FirestoreUnavailableError("Falha ao gravar compromisso no Firestore") from exc

    async def list_by_meeting(self, meeting_id: str) -> list[Commitment]:
        return await asyncio.to_thread(self._list_by_meeting_sync, meeting_id)

    def _list_by_meeting_sync(self, meeting_id: str) -> list[Commitment]:
        query = self._db.collection(self._collection).where(
            filter=FieldFilter("meeting_id", "==", meeting_id)
        )
        return self._stream(query, "commitment_list_meeting_failed")

    @staticmethod
    def _stream(query: Any, event: str) -> list[Commitment]:
        try:
            return [Commitment.model_validate(doc.to_dict() or {}) for doc in query.stream()]
        except Exception as exc:
            logger.error(event, extra={"error": str(exc), "error_type": type(exc).__name__})
            raise FirestoreUnavailableError("Falha ao consultar compromissos no Firestore") from exc


class FirestoreIntegrationDirectory(IntegrationDirectoryProtocol):
    """Integrações ativas indexadas por provider + chave de correlação."""

    def __init__(
        self,
        firestore_client: FirestoreClient,
        collection_name: str = INTEGRATIONS_COLLECTION,
    ) -> None:
        self._db = firestore_client
        self._collection = collection_name

    async def resolve(self, provider: str, correlation_key: str) -> Integration | None:
        return await asyncio.to_thread(self._resolve_sync, provider, correlation_key)

    def _resolve_sync(self, provider: str, correlation_key: str) -> Integration | None:
        query = (
            self._db.collection(self._collection)
            .where(filter=FieldFilter("provider", "==", provider))
            .where(filter=FieldFilter("correlation_key", "==", correlation_key))
            .limit(1)
        )
        try:
            docs = list(query.stream())
        except Exception as exc:
            logger.error(
                "integration_resolve_failed",
                extra={"error": str(exc), "error_type": type(exc).__name__},
            )
            raise FirestoreUnavailableError("Falha ao consultar integrações no Firestore") from exc

        if not docs:
            return None
        data = docs[0].to_dict() or {}
        return Integration(
            integration_id=str(data.get("integration_id") or docs[0].id),
            user_id=str(data.get("user_id") or ""),
            provider=provider,
            correlation_key=correlation_key,
        )
