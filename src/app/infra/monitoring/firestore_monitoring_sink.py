"""Firestore Monitoring Sink: trilha de auditoria da ingestão.

Persiste violações de segurança, transições de breaker, falhas terminais de
job, conflitos abandonados e uso de bypass tokens.
Append-only; TTL via Firestore TTL policies no campo `created_at`.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from app.observability import get_correlation_id
from app.protocols.monitoring import MonitoringEventType, MonitoringSinkProtocol

if TYPE_CHECKING:
    from google.cloud.firestore import Client as FirestoreClient

logger = logging.getLogger(__name__)

AUDIT_COLLECTION = "sync_audit"


class FirestoreMonitoringSink(MonitoringSinkProtocol):
    """Sink de monitoramento usando Firestore.

    Características:
        - Append-only (sem updates)
        - Document ID particionado por tipo/dia
        - Sem PII e sem segredos nos registros
        - Erro de escrita é logado e nunca propagado

    Args:
        firestore_client: Cliente Firestore
        collection_name: Nome da collection (default: sync_audit)
    """

    def __init__(
        self,
        firestore_client: FirestoreClient,
        collection_name: str = AUDIT_COLLECTION,
    ) -> None:
        self._db = firestore_client
        self._collection = collection_name

    def append(self, event_type: MonitoringEventType, data: dict[str, Any]) -> None:
        """Append síncrono do registro."""
        now = datetime.now(UTC)
        correlation_id = data.get("correlation_id") or get_correlation_id()

        enriched = {
            **data,
            "event_type": event_type.value,
            "correlation_id": correlation_id,
            "timestamp": now.isoformat(),
            "created_at": now,  # Para TTL do Firestore
        }

        doc_id = f"{event_type.value}_{now.strftime('%Y%m%d')}_{now.timestamp()}_{secrets.token_hex(3)}"

        try:
            self._db.collection(self._collection).document(doc_id).set(enriched)
            logger.debug(
                "monitoring_record_appended",
                extra={"doc_id": doc_id, "event_type": event_type.value},
            )
        except Exception as e:
            # Não falhar o fluxo principal por erro de auditoria
            logger.error(
                "monitoring_append_error",
                extra={"error": str(e), "doc_id": doc_id, "event_type": event_type.value},
            )

    async def record(self, event_type: MonitoringEventType, data: dict[str, Any]) -> None:
        """Append assíncrono.

        Usa asyncio.to_thread para não bloquear o event loop,
        já que Firestore Python SDK não tem async nativo.
        """
        logger.info(
            "monitoring_%s",
            event_type.value,
            extra={"monitoring_event": event_type.value},
        )
        await asyncio.to_thread(self.append, event_type, data)
