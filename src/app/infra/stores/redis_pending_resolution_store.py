"""Redis Pending Resolution Store: decisões de conflito aguardando humano.

Registros ficam até a decisão ou até a varredura de expiração marcá-los como
abandonados. O índice por expiração só contém registros pendentes.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from app.domain.conflict import PendingResolution, PendingStatus
from app.protocols.pending_resolution_store import PendingResolutionStoreProtocol
from utils.errors import RedisConnectionError

if TYPE_CHECKING:
    from datetime import datetime

    from redis.asyncio import Redis as AsyncRedis

PENDING_PREFIX = "conflicts:pending:"
EXPIRY_INDEX_KEY = "conflicts:pending_expiry"

# Registros decididos/abandonados ainda ficam consultáveis por 7 dias
_CLOSED_TTL_SECONDS = 7 * 86400


class RedisPendingResolutionStore(PendingResolutionStoreProtocol):
    """Store de resoluções pendentes usando Redis."""

    def __init__(self, async_redis_client: AsyncRedis[bytes]) -> None:
        self._redis = async_redis_client

    def _key(self, candidate_id: str) -> str:
        return f"{PENDING_PREFIX}{candidate_id}"

    async def save(self, pending: PendingResolution) -> None:
        try:
            pipeline = self._redis.pipeline()
            if pending.status == PendingStatus.PENDING:
                pipeline.set(self._key(pending.candidate_id), json.dumps(pending.to_dict()))
                pipeline.zadd(
                    EXPIRY_INDEX_KEY,
                    {pending.candidate_id: pending.expires_at.timestamp()},
                )
            else:
                pipeline.set(
                    self._key(pending.candidate_id),
                    json.dumps(pending.to_dict()),
                    ex=_CLOSED_TTL_SECONDS,
                )
                pipeline.zrem(EXPIRY_INDEX_KEY, pending.candidate_id)
            await pipeline.execute()
        except Exception as exc:
            raise RedisConnectionError("Falha ao salvar resolução pendente no Redis") from exc

    async def get(self, candidate_id: str) -> PendingResolution | None:
        try:
            raw = await self._redis.get(self._key(candidate_id))
        except Exception as exc:
            raise RedisConnectionError("Falha ao ler resolução pendente no Redis") from exc
        if raw is None:
            return None
        text = raw.decode("utf-8") if isinstance(raw, bytes) else raw
        return PendingResolution.from_dict(json.loads(text))

    async def list_expired(self, now: datetime) -> list[PendingResolution]:
        try:
            raw_ids = await self._redis.zrangebyscore(EXPIRY_INDEX_KEY, 0, now.timestamp())
        except Exception as exc:
            raise RedisConnectionError("Falha ao consultar expirações no Redis") from exc
        expired: list[PendingResolution] = []
        for raw_id in raw_ids:
            candidate_id = raw_id.decode("utf-8") if isinstance(raw_id, bytes) else raw_id
            pending = await self.get(candidate_id)
            if pending is not None and pending.status == PendingStatus.PENDING:
                expired.append(pending)
        return expired
