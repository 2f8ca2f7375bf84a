"""Redis Dedupe Store: fingerprints de mudanças aplicadas.

Compartilhado entre workers de processos diferentes, de modo que uma
reentrega processada em outra instância também vire no-op.

Contrato de Keys:
    As keys são fingerprints SHA256 (opacos). Nunca passar IDs de usuário,
    emails ou tokens como key. Keys são logadas parcialmente em DEBUG.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from app.protocols.dedupe import AsyncDedupeProtocol
from utils.errors import RedisConnectionError

if TYPE_CHECKING:
    from redis.asyncio import Redis as AsyncRedis

logger = logging.getLogger(__name__)

DEDUPE_PREFIX = "sync:applied:"


class RedisDedupeStore(AsyncDedupeProtocol):
    """Store de fingerprints aplicados usando Redis.

    Args:
        async_redis_client: Cliente Redis assíncrono
    """

    def __init__(self, async_redis_client: AsyncRedis[bytes]) -> None:
        self._redis = async_redis_client

    def _key(self, key: str) -> str:
        """Gera chave Redis com namespace."""
        return f"{DEDUPE_PREFIX}{key}"

    async def is_duplicate(self, key: str) -> bool:
        """Verifica se fingerprint já foi aplicado.

        Raises:
            RedisConnectionError: Falha de conexão com Redis.
        """
        try:
            exists = await self._redis.exists(self._key(key))
        except Exception as exc:
            raise RedisConnectionError("Falha ao consultar fingerprint no Redis") from exc

        if exists:
            logger.debug("dedupe_duplicate_detected", extra={"key": key[:8] + "..."})
        return bool(exists)

    async def mark_processed(self, key: str, ttl: int = 86400) -> None:
        """Marca fingerprint como aplicado com TTL.

        Raises:
            RedisConnectionError: Falha de conexão com Redis.
        """
        try:
            await self._redis.set(self._key(key), "1", ex=ttl)
        except Exception as exc:
            raise RedisConnectionError("Falha ao marcar fingerprint no Redis") from exc
        logger.debug("dedupe_marked", extra={"key": key[:8] + "...", "ttl": ttl})
