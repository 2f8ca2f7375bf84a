"""Rate limiter Redis por janela deslizante (sorted set + script Lua).

Compartilhado entre instâncias do gateway e workers. Script atômico:
remove entradas fora da janela, conta, e só registra a requisição se houver
capacidade.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import TYPE_CHECKING

from app.protocols.rate_limiter import RateLimitDecision, RateLimiterProtocol
from utils.errors import RedisConnectionError

if TYPE_CHECKING:
    from redis.asyncio import Redis as AsyncRedis

logger = logging.getLogger(__name__)

RATE_LIMIT_PREFIX = "ratelimit:"

# Retorna {allowed (0|1), count, oldest_score or 0}
RATE_LIMIT_LUA_SCRIPT = """
local key = KEYS[1]
local limit = tonumber(ARGV[1])
local window = tonumber(ARGV[2])
local now = tonumber(ARGV[3])
local member = ARGV[4]

redis.call('ZREMRANGEBYSCORE', key, 0, now - window)
local count = redis.call('ZCARD', key)

if count >= limit then
    local oldest = redis.call('ZRANGE', key, 0, 0, 'WITHSCORES')
    local oldest_score = 0
    if #oldest > 0 then
        oldest_score = oldest[2]
    end
    return {0, count, oldest_score}
end

redis.call('ZADD', key, now, member)
redis.call('EXPIRE', key, math.ceil(window * 2))
return {1, count + 1, 0}
"""


class RedisRateLimiter(RateLimiterProtocol):
    """Sliding window distribuído.

    Falha fechada: erro de Redis propaga como RedisConnectionError para o
    chamador decidir (o gateway responde 500, o worker reprocessa o job).
    """

    def __init__(self, async_redis_client: AsyncRedis[bytes]) -> None:
        self._redis = async_redis_client

    async def check(self, key: str, limit: int, window_seconds: float) -> RateLimitDecision:
        now = time.time()
        try:
            result = await self._redis.eval(
                RATE_LIMIT_LUA_SCRIPT,
                1,
                f"{RATE_LIMIT_PREFIX}{key}",
                limit,
                window_seconds,
                now,
                f"{now}:{uuid.uuid4().hex}",
            )
        except Exception as exc:
            raise RedisConnectionError("Falha ao consultar rate limit no Redis") from exc

        allowed = bool(int(result[0]))
        count = int(result[1])
        if allowed:
            return RateLimitDecision(
                allowed=True,
                remaining=max(0, limit - count),
                reset_after_seconds=0.0,
            )

        oldest = float(result[2]) if result[2] else now
        reset_after = max(0.0, oldest + window_seconds - now)
        logger.debug("rate_limit_exceeded", extra={"limit": limit, "reset_after": reset_after})
        return RateLimitDecision(allowed=False, remaining=0, reset_after_seconds=reset_after)
