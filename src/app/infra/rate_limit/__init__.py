"""Rate limiters por janela deslizante (memória e Redis)."""

from app.infra.rate_limit.memory_rate_limiter import MemoryRateLimiter
from app.infra.rate_limit.redis_rate_limiter import RedisRateLimiter

__all__ = ["MemoryRateLimiter", "RedisRateLimiter"]
