"""Cache em memória com expiração verificada no acesso."""

from app.infra.cache.expiring_cache import ExpiringCache

__all__ = ["ExpiringCache"]
