"""Proteção de chamadas de saída: circuit breaker, throttle adaptativo e bypass tokens."""

from app.protection.bypass_tokens import BypassGrant, BypassTokenRegistry
from app.protection.registry import ProviderEntry, ProviderRegistry
from app.protection.service import OutboundProtectionService

__all__ = [
    "BypassGrant",
    "BypassTokenRegistry",
    "OutboundProtectionService",
    "ProviderEntry",
    "ProviderRegistry",
]
