"""Normalizer Microsoft Graph (lotes de notificações de subscription)."""

from .extractor import GraphNotification, extract_notifications
from .normalizer import normalize_notifications

__all__ = ["GraphNotification", "extract_notifications", "normalize_notifications"]
