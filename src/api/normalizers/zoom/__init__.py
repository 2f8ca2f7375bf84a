"""Normalizer Zoom (eventos de reunião em tempo real)."""

from .extractor import ZoomNotification, extract_notification
from .normalizer import normalize_notification

__all__ = ["ZoomNotification", "extract_notification", "normalize_notification"]
