"""Normalizer Google Calendar (notificações somente por headers)."""

from .extractor import GoogleNotification, extract_notification
from .normalizer import normalize_notification, targets_single_event

__all__ = [
    "GoogleNotification",
    "extract_notification",
    "normalize_notification",
    "targets_single_event",
]
