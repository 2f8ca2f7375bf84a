"""Normalizer CalDAV (bridge com chave pré-compartilhada)."""

from .extractor import CalDavNotification, extract_notification
from .normalizer import normalize_notification

__all__ = ["CalDavNotification", "extract_notification", "normalize_notification"]
