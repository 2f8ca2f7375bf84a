"""Conector do bridge CalDAV."""

from api.connectors.caldav.client import CalDavBridgeClient

__all__ = ["CalDavBridgeClient"]
