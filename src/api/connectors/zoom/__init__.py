"""Conector Zoom."""

from api.connectors.zoom.client import ZoomMeetingClient, map_zoom_meeting

__all__ = ["ZoomMeetingClient", "map_zoom_meeting"]
