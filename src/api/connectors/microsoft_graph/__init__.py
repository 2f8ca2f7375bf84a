"""Conector Microsoft Graph."""

from api.connectors.microsoft_graph.client import (
    GraphCalendarClient,
    map_graph_event,
    parse_graph_datetime,
)

__all__ = ["GraphCalendarClient", "map_graph_event", "parse_graph_datetime"]
