"""Cliente Google Calendar."""

from app.infra.calendar.google_calendar_client import GoogleCalendarClient

__all__ = ["GoogleCalendarClient"]
