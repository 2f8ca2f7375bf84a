"""Classificação de prioridade e tipo de job por ChangeEvent."""

from __future__ import annotations

from app.domain.change_event import ChangeEvent, ChangeKind, Provider
from app.domain.job import JobKind, JobPriority

REALTIME_MEETING_EVENTS = frozenset(
    {
        "meeting.started",
        "meeting.ended",
        "meeting.participant_joined",
        "meeting.participant_left",
    }
)


def classify_priority(event: ChangeEvent) -> JobPriority:
    """high: tempo real de reunião; medium: criação/remoção; low: demais."""
    if event.provider == Provider.ZOOM and event.event_type in REALTIME_MEETING_EVENTS:
        return JobPriority.HIGH
    if event.change_kind in (ChangeKind.CREATED, ChangeKind.DELETED):
        return JobPriority.MEDIUM
    return JobPriority.LOW


def job_kind_for(provider: Provider) -> JobKind:
    return JobKind.MEETING_EVENT if provider == Provider.ZOOM else JobKind.SYNC


__all__ = ["REALTIME_MEETING_EVENTS", "classify_priority", "job_kind_for"]
