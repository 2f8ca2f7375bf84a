"""Handlers dos jobs da fila priorizada."""

from app.use_cases.sync.process_meeting_event_job import ProcessMeetingEventJobUseCase
from app.use_cases.sync.process_sync_job import ProcessSyncJobUseCase, commitment_id_for

__all__ = ["ProcessMeetingEventJobUseCase", "ProcessSyncJobUseCase", "commitment_id_for"]
