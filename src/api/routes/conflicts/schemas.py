"""Schemas de request dos endpoints de conflito."""

from __future__ import annotations

import uuid
from datetime import datetime  # noqa: TC003 - usado em runtime pelo schema do Pydantic
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.domain.commitment import CommitmentKind, MeetingType  # noqa: TC001
from app.domain.conflict import ResolutionStrategy  # noqa: TC001


class CandidateRequest(BaseModel):
    """Compromisso proposto."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=lambda: f"candidate_{uuid.uuid4().hex}")
    kind: CommitmentKind = "appointment"
    start: datetime
    end: datetime
    title: str = ""
    location: str = ""
    meeting_type: MeetingType | None = None
    priority: int = 0


class DetectionOptionsRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    buffer_minutes: int | None = Field(default=None, ge=0)
    check_time_overlap: bool = True
    check_buffer: bool = True
    check_venue: bool = True
    check_double_booking: bool = True


class DetectConflictsRequest(BaseModel):
    """Detecção (e resolução opcional) de conflitos para um candidato."""

    model_config = ConfigDict(extra="ignore")

    user_id: str = Field(..., min_length=1)
    candidate: CandidateRequest
    options: DetectionOptionsRequest = Field(default_factory=DetectionOptionsRequest)
    strategy: ResolutionStrategy | None = None
    preferences: dict[str, Any] = Field(default_factory=dict)


class PendingDecisionRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    action: str = Field(..., min_length=1)
