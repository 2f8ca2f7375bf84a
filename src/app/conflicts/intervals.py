"""Aritmética de intervalos semiabertos [início, fim)."""

from __future__ import annotations

from typing import TYPE_CHECKING

from app.domain.conflict import Severity

if TYPE_CHECKING:
    from datetime import datetime


def has_overlap(start1: datetime, end1: datetime, start2: datetime, end2: datetime) -> bool:
    """Sobreposição estrita: intervalos que apenas se tocam não colidem."""
    return start1 < end2 and end1 > start2


def overlap_minutes(start1: datetime, end1: datetime, start2: datetime, end2: datetime) -> int:
    """Minutos inteiros de sobreposição (0 se disjuntos)."""
    seconds = (min(end1, end2) - max(start1, start2)).total_seconds()
    return max(0, int(seconds // 60))


def overlap_severity(minutes: int) -> Severity:
    if minutes >= 60:
        return Severity.CRITICAL
    if minutes >= 30:
        return Severity.HIGH
    if minutes >= 15:
        return Severity.MEDIUM
    return Severity.LOW
