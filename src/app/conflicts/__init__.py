"""Motor de detecção e resolução de conflitos de agenda."""

from app.conflicts.detection import ConflictDetector, DetectionOptions
from app.conflicts.pending import PendingResolutionService
from app.conflicts.resolution import ConflictResolver, ResolutionContext

__all__ = [
    "ConflictDetector",
    "ConflictResolver",
    "DetectionOptions",
    "PendingResolutionService",
    "ResolutionContext",
]
