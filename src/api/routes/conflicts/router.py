"""Endpoints de conflito de agenda.

Endpoints:
- POST /conflicts/detect: detecta conflitos e, com `strategy`, resolve
- POST /conflicts/pending/{candidate_id}/decision: decisão humana
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError as PydanticValidationError

from api.routes.conflicts.schemas import DetectConflictsRequest, PendingDecisionRequest
from api.routes.dependencies import get_app_container
from app.conflicts import DetectionOptions, ResolutionContext
from app.domain.commitment import Commitment
from app.domain.conflict import ResolutionStatus, ResolutionStrategy
from utils.errors import ConflictUnresolvedError, ValidationError

if TYPE_CHECKING:
    from app.bootstrap.dependencies import AppContainer

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/conflicts/detect")
async def detect_conflicts(
    body: DetectConflictsRequest,
    container: AppContainer = Depends(get_app_container),
) -> dict[str, Any]:
    """Detecta conflitos do candidato na agenda do usuário."""
    try:
        candidate = Commitment(user_id=body.user_id, **body.candidate.model_dump())
    except PydanticValidationError as exc:
        raise HTTPException(status_code=400, detail="Intervalo do candidato inválido") from exc

    options = DetectionOptions(**body.options.model_dump())
    conflicts = await container.detector.detect_conflicts(body.user_id, candidate, options)
    response: dict[str, Any] = {
        "candidateId": candidate.id,
        "hasConflicts": bool(conflicts),
        "conflicts": [conflict.to_dict() for conflict in conflicts],
    }
    if body.strategy is None or not conflicts:
        return response

    window_start, window_end = container.detector.search_window(candidate, options)
    existing = {
        item.id: item
        for item in await container.commitments.list_for_user(body.user_id, window_start, window_end)
    }
    results = container.resolver.resolve_conflicts(
        conflicts,
        body.strategy,
        ResolutionContext(candidate=candidate, existing=existing, preferences=body.preferences),
    )
    response["resolutions"] = [result.to_dict() for result in results]

    awaiting = any(result.status == ResolutionStatus.AWAITING_USER for result in results)
    if body.strategy == ResolutionStrategy.USER_CHOICE and awaiting:
        pending = await container.pending.record_pending(
            candidate_id=candidate.id,
            user_id=body.user_id,
            conflicts=conflicts,
            metadata={"source": "api", "strategy": body.strategy.value},
        )
        response["pendingExpiresAt"] = pending.expires_at.isoformat()
    return response


@router.post("/conflicts/pending/{candidate_id}/decision")
async def decide_pending(
    candidate_id: str,
    body: PendingDecisionRequest,
    container: AppContainer = Depends(get_app_container),
) -> dict[str, Any]:
    """Registra a escolha do usuário para uma resolução pendente."""
    try:
        pending = await container.pending.resolve_pending(candidate_id, body.action)
    except ConflictUnresolvedError as exc:
        raise HTTPException(status_code=410, detail=str(exc)) from exc
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    if pending is None:
        raise HTTPException(status_code=404, detail=f"Resolução pendente não encontrada: {candidate_id}")
    return pending.to_dict()
