"""Dashboard de proteção de saída por provider."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Depends, HTTPException

from api.routes.dependencies import get_app_container
from app.domain.change_event import Provider

if TYPE_CHECKING:
    from app.bootstrap.dependencies import AppContainer

router = APIRouter()


@router.get("/protection")
async def all_protection_status(
    container: AppContainer = Depends(get_app_container),
) -> dict[str, Any]:
    return {"providers": await container.protection.get_all_protection_status()}


@router.get("/protection/{provider}")
async def protection_status(
    provider: str,
    container: AppContainer = Depends(get_app_container),
) -> dict[str, Any]:
    """Estado do breaker, throttle e saúde de um provider."""
    parsed = Provider.parse(provider)
    if parsed is None:
        raise HTTPException(status_code=404, detail=f"Provider desconhecido: {provider}")
    return await container.protection.get_protection_status(parsed)
