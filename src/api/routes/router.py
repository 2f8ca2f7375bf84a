"""Agregador de rotas: registra todos os routers da API.

Uso:
    from api.routes import create_api_router

    app = FastAPI()
    app.include_router(create_api_router())
"""

from __future__ import annotations

from fastapi import APIRouter

from api.routes.conflicts.router import router as conflicts_router
from api.routes.health.router import router as health_router
from api.routes.protection.router import router as protection_router
from api.routes.webhooks.router import router as webhooks_router


def create_api_router() -> APIRouter:
    """Cria router principal com todos os sub-routers registrados.

    Returns:
        APIRouter configurado com todos os endpoints.
    """
    api_router = APIRouter()

    # Health checks (sem prefixo para /health e /ready na raiz)
    api_router.include_router(health_router, tags=["health"])

    api_router.include_router(webhooks_router, tags=["webhooks"])
    api_router.include_router(protection_router, tags=["protection"])
    api_router.include_router(conflicts_router, tags=["conflicts"])

    return api_router
