"""Acesso ao container da aplicação a partir das rotas."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Request

if TYPE_CHECKING:
    from app.bootstrap.dependencies import AppContainer


def get_app_container(request: Request) -> AppContainer:
    """Container montado no lifespan (ou injetado em testes via create_app)."""
    container = getattr(request.app.state, "container", None)
    if container is None:
        from app.bootstrap import get_container

        container = get_container()
        request.app.state.container = container
    return container
