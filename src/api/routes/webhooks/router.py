"""Endpoints de webhook por provider.

Endpoints:
- POST /webhooks/{provider}: recebimento de notificações (e handshakes)
- GET /webhooks/{webhook_id}/jobs: estado dos jobs criados por uma entrega

A rota só traduz HTTP ↔ gateway; autenticação, rate limit, normalização e
enfileiramento ficam no WebhookGateway. A resposta nunca espera o
processamento dos jobs.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from api.routes.dependencies import get_app_container
from app.coordinators.webhooks import InboundWebhook

if TYPE_CHECKING:
    from app.bootstrap.dependencies import AppContainer

logger = logging.getLogger(__name__)

router = APIRouter()


def _source_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


@router.post("/webhooks/{provider}")
async def receive_webhook(
    provider: str,
    request: Request,
    container: AppContainer = Depends(get_app_container),
) -> Response:
    """Recebe notificação de um provider e responde imediatamente."""
    inbound = InboundWebhook(
        provider=provider,
        headers=dict(request.headers),
        raw_body=await request.body(),
        query=dict(request.query_params),
        source_ip=_source_ip(request),
    )
    result = await container.gateway.handle(inbound)

    if result.media_type == "application/json":
        return JSONResponse(
            content=result.body,
            status_code=result.status_code,
            headers=result.headers or None,
        )
    return Response(
        content=result.body,
        status_code=result.status_code,
        media_type=result.media_type,
        headers=result.headers or None,
    )


@router.get("/webhooks/{webhook_id}/jobs")
async def webhook_jobs(
    webhook_id: str,
    container: AppContainer = Depends(get_app_container),
) -> JSONResponse:
    """Jobs originados por uma entrega (consulta por webhookId)."""
    jobs = await container.queue.list_jobs_for_webhook(webhook_id)
    if not jobs:
        return JSONResponse(
            content={"webhookId": webhook_id, "jobs": [], "message": "Nenhum job encontrado"},
            status_code=404,
        )
    return JSONResponse(
        content={
            "webhookId": webhook_id,
            "jobs": [
                {
                    "id": job.id,
                    "kind": job.kind.value,
                    "priority": job.priority.value,
                    "status": job.status.value,
                    "attempts": job.attempts,
                    "maxAttempts": job.max_attempts,
                    "lastError": job.last_error,
                    "result": job.result,
                    "createdAt": job.created_at.isoformat(),
                    "completedAt": job.completed_at.isoformat() if job.completed_at else None,
                }
                for job in jobs
            ],
        }
    )
