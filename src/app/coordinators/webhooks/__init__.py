"""Coordenação da entrada de webhooks."""

from app.coordinators.webhooks.gateway import (
    GatewayResult,
    InboundWebhook,
    WebhookGateway,
    build_payload,
)

__all__ = ["GatewayResult", "InboundWebhook", "WebhookGateway", "build_payload"]
