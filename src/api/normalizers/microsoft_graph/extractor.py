"""Extrator de notificações de subscription do Microsoft Graph.

Estrutura típica:
    {"value": [{"subscriptionId": "...", "clientState": "...",
                "changeType": "updated",
                "resource": "Users/{id}/Events/{id}",
                "resourceData": {"id": "...", "@odata.etag": "W/\\"...\\""}}]}
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from api.normalizers._payload import load_json_object, require_str
from utils.errors import ValidationError


@dataclass(frozen=True, slots=True)
class GraphNotification:
    subscription_id: str
    change_type: str
    resource: str
    resource_id: str = ""
    etag: str = ""
    tenant_id: str = ""


def _extract_item(item: Any, index: int) -> GraphNotification:
    if not isinstance(item, dict):
        raise ValidationError(f"Notificação Graph inválida na posição {index}")
    context = f"value[{index}]"
    resource_data = item.get("resourceData") or {}
    if not isinstance(resource_data, dict):
        raise ValidationError(f"resourceData inválido em {context}")
    return GraphNotification(
        subscription_id=require_str(item, "subscriptionId", context),
        change_type=require_str(item, "changeType", context).lower(),
        resource=require_str(item, "resource", context),
        resource_id=str(resource_data.get("id") or ""),
        etag=str(resource_data.get("@odata.etag") or ""),
        tenant_id=str(item.get("tenantId") or ""),
    )


def extract_notifications(raw_body: bytes) -> list[GraphNotification]:
    payload = load_json_object(raw_body)
    items = payload.get("value")
    if not isinstance(items, list):
        raise ValidationError("Payload Graph sem array 'value'")
    return [_extract_item(item, index) for index, item in enumerate(items)]
