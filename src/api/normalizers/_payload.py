"""Utilitários estruturais comuns aos extractors."""

from __future__ import annotations

import json
from typing import Any

from utils.errors import ValidationError


def load_json_object(raw_body: bytes) -> dict[str, Any]:
    """Decodifica o corpo como objeto JSON.

    Raises:
        ValidationError: JSON inválido ou raiz que não é objeto.
    """
    try:
        payload = json.loads(raw_body or b"")
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ValidationError("Corpo JSON inválido") from exc
    if not isinstance(payload, dict):
        raise ValidationError("Corpo JSON deve ser um objeto")
    return payload


def require_str(data: dict[str, Any], key: str, context: str) -> str:
    value = data.get(key)
    if value is None or str(value).strip() == "":
        raise ValidationError(f"Campo obrigatório ausente em {context}: {key}")
    return str(value)
