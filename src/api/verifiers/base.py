"""Tipos compartilhados pelos verificadores de webhook."""

from __future__ import annotations

import hashlib
import hmac
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class VerificationResult:
    """Resultado da verificação de autenticidade.

    Atributos:
        ok: Requisição autêntica
        reason: Motivo da rejeição (snake_case) quando ok=False
        challenge_response: Resposta de handshake a devolver sem enfileirar
        challenge_media_type: Content-Type da resposta de handshake
        malformed: Autêntica, mas com estrutura inválida (400, não 401)
    """

    ok: bool
    reason: str = ""
    challenge_response: Any = None
    challenge_media_type: str = "application/json"
    malformed: bool = False

    @property
    def is_handshake(self) -> bool:
        return self.ok and self.challenge_response is not None


def accepted() -> VerificationResult:
    return VerificationResult(ok=True)


def rejected(reason: str) -> VerificationResult:
    return VerificationResult(ok=False, reason=reason)


def malformed(reason: str) -> VerificationResult:
    return VerificationResult(ok=True, reason=reason, malformed=True)


def lower_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Normaliza nomes de headers para minúsculas."""
    return {key.lower(): value for key, value in headers.items()}


def constant_time_equals(provided: str | None, expected: str | None) -> bool:
    """Comparação em tempo constante; vazio nunca confere."""
    if not provided or not expected:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


def hmac_sha256_hex(secret: str, payload: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


__all__ = [
    "VerificationResult",
    "accepted",
    "constant_time_equals",
    "hmac_sha256_hex",
    "lower_headers",
    "malformed",
    "rejected",
]
