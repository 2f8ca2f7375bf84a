"""Settings de deteccao e resolucao de conflitos de agenda."""

from __future__ import annotations

import os
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field

_STRATEGIES = {"user_choice", "priority_based", "time_based", "automatic", "newest_wins"}


class ConflictSettings(BaseModel):
    """Configuracoes usadas pelo motor de conflitos."""

    model_config = ConfigDict(extra="ignore")

    default_buffer_minutes: int = Field(
        default=15,
        ge=0,
        description="Buffer padrao entre compromissos quando o usuario nao define outro.",
    )
    default_strategy: str = Field(
        default="user_choice",
        description="Estrategia aplicada pelos jobs de sync.",
    )
    decision_window_hours: int = Field(
        default=24,
        ge=1,
        description="Janela para decisao humana antes de considerar abandonado.",
    )
    clock_skew_tolerance_seconds: float = Field(
        default=5.0,
        ge=0,
        description="Diferenca entre relogios tratada como empate em newest_wins.",
    )
    expiry_sweep_interval_seconds: float = Field(
        default=300.0,
        gt=0,
        description="Intervalo da varredura de resolucoes pendentes expiradas.",
    )

    def validate_strategy(self) -> list[str]:
        """Retorna erros de configuracao da estrategia padrao."""
        if self.default_strategy not in _STRATEGIES:
            return [f"CONFLICT_DEFAULT_STRATEGY invalida: {self.default_strategy}"]
        return []


def _load_conflicts_from_env() -> ConflictSettings:
    """Carrega ConflictSettings a partir de variaveis de ambiente."""
    return ConflictSettings(
        default_buffer_minutes=int(os.getenv("CONFLICT_DEFAULT_BUFFER_MINUTES", "15")),
        default_strategy=os.getenv("CONFLICT_DEFAULT_STRATEGY", "user_choice").strip().lower(),
        decision_window_hours=int(os.getenv("CONFLICT_DECISION_WINDOW_HOURS", "24")),
        clock_skew_tolerance_seconds=float(os.getenv("CONFLICT_CLOCK_SKEW_SECONDS", "5")),
        expiry_sweep_interval_seconds=float(os.getenv("CONFLICT_EXPIRY_SWEEP_SECONDS", "300")),
    )


@lru_cache(maxsize=1)
def get_conflict_settings() -> ConflictSettings:
    """Retorna instancia cacheada de ConflictSettings."""
    return _load_conflicts_from_env()


__all__ = ["ConflictSettings", "get_conflict_settings"]
