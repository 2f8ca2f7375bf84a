"""Contrato único de chamada de saída para providers.

Cada provider expõe uma só capacidade, `invoke(request)`. O circuit breaker e
o throttle envolvem essa capacidade, então nenhum formato assíncrono
específico de SDK vaza para o core.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol, runtime_checkable


class ProviderOperation(str, Enum):
    """Operações suportadas pelos clientes de provider."""

    GET_EVENT = "get_event"
    CREATE_EVENT = "create_event"
    UPDATE_EVENT = "update_event"
    DELETE_EVENT = "delete_event"
    LIST_CALENDARS = "list_calendars"


@dataclass(frozen=True, slots=True)
class ProviderRequest:
    """Requisição de saída independente de provider."""

    operation: ProviderOperation
    integration_id: str = ""
    external_id: str = ""
    body: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ProviderResponse:
    """Resposta de saída independente de provider.

    `found` é False quando o recurso não existe mais no provider.
    """

    data: dict[str, Any] = field(default_factory=dict)
    found: bool = True
    status_code: int = 200


@runtime_checkable
class ProviderClientProtocol(Protocol):
    """Cliente já autenticado de um provider.

    Deve levantar TransientProviderError (rede, 5xx, 429) ou
    PermanentProviderError (demais 4xx) em falhas.
    """

    async def invoke(self, request: ProviderRequest) -> ProviderResponse:
        """Executa a operação no provider."""
        ...
