"""Cliente HTTP JSON base para providers de saída.

Uma tentativa por chamada: retry e backoff ficam com a fila e o breaker.
Falhas viram TransientProviderError ou PermanentProviderError conforme o
status HTTP; 404/410 em leitura e remoção viram `found=False`.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import httpx

from app.observability import get_correlation_id
from app.protocols.provider_client import ProviderRequest, ProviderResponse
from utils.errors import TransientProviderError, classify_http_status

logger = logging.getLogger(__name__)

NOT_FOUND_STATUSES = frozenset({404, 410})


@dataclass(frozen=True, slots=True)
class HttpRoute:
    """Requisição HTTP concreta para uma operação."""

    method: str
    path: str
    json: dict[str, Any] | None = None
    params: dict[str, Any] = field(default_factory=dict)


@dataclass
class HttpClientConfig:
    """Configuração do cliente HTTP."""

    base_url: str
    timeout_seconds: float = 15.0
    default_headers: dict[str, str] = field(default_factory=dict)
    verify_ssl: bool = True


class JsonHttpProviderClient(ABC):
    """Base dos clientes REST (Graph, Zoom, bridge CalDAV).

    Subclasses mapeiam operação → rota e resposta → formato interno.
    """

    component = "http_provider_client"

    def __init__(
        self,
        config: HttpClientConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport

    @abstractmethod
    def route(self, request: ProviderRequest) -> HttpRoute:
        """Traduz a operação em método, caminho e corpo."""

    def parse(self, request: ProviderRequest, payload: dict[str, Any]) -> dict[str, Any]:
        """Converte o corpo da resposta (default: sem conversão)."""
        _ = request
        return payload

    async def invoke(self, request: ProviderRequest) -> ProviderResponse:
        route = self.route(request)
        response = await self._send(route)

        if response.status_code in NOT_FOUND_STATUSES and route.method in ("GET", "DELETE"):
            return ProviderResponse(found=False, status_code=response.status_code)

        if response.status_code >= 400:
            self._log_status(request, response.status_code)
            error_cls = classify_http_status(response.status_code)
            raise error_cls(
                f"{self.component}:{request.operation.value}:http_{response.status_code}",
                status_code=response.status_code,
            )

        payload = _json_object(response)
        return ProviderResponse(
            data=self.parse(request, payload),
            status_code=response.status_code,
        )

    async def _send(self, route: HttpRoute) -> httpx.Response:
        url = f"{self._config.base_url.rstrip('/')}/{route.path.lstrip('/')}"
        try:
            async with httpx.AsyncClient(
                verify=self._config.verify_ssl,
                transport=self._transport,
            ) as client:
                return await client.request(
                    route.method,
                    url,
                    json=route.json,
                    params=route.params or None,
                    headers=self._config.default_headers,
                    timeout=self._config.timeout_seconds,
                )
        except (httpx.TimeoutException, httpx.TransportError) as exc:
            logger.warning(
                "provider_http_connection_error",
                extra={
                    "component": self.component,
                    "error_type": type(exc).__name__,
                    "correlation_id": get_correlation_id(),
                },
            )
            raise TransientProviderError(f"{self.component}:connection_error") from exc

    def _log_status(self, request: ProviderRequest, status_code: int) -> None:
        logger.warning(
            "provider_http_error_status",
            extra={
                "component": self.component,
                "operation": request.operation.value,
                "status_code": status_code,
                "correlation_id": get_correlation_id(),
            },
        )


def _json_object(response: httpx.Response) -> dict[str, Any]:
    if not response.content:
        return {}
    try:
        payload = response.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {"items": payload}


def bearer_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}", "Accept": "application/json"}


__all__ = [
    "HttpClientConfig",
    "HttpRoute",
    "JsonHttpProviderClient",
    "bearer_headers",
]
