"""Serviço de proteção de chamadas de saída.

Envolve a única capacidade dos clientes de provider (`invoke`) com:
    1. Bypass token (uso único; ignora breaker, throttle e rate limit)
    2. Circuit breaker por provider
    3. Rate limit de saída + throttle adaptativo (uma retentativa)
    4. Timeout da chamada

Apenas TransientProviderError e timeouts contam como falha do breaker.
Estado de breaker/health é mutado sob o lock do provider no ProviderRegistry.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any

from app.domain.protection import BreakerConfig, CircuitState, ThrottleConfig
from app.observability import get_correlation_id, record_breaker_transition, record_latency
from app.protection import adaptive_throttle, circuit_breaker
from app.protection.bypass_tokens import token_hint
from app.protocols.monitoring import MonitoringEventType
from config.logging import log_protection_event
from utils.errors import (
    CircuitOpenError,
    PermanentProviderError,
    RateLimitError,
    TransientProviderError,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping

    from app.domain.change_event import Provider
    from app.protection.bypass_tokens import BypassGrant, BypassTokenRegistry
    from app.protection.circuit_breaker import BreakerTransition
    from app.protection.registry import ProviderEntry, ProviderRegistry
    from app.protocols.monitoring import MonitoringSinkProtocol
    from app.protocols.provider_client import (
        ProviderClientProtocol,
        ProviderRequest,
        ProviderResponse,
    )
    from app.protocols.rate_limiter import RateLimiterProtocol

logger = logging.getLogger(__name__)

_TRANSITION_EVENTS = {
    CircuitState.OPEN: "circuit_opened",
    CircuitState.HALF_OPEN: "circuit_half_open",
    CircuitState.CLOSED: "circuit_closed",
}

# Desfecho de uma chamada do ponto de vista do breaker
_SUCCESS = "success"
_FAILURE = "failure"
_NEUTRAL = "neutral"


class OutboundProtectionService:
    """Proteção de chamadas de saída por provider.

    Args:
        registry: Estado de breaker/health por provider
        clients: Cliente autenticado por provider
        rate_limiter: Rate limiter de saída (sinal de saturação)
        monitoring: Sink de auditoria
        bypass_tokens: Registro de bypass tokens
        breaker_config: Limiares do breaker
        throttle_config: Parâmetros do throttle
        outbound_limits: Requisições por minuto por provider
        call_timeout_seconds: Timeout de cada chamada
        clock: Fonte de tempo (epoch em segundos)
        sleep: Função de espera (injetável em testes)
    """

    def __init__(
        self,
        *,
        registry: ProviderRegistry,
        clients: Mapping[Provider, ProviderClientProtocol],
        rate_limiter: RateLimiterProtocol,
        monitoring: MonitoringSinkProtocol,
        bypass_tokens: BypassTokenRegistry,
        breaker_config: BreakerConfig | None = None,
        throttle_config: ThrottleConfig | None = None,
        outbound_limits: Mapping[str, int] | None = None,
        call_timeout_seconds: float = 20.0,
        rate_limit_window_seconds: float = 60.0,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._registry = registry
        self._clients = dict(clients)
        self._rate_limiter = rate_limiter
        self._monitoring = monitoring
        self._bypass = bypass_tokens
        self._breaker_config = breaker_config or BreakerConfig()
        self._throttle_config = throttle_config or ThrottleConfig()
        self._outbound_limits = dict(outbound_limits or {})
        self._call_timeout = call_timeout_seconds
        self._window = rate_limit_window_seconds
        self._clock = clock
        self._sleep = sleep

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    @property
    def bypass_tokens(self) -> BypassTokenRegistry:
        return self._bypass

    def register_client(self, provider: Provider, client: ProviderClientProtocol) -> None:
        """Registra (ou substitui) o cliente de um provider."""
        self._clients[provider] = client

    def has_client(self, provider: Provider) -> bool:
        return provider in self._clients

    # ──────────────────────────────────────────────────────────────
    # Execução protegida
    # ──────────────────────────────────────────────────────────────

    async def execute(
        self,
        provider: Provider,
        request: ProviderRequest,
        bypass_token: str | None = None,
    ) -> ProviderResponse:
        """Executa a chamada ao provider sob proteção.

        Raises:
            CircuitOpenError: Breaker aberto (nenhuma chamada real feita)
            RateLimitError: Saturação persistiu após o throttle
            TransientProviderError: Falha recuperável (inclui timeout)
            PermanentProviderError: Falha definitiva ou provider sem cliente
        """
        client = self._clients.get(provider)
        if client is None:
            raise PermanentProviderError(f"Nenhum cliente registrado para {provider.value}")

        entry = self._registry.get(provider)

        if bypass_token:
            grant = self._bypass.consume(bypass_token, provider.value)
            if grant is not None:
                return await self._execute_bypass(entry, client, request, grant, bypass_token)
            log_protection_event(
                logger,
                "bypass_rejected",
                provider=provider.value,
                operation=request.operation.value,
            )

        admission = await self._admit(entry)
        try:
            await self._acquire_rate_limit(entry)
        except BaseException:
            # Sem await: a sonda volta mesmo sob cancelamento ou falha do limiter
            circuit_breaker.release(entry.breaker, trial=admission.trial)
            raise

        return await self._call(entry, client, request, trial=admission.trial)

    async def _admit(self, entry: ProviderEntry) -> circuit_breaker.Admission:
        async with entry.lock:
            admission = circuit_breaker.admit(entry.breaker, self._breaker_config, self._clock())

        if admission.transition is not None:
            await self._on_transition(entry.provider, admission.transition)

        if not admission.allowed:
            reset_time = admission.reset_time if admission.reset_time is not None else self._clock()
            log_protection_event(
                logger,
                "request_blocked",
                provider=entry.provider.value,
                state=entry.breaker.state.value,
                reset_time=reset_time,
            )
            raise CircuitOpenError(entry.provider.value, reset_time)
        return admission

    async def _acquire_rate_limit(self, entry: ProviderEntry) -> None:
        provider = entry.provider.value
        limit = self._outbound_limits.get(provider)
        if not limit:
            return

        key = f"outbound:{provider}"
        decision = await self._rate_limiter.check(key, limit, self._window)
        if decision.allowed:
            return

        async with entry.lock:
            delay_ms = adaptive_throttle.calculate_delay(entry.health, self._throttle_config)
            entry.health.current_throttle_ms = delay_ms

        log_protection_event(
            logger,
            "rate_limited",
            provider=provider,
            throttle_ms=round(delay_ms, 2),
            reset_after_seconds=round(decision.reset_after_seconds, 3),
        )
        if delay_ms > 0:
            await self._sleep(delay_ms / 1000.0)

        retry = await self._rate_limiter.check(key, limit, self._window)
        if not retry.allowed:
            raise RateLimitError(
                f"Rate limit de saída excedido para {provider} após throttle",
                retry_after=retry.reset_after_seconds,
            )

    async def _invoke(
        self,
        client: ProviderClientProtocol,
        request: ProviderRequest,
        provider: str,
    ) -> ProviderResponse:
        """Chama o cliente com timeout, normalizando erros desconhecidos."""
        try:
            return await asyncio.wait_for(client.invoke(request), timeout=self._call_timeout)
        except (TransientProviderError, PermanentProviderError):
            raise
        except TimeoutError as exc:
            raise TransientProviderError(
                f"Timeout de {self._call_timeout}s em {provider}.{request.operation.value}"
            ) from exc
        except Exception as exc:
            raise TransientProviderError(
                f"Falha inesperada em {provider}.{request.operation.value}: {type(exc).__name__}"
            ) from exc

    async def _call(
        self,
        entry: ProviderEntry,
        client: ProviderClientProtocol,
        request: ProviderRequest,
        *,
        trial: bool,
    ) -> ProviderResponse:
        provider = entry.provider.value
        start = time.perf_counter()
        try:
            response = await self._invoke(client, request, provider)
        except PermanentProviderError:
            await self._record(entry, request, _NEUTRAL, start, trial=trial)
            raise
        except TransientProviderError as exc:
            await self._record(entry, request, _FAILURE, start, trial=trial, error=exc)
            raise
        except asyncio.CancelledError:
            # Sem await: libera a sonda antes de propagar o cancelamento
            circuit_breaker.release(entry.breaker, trial=trial)
            raise

        await self._record(entry, request, _SUCCESS, start, trial=trial)
        return response

    async def _record(
        self,
        entry: ProviderEntry,
        request: ProviderRequest,
        outcome: str,
        start: float,
        *,
        trial: bool,
        error: Exception | None = None,
    ) -> None:
        elapsed_ms = (time.perf_counter() - start) * 1000
        transition: BreakerTransition | None = None

        async with entry.lock:
            now = self._clock()
            if outcome == _SUCCESS:
                transition = circuit_breaker.record_success(
                    entry.breaker, self._breaker_config, now, trial=trial
                )
            elif outcome == _FAILURE:
                transition = circuit_breaker.record_failure(
                    entry.breaker, self._breaker_config, now, trial=trial
                )
            else:
                circuit_breaker.release(entry.breaker, trial=trial)
            entry.health.record(success=outcome != _FAILURE, response_time_ms=elapsed_ms)

        record_latency(
            "protection",
            f"{entry.provider.value}.{request.operation.value}",
            elapsed_ms,
            get_correlation_id() or None,
        )
        if transition is not None:
            await self._on_transition(entry.provider, transition, error=error)

    async def _execute_bypass(
        self,
        entry: ProviderEntry,
        client: ProviderClientProtocol,
        request: ProviderRequest,
        grant: BypassGrant,
        token: str,
    ) -> ProviderResponse:
        provider = entry.provider.value
        audit: dict[str, Any] = {
            "provider": provider,
            "operation": request.operation.value,
            "reason": grant.reason,
            "token_hint": token_hint(token),
            "correlation_id": get_correlation_id(),
        }
        log_protection_event(logger, "bypass_used", **audit)

        start = time.perf_counter()
        try:
            response = await self._invoke(client, request, provider)
        except (TransientProviderError, PermanentProviderError) as exc:
            async with entry.lock:
                entry.health.record(
                    success=isinstance(exc, PermanentProviderError),
                    response_time_ms=(time.perf_counter() - start) * 1000,
                )
            await self._monitoring.record(
                MonitoringEventType.BYPASS_USED,
                {**audit, "outcome": "error", "error_type": type(exc).__name__},
            )
            raise

        async with entry.lock:
            entry.health.record(success=True, response_time_ms=(time.perf_counter() - start) * 1000)
        await self._monitoring.record(MonitoringEventType.BYPASS_USED, {**audit, "outcome": "success"})
        return response

    async def _on_transition(
        self,
        provider: Provider,
        transition: BreakerTransition,
        error: Exception | None = None,
    ) -> None:
        from_state, to_state = transition
        record_breaker_transition(provider.value, from_state.value, to_state.value)

        data: dict[str, Any] = {
            "provider": provider.value,
            "from_state": from_state.value,
            "to_state": to_state.value,
        }
        if error is not None:
            data["error_type"] = type(error).__name__
        log_protection_event(logger, _TRANSITION_EVENTS[to_state], **data)
        await self._monitoring.record(MonitoringEventType.BREAKER_TRANSITION, data)

    # ──────────────────────────────────────────────────────────────
    # Introspecção e manutenção
    # ──────────────────────────────────────────────────────────────

    async def get_protection_status(self, provider: Provider) -> dict[str, Any]:
        """Estado de proteção para dashboards operacionais."""
        entry = self._registry.get(provider)
        async with entry.lock:
            now = self._clock()
            breaker = entry.breaker.to_dict()
            health = entry.health.to_dict()
            reset_time = entry.breaker.reset_time(self._breaker_config.recovery_timeout_seconds)
            allowed = circuit_breaker.calls_allowed(entry.breaker, self._breaker_config, now)

        return {
            "provider": provider.value,
            "state": breaker["state"],
            "calls_allowed": allowed,
            "reset_time": reset_time,
            "current_throttle_ms": health["current_throttle_ms"],
            "health_score": health["health_score"],
            "breaker": breaker,
            "health": health,
            "outbound_limit_per_minute": self._outbound_limits.get(provider.value),
            "client_registered": provider in self._clients,
        }

    async def get_all_protection_status(self) -> dict[str, dict[str, Any]]:
        return {
            provider.value: await self.get_protection_status(provider)
            for provider in self._registry.providers()
        }

    async def adjust_throttles(self) -> dict[str, float]:
        """Ciclo de ajuste do throttle de todos os providers."""
        adjusted: dict[str, float] = {}
        for entry in self._registry.entries():
            async with entry.lock:
                adjusted[entry.provider.value] = adaptive_throttle.adjust(
                    entry.health, self._throttle_config
                )
        logger.debug("throttle_adjusted", extra={"throttles": adjusted})
        return adjusted

    async def reset_health_period(self) -> None:
        """Reset periódico de contadores.

        Zera os contadores de ProviderHealth e, com breaker fechado, os do
        breaker (janela de avaliação do volume gate).
        """
        for entry in self._registry.entries():
            async with entry.lock:
                entry.health.reset_period()
                if entry.breaker.state == CircuitState.CLOSED:
                    entry.breaker.reset_counters()
        evicted = self._bypass.evict_expired()
        logger.info("protection_health_period_reset", extra={"bypass_tokens_evicted": evicted})


__all__ = ["OutboundProtectionService"]
