"""Máquina de estados do circuit breaker.

Funções puras sobre CircuitBreakerState: o chamador (ProviderRegistry) as
executa dentro do lock do provider. Tempo sempre injetado (`now`, epoch em
segundos) para manter as transições determinísticas em teste.

    closed ──(falhas >= limiar e volume >= limiar)──▶ open
    open ──(now - last_failure >= recovery)──▶ half_open
    half_open ──(sucessos >= limiar)──▶ closed
    half_open ──(qualquer falha)──▶ open
"""

from __future__ import annotations

from dataclasses import dataclass

from app.domain.protection import BreakerConfig, CircuitBreakerState, CircuitState

BreakerTransition = tuple[CircuitState, CircuitState]

VALID_BREAKER_TRANSITIONS: dict[CircuitState, frozenset[CircuitState]] = {
    CircuitState.CLOSED: frozenset({CircuitState.OPEN}),
    CircuitState.OPEN: frozenset({CircuitState.HALF_OPEN}),
    CircuitState.HALF_OPEN: frozenset({CircuitState.CLOSED, CircuitState.OPEN}),
}


@dataclass(frozen=True, slots=True)
class Admission:
    """Resultado da checagem do breaker antes de uma chamada.

    Atributos:
        allowed: Chamada pode prosseguir
        trial: Chamada ocupa o slot de sonda do half-open
        reset_time: Quando tentar de novo (apenas se rejeitada)
        transition: Transição ocorrida na admissão (open → half_open)
    """

    allowed: bool
    trial: bool = False
    reset_time: float | None = None
    transition: BreakerTransition | None = None


def is_transition_valid(from_state: CircuitState, to_state: CircuitState) -> bool:
    return to_state in VALID_BREAKER_TRANSITIONS.get(from_state, frozenset())


def _transition(state: CircuitBreakerState, to_state: CircuitState, now: float) -> BreakerTransition:
    from_state = state.state
    if not is_transition_valid(from_state, to_state):
        raise ValueError(f"Transição de breaker inválida: {from_state.value} → {to_state.value}")
    state.state = to_state
    state.last_state_change = now
    if to_state == CircuitState.CLOSED:
        state.reset_counters()
    if to_state == CircuitState.HALF_OPEN:
        state.success_count = 0
        state.half_open_in_flight = 0
    return from_state, to_state


def admit(state: CircuitBreakerState, config: BreakerConfig, now: float) -> Admission:
    """Decide se uma chamada pode passar.

    Em open, a primeira chamada após o recovery timeout move o breaker para
    half_open e vira a sonda.
    """
    transition: BreakerTransition | None = None

    if state.state == CircuitState.CLOSED:
        return Admission(allowed=True)

    if state.state == CircuitState.OPEN:
        reset_time = state.reset_time(config.recovery_timeout_seconds)
        if reset_time is not None and now < reset_time:
            return Admission(allowed=False, reset_time=reset_time)
        transition = _transition(state, CircuitState.HALF_OPEN, now)

    if state.half_open_in_flight >= config.half_open_max_in_flight:
        return Admission(allowed=False, reset_time=now, transition=transition)

    state.half_open_in_flight += 1
    return Admission(allowed=True, trial=True, transition=transition)


def _release_trial(state: CircuitBreakerState, trial: bool) -> None:
    if trial and state.half_open_in_flight > 0:
        state.half_open_in_flight -= 1


def release(state: CircuitBreakerState, *, trial: bool) -> None:
    """Libera o slot de sonda sem registrar resultado (chamada não executada)."""
    _release_trial(state, trial)


def record_success(
    state: CircuitBreakerState,
    config: BreakerConfig,
    now: float,
    *,
    trial: bool = False,
) -> BreakerTransition | None:
    """Registra sucesso; fecha o breaker ao atingir o limiar em half_open."""
    _release_trial(state, trial)
    state.total_requests += 1
    state.success_count += 1

    if state.state == CircuitState.HALF_OPEN and state.success_count >= config.success_threshold:
        return _transition(state, CircuitState.CLOSED, now)
    return None


def record_failure(
    state: CircuitBreakerState,
    config: BreakerConfig,
    now: float,
    *,
    trial: bool = False,
) -> BreakerTransition | None:
    """Registra falha transitória; abre o breaker quando aplicável."""
    _release_trial(state, trial)
    state.total_requests += 1
    state.failure_count += 1
    state.last_failure_time = now

    if state.state == CircuitState.HALF_OPEN:
        return _transition(state, CircuitState.OPEN, now)

    if (
        state.state == CircuitState.CLOSED
        and state.failure_count >= config.failure_threshold
        and state.total_requests >= config.volume_threshold
    ):
        return _transition(state, CircuitState.OPEN, now)
    return None


def calls_allowed(state: CircuitBreakerState, config: BreakerConfig, now: float) -> bool:
    """Indica, sem alterar estado, se a próxima chamada seria admitida."""
    if state.state == CircuitState.CLOSED:
        return True
    if state.state == CircuitState.OPEN:
        reset_time = state.reset_time(config.recovery_timeout_seconds)
        return reset_time is None or now >= reset_time
    return state.half_open_in_flight < config.half_open_max_in_flight


__all__ = [
    "VALID_BREAKER_TRANSITIONS",
    "Admission",
    "BreakerTransition",
    "admit",
    "calls_allowed",
    "is_transition_valid",
    "record_failure",
    "record_success",
    "release",
]
