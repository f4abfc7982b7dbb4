"""Circuit breaker state machine: Closed -> Open -> HalfOpen -> Closed.

All transitions are pure functions of (state, now); the governor owns the
clock and the lock.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CircuitStatus(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass(frozen=True)
class CircuitState:
    status: CircuitStatus = CircuitStatus.CLOSED
    consecutive_failures: int = 0
    opened_at: Optional[float] = None


def advance(state: CircuitState, now: float, cooldown_seconds: float) -> CircuitState:
    """Move an open circuit to half-open once its cooldown has elapsed."""
    if state.status is CircuitStatus.OPEN and state.opened_at is not None:
        if now - state.opened_at >= cooldown_seconds:
            return CircuitState(CircuitStatus.HALF_OPEN, state.consecutive_failures, state.opened_at)
    return state


def allows_call(state: CircuitState) -> bool:
    return state.status is not CircuitStatus.OPEN


def record_success(state: CircuitState) -> CircuitState:
    return CircuitState()


def record_failure(state: CircuitState, now: float, threshold: int) -> CircuitState:
    failures = state.consecutive_failures + 1
    # A failed trial call re-opens immediately.
    if state.status is CircuitStatus.HALF_OPEN or failures >= threshold:
        return CircuitState(CircuitStatus.OPEN, failures, now)
    return CircuitState(CircuitStatus.CLOSED, failures, None)


def seconds_until_retry(state: CircuitState, now: float, cooldown_seconds: float) -> float:
    if state.status is not CircuitStatus.OPEN or state.opened_at is None:
        return 0.0
    return max(0.0, cooldown_seconds - (now - state.opened_at))
