import logging
import threading
import time
from typing import Any, Callable, NamedTuple, Optional, TypeVar

import requests
from tenacity import Retrying, before_sleep_log, retry_if_exception, stop_after_attempt, wait_exponential, wait_fixed

from leadcrawl.domain import circuit
from leadcrawl.domain.circuit import CircuitState
from leadcrawl.domain.config import CrawlSettings
from leadcrawl.domain.fetch_result import ErrorKind
from leadcrawl.exceptions import CircuitOpenError, ClassifierError, NavigationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSIENT_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


def is_transient(error: BaseException) -> bool:
    """True for errors worth retrying: timeouts, resets and 429/5xx-style failures."""
    if isinstance(error, (NavigationError, ClassifierError)):
        return error.transient
    if isinstance(error, (requests.exceptions.Timeout, requests.exceptions.ConnectionError)):
        return True
    if isinstance(error, (TimeoutError, ConnectionError)):
        return True
    for attr in ("status_code", "code"):
        value = getattr(error, attr, None)
        if isinstance(value, int) and value in TRANSIENT_STATUS_CODES:
            return True
    return False


class CircuitBreaker:
    """Thread-safe holder for a `CircuitState`; all transitions live in `domain.circuit`."""

    def __init__(self, name: str, failure_threshold: int, cooldown_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.name = name
        self.failure_threshold = failure_threshold
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._state = CircuitState()

    @property
    def state(self) -> CircuitState:
        with self._lock:
            self._state = circuit.advance(self._state, self._clock(), self.cooldown_seconds)
            return self._state

    def allow(self) -> bool:
        return circuit.allows_call(self.state)

    def retry_after(self) -> float:
        with self._lock:
            return circuit.seconds_until_retry(self._state, self._clock(), self.cooldown_seconds)

    def record_success(self) -> None:
        with self._lock:
            if self._state.status is not circuit.CircuitStatus.CLOSED:
                logger.info("Circuit '%s' closed", self.name)
            self._state = circuit.record_success(self._state)

    def record_failure(self) -> None:
        with self._lock:
            before = self._state.status
            self._state = circuit.record_failure(self._state, self._clock(), self.failure_threshold)
            if self._state.status is circuit.CircuitStatus.OPEN and before is not circuit.CircuitStatus.OPEN:
                logger.warning(
                    "Circuit '%s' opened after %d consecutive failures; cooling down %.0fs",
                    self.name, self._state.consecutive_failures, self.cooldown_seconds,
                )


class RetryPolicy:
    """Bounded retry of transient errors with fixed or exponential backoff."""

    def __init__(
        self,
        attempts: int,
        base_delay_seconds: float,
        max_delay_seconds: float = 30.0,
        exponential: bool = True,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if attempts < 1:
            raise ValueError("attempts must be >= 1")
        self.attempts = attempts
        self.base_delay_seconds = base_delay_seconds
        self.max_delay_seconds = max_delay_seconds
        self.exponential = exponential
        self._sleep = sleep

    def _wait(self):
        if self.exponential:
            return wait_exponential(multiplier=self.base_delay_seconds, max=self.max_delay_seconds)
        return wait_fixed(self.base_delay_seconds)

    def call(self, fn: Callable[[], T]) -> T:
        retryer = Retrying(
            stop=stop_after_attempt(self.attempts),
            wait=self._wait(),
            retry=retry_if_exception(is_transient),
            reraise=True,
            sleep=self._sleep,
            before_sleep=before_sleep_log(logger, logging.WARNING),
        )
        return retryer(fn)


class GovernedResult(NamedTuple):
    value: Any
    used_fallback: bool = False
    reason: Optional[ErrorKind] = None


class Governor:
    """Wraps external calls with retry, an optional circuit breaker and pacing.

    Non-transient errors are not retried. With a breaker, every governed
    call that ultimately fails counts towards opening it; while open, calls
    are short-circuited without touching the network.
    """

    def __init__(
        self,
        name: str,
        retry_policy: RetryPolicy,
        breaker: Optional[CircuitBreaker] = None,
        depth_delay_seconds: float = 0.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.name = name
        self.retry_policy = retry_policy
        self.breaker = breaker
        self.depth_delay_seconds = depth_delay_seconds
        self._sleep = sleep

    def call(self, fn: Callable[[], T]) -> T:
        if self.breaker is not None and not self.breaker.allow():
            raise CircuitOpenError(self.name, self.breaker.retry_after())
        try:
            result = self.retry_policy.call(fn)
        except Exception:
            if self.breaker is not None:
                self.breaker.record_failure()
            raise
        if self.breaker is not None:
            self.breaker.record_success()
        return result

    def call_with_fallback(self, fn: Callable[[], T], fallback: Callable[[], T]) -> GovernedResult:
        """Run `fn` under governance; on failure or open circuit, return `fallback()` instead."""
        try:
            return GovernedResult(self.call(fn))
        except CircuitOpenError as e:
            logger.debug("%s; using fallback", e)
            return GovernedResult(fallback(), used_fallback=True, reason=ErrorKind.CIRCUIT_OPEN)
        except Exception as e:
            logger.warning("%s call failed (%s); using fallback", self.name, e)
            return GovernedResult(fallback(), used_fallback=True, reason=ErrorKind.CLASSIFIER_FAILURE)

    def pause_between_depths(self, depth: int) -> None:
        if self.depth_delay_seconds <= 0:
            return
        logger.info("Waiting %.1fs before processing depth %d", self.depth_delay_seconds, depth)
        self._sleep(self.depth_delay_seconds)

    @classmethod
    def for_fetch(cls, settings: CrawlSettings, sleep: Callable[[float], None] = time.sleep) -> "Governor":
        """Navigation retry plus the inter-depth pause; no breaker."""
        return cls(
            "fetch",
            RetryPolicy(settings.retry_attempts, settings.retry_delay_ms / 1000, sleep=sleep),
            depth_delay_seconds=settings.depth_delay_ms / 1000,
            sleep=sleep,
        )

    @classmethod
    def for_classifier(
        cls,
        settings: CrawlSettings,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> "Governor":
        return cls(
            "classifier",
            RetryPolicy(settings.retry_attempts, settings.retry_delay_ms / 1000, sleep=sleep),
            breaker=CircuitBreaker(
                "classifier", settings.circuit_failure_threshold, settings.circuit_cooldown_seconds, clock=clock,
            ),
            sleep=sleep,
        )
