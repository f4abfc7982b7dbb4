from unittest.mock import Mock

import pytest
import requests

from leadcrawl.domain import CrawlSettings, ErrorKind
from leadcrawl.domain.circuit import CircuitStatus
from leadcrawl.exceptions import CircuitOpenError, ClassifierError, NavigationError
from leadcrawl.services.governor import CircuitBreaker, Governor, RetryPolicy, is_transient


class _Clock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


class _StatusError(Exception):
    def __init__(self, code):
        super().__init__(f"status {code}")
        self.code = code


@pytest.mark.parametrize("error", [
    NavigationError("https://x.com/", transient=True),
    ClassifierError("busy", transient=True),
    requests.exceptions.Timeout("slow"),
    requests.exceptions.ConnectionError("reset"),
    TimeoutError(),
    ConnectionResetError(),
    _StatusError(429),
    _StatusError(503),
])
def test_transient_errors(error):
    assert is_transient(error)


@pytest.mark.parametrize("error", [
    NavigationError("https://x.com/", transient=False),
    ClassifierError("bad json"),
    ValueError("nope"),
    _StatusError(404),
])
def test_non_transient_errors(error):
    assert not is_transient(error)


def test_retry_policy_retries_transient_errors_with_exponential_backoff():
    sleep = Mock()
    fn = Mock(side_effect=[TimeoutError(), TimeoutError(), "ok"])
    policy = RetryPolicy(attempts=3, base_delay_seconds=2.0, sleep=sleep)

    assert policy.call(fn) == "ok"
    assert fn.call_count == 3
    assert [c.args[0] for c in sleep.call_args_list] == [2.0, 4.0]


def test_retry_policy_gives_up_after_attempts_and_reraises():
    sleep = Mock()
    fn = Mock(side_effect=TimeoutError("still down"))
    policy = RetryPolicy(attempts=3, base_delay_seconds=1.0, sleep=sleep)

    with pytest.raises(TimeoutError):
        policy.call(fn)
    assert fn.call_count == 3


def test_retry_policy_does_not_retry_non_transient_errors():
    sleep = Mock()
    fn = Mock(side_effect=ValueError("bad"))
    policy = RetryPolicy(attempts=3, base_delay_seconds=1.0, sleep=sleep)

    with pytest.raises(ValueError):
        policy.call(fn)
    assert fn.call_count == 1
    sleep.assert_not_called()


def test_fixed_backoff():
    sleep = Mock()
    fn = Mock(side_effect=[TimeoutError(), TimeoutError(), "ok"])
    RetryPolicy(attempts=3, base_delay_seconds=2.0, exponential=False, sleep=sleep).call(fn)
    assert [c.args[0] for c in sleep.call_args_list] == [2.0, 2.0]


def _classifier_governor(clock, threshold=5, cooldown=60.0):
    return Governor(
        "classifier",
        RetryPolicy(attempts=1, base_delay_seconds=0, sleep=Mock()),
        breaker=CircuitBreaker("classifier", threshold, cooldown, clock=clock),
    )


def test_circuit_opens_after_threshold_and_uses_fallback_without_calling():
    clock = _Clock()
    governor = _classifier_governor(clock)
    classify = Mock(side_effect=ClassifierError("boom"))
    fallback = Mock(return_value=["regex lead"])

    for _ in range(5):
        outcome = governor.call_with_fallback(classify, fallback)
        assert outcome.used_fallback
        assert outcome.reason is ErrorKind.CLASSIFIER_FAILURE
    assert classify.call_count == 5
    assert governor.breaker.state.status is CircuitStatus.OPEN

    clock.now = 30.0
    outcome = governor.call_with_fallback(classify, fallback)
    assert outcome.value == ["regex lead"]
    assert outcome.reason is ErrorKind.CIRCUIT_OPEN
    assert classify.call_count == 5


def test_circuit_recloses_after_cooldown_on_success():
    clock = _Clock()
    governor = _classifier_governor(clock, threshold=2, cooldown=60.0)
    failing = Mock(side_effect=ClassifierError("boom"))
    for _ in range(2):
        governor.call_with_fallback(failing, lambda: [])

    clock.now = 61.0
    assert governor.breaker.state.status is CircuitStatus.HALF_OPEN
    outcome = governor.call_with_fallback(lambda: ["real"], lambda: [])
    assert outcome.value == ["real"]
    assert not outcome.used_fallback
    assert governor.breaker.state.status is CircuitStatus.CLOSED


def test_call_without_fallback_raises_circuit_open():
    clock = _Clock()
    governor = _classifier_governor(clock, threshold=1)
    with pytest.raises(ClassifierError):
        governor.call(Mock(side_effect=ClassifierError("boom")))
    with pytest.raises(CircuitOpenError):
        governor.call(Mock())


def test_success_resets_consecutive_failures():
    clock = _Clock()
    governor = _classifier_governor(clock, threshold=3)
    failing = Mock(side_effect=ClassifierError("boom"))
    governor.call_with_fallback(failing, lambda: None)
    governor.call_with_fallback(failing, lambda: None)
    governor.call_with_fallback(lambda: "ok", lambda: None)
    governor.call_with_fallback(failing, lambda: None)
    assert governor.breaker.state.status is CircuitStatus.CLOSED


def test_pause_between_depths_uses_fixed_delay():
    sleep = Mock()
    governor = Governor("fetch", RetryPolicy(1, 0), depth_delay_seconds=2.0, sleep=sleep)
    governor.pause_between_depths(1)
    sleep.assert_called_once_with(2.0)


def test_factories_follow_settings():
    settings = CrawlSettings(retry_attempts=4, retry_delay_ms=500, depth_delay_ms=1500, circuit_failure_threshold=7)
    fetch = Governor.for_fetch(settings)
    classifier = Governor.for_classifier(settings)
    assert fetch.breaker is None
    assert fetch.retry_policy.attempts == 4
    assert fetch.retry_policy.base_delay_seconds == 0.5
    assert fetch.depth_delay_seconds == 1.5
    assert classifier.breaker.failure_threshold == 7
