from leadcrawl.domain import circuit
from leadcrawl.domain.circuit import CircuitState, CircuitStatus


def test_new_circuit_is_closed_and_allows_calls():
    state = CircuitState()
    assert state.status is CircuitStatus.CLOSED
    assert circuit.allows_call(state)


def test_failures_below_threshold_stay_closed():
    state = CircuitState()
    for _ in range(4):
        state = circuit.record_failure(state, now=10.0, threshold=5)
    assert state.status is CircuitStatus.CLOSED
    assert state.consecutive_failures == 4


def test_reaching_threshold_opens():
    state = CircuitState()
    for _ in range(5):
        state = circuit.record_failure(state, now=10.0, threshold=5)
    assert state.status is CircuitStatus.OPEN
    assert state.opened_at == 10.0
    assert not circuit.allows_call(state)


def test_success_resets_failure_count():
    state = CircuitState()
    state = circuit.record_failure(state, now=1.0, threshold=5)
    state = circuit.record_failure(state, now=2.0, threshold=5)
    state = circuit.record_success(state)
    assert state == CircuitState()


def test_open_moves_to_half_open_after_cooldown():
    state = CircuitState(CircuitStatus.OPEN, 5, opened_at=100.0)
    assert circuit.advance(state, now=159.0, cooldown_seconds=60).status is CircuitStatus.OPEN
    half = circuit.advance(state, now=160.0, cooldown_seconds=60)
    assert half.status is CircuitStatus.HALF_OPEN
    assert circuit.allows_call(half)


def test_half_open_failure_reopens_immediately():
    state = CircuitState(CircuitStatus.HALF_OPEN, 5, opened_at=100.0)
    state = circuit.record_failure(state, now=170.0, threshold=50)
    assert state.status is CircuitStatus.OPEN
    assert state.opened_at == 170.0


def test_half_open_success_closes():
    state = CircuitState(CircuitStatus.HALF_OPEN, 5, opened_at=100.0)
    assert circuit.record_success(state).status is CircuitStatus.CLOSED


def test_seconds_until_retry():
    state = CircuitState(CircuitStatus.OPEN, 5, opened_at=100.0)
    assert circuit.seconds_until_retry(state, now=130.0, cooldown_seconds=60) == 30.0
    assert circuit.seconds_until_retry(CircuitState(), now=130.0, cooldown_seconds=60) == 0.0
