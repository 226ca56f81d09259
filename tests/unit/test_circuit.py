"""Circuit breaker tests (fake clock)."""

import pytest

from nomad.config.settings import CircuitPolicy
from nomad.domain.enums import CircuitState
from nomad.domain.exceptions import UpstreamUnavailable
from nomad.resilience.circuit import Circuit, CircuitRegistry


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


POLICY = CircuitPolicy(threshold=3, cooldown_seconds=30.0, reset_window_seconds=60.0)


def _tripped(clock):
    circuit = Circuit("ai", POLICY, clock=clock)
    for _ in range(3):
        assert circuit.can_call()
        circuit.fail()
    return circuit


def test_opens_at_threshold_and_refuses_calls():
    clock = FakeClock()
    circuit = Circuit("ai", POLICY, clock=clock)
    circuit.fail()
    circuit.fail()
    assert circuit.state == CircuitState.CLOSED
    circuit.fail()
    assert circuit.state == CircuitState.OPEN
    assert not circuit.can_call()


def test_failures_outside_window_are_forgotten():
    clock = FakeClock()
    circuit = Circuit("ai", POLICY, clock=clock)
    circuit.fail()
    circuit.fail()
    clock.advance(61)
    circuit.fail()
    assert circuit.state == CircuitState.CLOSED
    assert circuit.snapshot()["failures"] == 1


def test_half_open_admits_single_trial_call_then_closes():
    clock = FakeClock()
    circuit = _tripped(clock)
    clock.advance(29)
    assert not circuit.can_call()
    clock.advance(1)
    assert circuit.can_call()
    assert circuit.state == CircuitState.HALF_OPEN
    assert not circuit.can_call()  # trial call already in flight
    circuit.success()
    assert circuit.state == CircuitState.CLOSED
    assert circuit.can_call()
    assert circuit.snapshot()["failures"] == 0


def test_failed_trial_call_reopens_for_full_cooldown():
    clock = FakeClock()
    circuit = _tripped(clock)
    clock.advance(30)
    assert circuit.can_call()
    circuit.fail()
    assert circuit.state == CircuitState.OPEN
    clock.advance(29)
    assert not circuit.can_call()
    clock.advance(1)
    assert circuit.can_call()


def test_success_while_closed_keeps_failure_window():
    clock = FakeClock()
    circuit = Circuit("ai", POLICY, clock=clock)
    circuit.fail()
    circuit.fail()
    circuit.success()
    circuit.fail()
    assert circuit.state == CircuitState.OPEN


def test_call_records_outcome_and_raises_when_open():
    clock = FakeClock()
    circuit = Circuit("places", POLICY, clock=clock)
    assert circuit.call(lambda x: x * 2, 21) == 42

    def boom():
        raise ValueError("upstream down")

    for _ in range(3):
        with pytest.raises(ValueError):
            circuit.call(boom)
    with pytest.raises(UpstreamUnavailable) as exc_info:
        circuit.call(lambda: "never")
    assert exc_info.value.dependency == "places"


def test_registry_shares_one_circuit_per_dependency():
    clock = FakeClock()
    registry = CircuitRegistry({"ai": POLICY}, clock=clock)
    assert registry.get("ai") is registry.get("ai")
    assert registry.get("weather") is not registry.get("ai")
    assert registry.get("weather").policy == CircuitPolicy()

    for _ in range(3):
        registry.get("ai").fail()
    assert registry.snapshot()["ai"]["state"] == "OPEN"
    assert registry.snapshot()["weather"]["state"] == "CLOSED"

    registry.reset("ai")
    assert registry.get("ai").state == CircuitState.CLOSED
