"""Per-dependency circuit breakers.

A circuit counts failures inside a sliding window. Reaching the threshold
opens it; after the cooldown one trial call is let through (HALF_OPEN) and
its outcome either closes the circuit or re-opens it.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Optional, TypeVar

from nomad.config.settings import CircuitPolicy
from nomad.domain.enums import CircuitState
from nomad.domain.exceptions import UpstreamUnavailable

_logger = logging.getLogger("nomad.circuit")

T = TypeVar("T")
Clock = Callable[[], float]


class Circuit:
    def __init__(self, name: str, policy: Optional[CircuitPolicy] = None, clock: Clock = time.monotonic):
        self.name = name
        self.policy = policy or CircuitPolicy()
        self._clock = clock
        self._lock = threading.Lock()
        self._state = CircuitState.CLOSED
        self._failures: list[float] = []
        self._opened_at: Optional[float] = None
        self._trial_in_flight = False

    @property
    def state(self) -> CircuitState:
        with self._lock:
            return self._state

    def _prune(self, now: float) -> None:
        window = self.policy.reset_window_seconds
        self._failures = [ts for ts in self._failures if now - ts < window]

    def _transition(self, new_state: CircuitState) -> None:
        if new_state != self._state:
            _logger.info("Circuit %s: %s -> %s", self.name, self._state.value, new_state.value)
            self._state = new_state

    def can_call(self) -> bool:
        """Whether a call may go out now. While HALF_OPEN, admits exactly one trial call."""
        with self._lock:
            now = self._clock()
            self._prune(now)
            if self._state == CircuitState.OPEN:
                opened_at = self._opened_at if self._opened_at is not None else now
                if now - opened_at < self.policy.cooldown_seconds:
                    return False
                self._transition(CircuitState.HALF_OPEN)
                self._trial_in_flight = False
            if self._state == CircuitState.HALF_OPEN:
                if self._trial_in_flight:
                    return False
                self._trial_in_flight = True
                return True
            return True

    def success(self) -> None:
        with self._lock:
            if self._state == CircuitState.HALF_OPEN:
                self._failures.clear()
                self._opened_at = None
                self._trial_in_flight = False
                self._transition(CircuitState.CLOSED)

    def fail(self) -> None:
        with self._lock:
            now = self._clock()
            self._failures.append(now)
            self._prune(now)
            if self._state == CircuitState.HALF_OPEN:
                self._opened_at = now
                self._trial_in_flight = False
                self._transition(CircuitState.OPEN)
            elif self._state == CircuitState.CLOSED and len(self._failures) >= self.policy.threshold:
                self._opened_at = now
                self._transition(CircuitState.OPEN)
                _logger.warning(
                    "Circuit %s opened after %d failures in %.0fs",
                    self.name,
                    len(self._failures),
                    self.policy.reset_window_seconds,
                )

    def call(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run ``fn`` under this circuit, recording the outcome exactly once."""
        if not self.can_call():
            raise UpstreamUnavailable(self.name)
        try:
            result = fn(*args, **kwargs)
        except Exception:
            self.fail()
            raise
        self.success()
        return result

    def reset(self) -> None:
        with self._lock:
            self._failures.clear()
            self._opened_at = None
            self._trial_in_flight = False
            self._state = CircuitState.CLOSED

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            self._prune(self._clock())
            return {
                "name": self.name,
                "state": self._state.value,
                "failures": len(self._failures),
                "opened_at": self._opened_at,
                "threshold": self.policy.threshold,
            }


class CircuitRegistry:
    """Hands out one shared circuit per dependency name."""

    def __init__(self, policies: Optional[dict[str, CircuitPolicy]] = None, clock: Clock = time.monotonic):
        self._policies = dict(policies or {})
        self._clock = clock
        self._circuits: dict[str, Circuit] = {}
        self._lock = threading.Lock()

    def get(self, name: str) -> Circuit:
        with self._lock:
            circuit = self._circuits.get(name)
            if circuit is None:
                circuit = Circuit(name, self._policies.get(name, CircuitPolicy()), clock=self._clock)
                self._circuits[name] = circuit
            return circuit

    def reset(self, name: Optional[str] = None) -> None:
        with self._lock:
            circuits = list(self._circuits.values()) if name is None else [self._circuits[name]] if name in self._circuits else []
        for circuit in circuits:
            circuit.reset()

    def snapshot(self) -> dict[str, dict[str, Any]]:
        with self._lock:
            circuits = dict(self._circuits)
        return {name: circuit.snapshot() for name, circuit in circuits.items()}
