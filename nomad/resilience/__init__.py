"""Resilience primitives for upstream calls."""

from nomad.resilience.circuit import Circuit, CircuitRegistry

__all__ = ["Circuit", "CircuitRegistry"]
