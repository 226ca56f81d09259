"""Prepare node: backfill defaults once every required field is known."""

from __future__ import annotations

from typing import Any, Optional

from nomad.config.settings import IntentLimits
from nomad.domain.models import TripIntent
from nomad.parsing.intent import resolve_intent

_DEFAULT_LABELS = {
    "start_date": "a start date one week out",
    "duration": "default stay lengths",
    "duration_split": "an even split of the trip length",
    "budget": "a mid-range budget",
}


def summarize(intent: TripIntent) -> str:
    stops = " -> ".join(f"{d.name} ({d.requested_duration_days} days)" for d in intent.destinations)
    total = intent.total_duration_days
    start = intent.start_date.isoformat() if intent.start_date else "soon"
    return f"Planning {total} days from {intent.origin}: {stops}, starting {start}."


def prepare_node(state: dict[str, Any], *, limits: Optional[IntentLimits] = None) -> dict[str, Any]:
    intent = TripIntent.model_validate(state.get("intent") or {})
    resolved, applied = resolve_intent(intent, state["today"], limits)
    message = summarize(resolved)
    if applied:
        message += " I assumed " + ", ".join(_DEFAULT_LABELS.get(name, name) for name in applied) + "."
    return {
        "resolved_intent": resolved.model_dump(mode="json"),
        "applied_defaults": applied,
        "awaiting_field": None,
        "response_type": "ready",
        "message": message,
    }
