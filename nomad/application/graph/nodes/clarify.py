"""Clarify node: ask exactly one question about the most important gap."""

from __future__ import annotations

from typing import Any, Optional

from nomad.domain.enums import IntentField
from nomad.domain.models import TripIntent, ValidationIssue
from nomad.parsing.requirements import FIELD_QUESTIONS, pick_awaiting_field

_DEFAULT_PRIORITY = [IntentField.DESTINATION, IntentField.ORIGIN]


def _acknowledge(intent: TripIntent, awaiting: IntentField) -> str:
    if awaiting == IntentField.ORIGIN and intent.destinations:
        return f"Great, {_join(intent.destination_names())}! "
    if awaiting == IntentField.DESTINATION and intent.origin:
        return f"Got it, leaving from {intent.origin}. "
    return ""


def _join(names: list[str]) -> str:
    if len(names) <= 1:
        return "".join(names)
    return ", ".join(names[:-1]) + f" and {names[-1]}"


def clarify_node(state: dict[str, Any], *, priority: Optional[list[IntentField]] = None) -> dict[str, Any]:
    missing = [IntentField(f) for f in state.get("missing_fields", [])]
    awaiting = pick_awaiting_field(missing, priority or _DEFAULT_PRIORITY)
    if awaiting is None:
        return {"response_type": "ready"}

    intent = TripIntent.model_validate(state.get("intent") or {})
    issues = [ValidationIssue.model_validate(raw) for raw in state.get("issues", [])]
    issue = next((i for i in issues if i.field == awaiting), None)
    question = issue.message if issue is not None and issue.message else FIELD_QUESTIONS[awaiting]
    if issue is None or issue.code == "missing_field":
        question = _acknowledge(intent, awaiting) + question
    if issue is not None and issue.suggestions:
        question = f"{question} ({issue.suggestions[0]})"

    return {
        "awaiting_field": awaiting.value,
        "response_type": "question",
        "message": question,
    }
