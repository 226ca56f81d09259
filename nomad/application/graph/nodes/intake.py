"""Intake node: extract candidates from the reply and merge them into the intent."""

from __future__ import annotations

from typing import Any, Optional

from nomad.config.settings import IntentLimits
from nomad.domain.enums import IntentField
from nomad.domain.models import TripIntent
from nomad.parsing.intent import merge
from nomad.parsing.regex_extractors import extract_entities
from nomad.parsing.requirements import check_missing


def intake_node(state: dict[str, Any], *, limits: Optional[IntentLimits] = None) -> dict[str, Any]:
    text = state.get("text", "")
    hint = IntentField(state["hint"]) if state.get("hint") else None
    prior = TripIntent.model_validate(state.get("intent") or {})

    extracted = extract_entities(text, state["today"], hint=hint)
    intent, issues = merge(prior, extracted, hint, limits, text=text)

    return {
        "intent": intent.model_dump(mode="json"),
        "issues": [issue.model_dump(mode="json") for issue in issues],
        "missing_fields": [field.value for field in check_missing(intent)],
        "matched_rules": list(extracted.matched_rules),
    }
