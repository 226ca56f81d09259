"""Deterministic parsing helpers."""

from nomad.parsing.intent import merge, resolve_intent, validate_intent
from nomad.parsing.regex_extractors import ExtractedEntities, PlaceCandidate, extract_entities
from nomad.parsing.requirements import (
    FIELD_EXAMPLES,
    FIELD_LABELS,
    FIELD_QUESTIONS,
    REQUIRED_FIELDS,
    check_missing,
    pick_awaiting_field,
)

__all__ = [
    "REQUIRED_FIELDS",
    "FIELD_LABELS",
    "FIELD_QUESTIONS",
    "FIELD_EXAMPLES",
    "ExtractedEntities",
    "PlaceCandidate",
    "check_missing",
    "extract_entities",
    "merge",
    "pick_awaiting_field",
    "resolve_intent",
    "validate_intent",
]
