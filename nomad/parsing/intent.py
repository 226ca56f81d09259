"""Intent merge, validation and default resolution.

``merge`` folds one turn's extracted candidates into the running
``TripIntent``. It is a pure function: the prior intent is never mutated,
the same inputs always give the same output, and merging the same
candidates twice changes nothing the second time. Problems are reported as
``ValidationIssue`` objects, never raised.
"""

from __future__ import annotations

import datetime as dt
import logging
import re
from typing import Optional

from nomad.config.settings import IntentLimits
from nomad.domain.enums import BudgetTier, IntentField, Severity
from nomad.domain.exceptions import ExtractionAmbiguous
from nomad.domain.models import Destination, TripIntent, ValidationIssue
from nomad.parsing.regex_extractors import ExtractedEntities, PlaceCandidate, clean_place
from nomad.parsing.requirements import (
    FIELD_EXAMPLES,
    FIELD_LABELS,
    FIELD_QUESTIONS,
    check_missing,
    field_rank,
)
from nomad.parsing.rules import FILLER_REPLIES

_logger = logging.getLogger("nomad.intent")

_BARE_TOKEN_RE = re.compile(r"^[A-Za-z][A-Za-z'’\-]*(?:\s+[A-Za-z][A-Za-z'’\-]*){0,2}$")
_PLACE_SLOTS = (IntentField.ORIGIN, IntentField.DESTINATION)

INCONSISTENCY_CODES = frozenset({"inconsistent_duration", "date_conflict", "invalid_date_range"})


def bare_reply(text: str) -> Optional[str]:
    """A reply short enough to stand for a single place ("barcelona", "New York")."""
    stripped = (text or "").strip().strip(".!?")
    if not stripped or not _BARE_TOKEN_RE.match(stripped):
        return None
    if stripped.lower() in FILLER_REPLIES:
        return None
    name = clean_place(stripped if any(ch.isupper() for ch in stripped) else stripped.title())
    return name


def coerce_bare_reply(
    extracted: ExtractedEntities, text: str, awaiting_field: IntentField
) -> ExtractedEntities:
    """Fill the awaited place slot from a bare reply.

    Raises ``ExtractionAmbiguous`` when the reply cannot stand for the awaited
    field, so the caller can re-ask instead of guessing.
    """
    if awaiting_field not in _PLACE_SLOTS:
        raise ExtractionAmbiguous(awaiting_field.value, f"No {FIELD_LABELS[awaiting_field]} found in reply")
    name = bare_reply(text)
    if name is None:
        raise ExtractionAmbiguous(awaiting_field.value, f"Could not read a {FIELD_LABELS[awaiting_field]} from {text!r}")
    coerced = extracted.model_copy(deep=True)
    if awaiting_field == IntentField.ORIGIN:
        coerced.origin = name
    else:
        coerced.destinations = [PlaceCandidate(name=name, rule="bare_reply")]
    coerced.matched_rules.append(f"coerced:{awaiting_field.value}")
    return coerced


def merge(
    prior: TripIntent,
    extracted: ExtractedEntities,
    awaiting_field: Optional[IntentField] = None,
    limits: Optional[IntentLimits] = None,
    *,
    text: str = "",
) -> tuple[TripIntent, list[ValidationIssue]]:
    """Merge one turn into ``prior`` and validate the result."""
    limits = limits or IntentLimits()
    intent = prior.model_copy(deep=True)
    ambiguous_field: Optional[IntentField] = None

    if extracted.is_empty() and awaiting_field is not None:
        try:
            extracted = coerce_bare_reply(extracted, text, awaiting_field)
        except ExtractionAmbiguous as exc:
            _logger.debug("Reply not coercible: %s", exc)
            ambiguous_field = awaiting_field

    if extracted.origin:
        intent.origin = extracted.origin
    if extracted.return_to:
        intent.return_to = extracted.return_to
    _merge_destinations(intent, extracted)
    _merge_duration(intent, extracted)
    _merge_dates(intent, extracted)

    if extracted.travelers is not None:
        intent.travelers = extracted.travelers.model_copy()
    if extracted.budget_tier is not None:
        intent.budget_tier = extracted.budget_tier
    if extracted.budget_amount is not None:
        intent.budget_amount = extracted.budget_amount
    if extracted.interests:
        intent.interests = sorted(set(intent.interests) | set(extracted.interests))

    excluded = {name.lower() for name in (intent.origin, intent.return_to) if name}
    intent.destinations = [d for d in intent.destinations if d.key() not in excluded]

    issues = validate_intent(intent, limits)
    intent.inconsistent = any(issue.code in INCONSISTENCY_CODES for issue in issues)
    if ambiguous_field is not None:
        issues = [_ambiguous_issue(issue) if issue.field == ambiguous_field else issue for issue in issues]
    return intent, issues


def _merge_destinations(intent: TripIntent, extracted: ExtractedEntities) -> None:
    if not extracted.destinations:
        return
    incoming = [
        Destination(name=c.name, requested_duration_days=c.duration_days)
        for c in sorted(extracted.destinations, key=lambda c: c.position)
    ]
    current = {d.key(): d for d in intent.destinations}

    if all(d.key() in current for d in incoming):
        for d in incoming:
            if d.requested_duration_days is not None:
                current[d.key()].requested_duration_days = d.requested_duration_days
        return

    if extracted.additive:
        for d in incoming:
            existing = current.get(d.key())
            if existing is None:
                intent.destinations.append(d)
                current[d.key()] = d
            elif d.requested_duration_days is not None:
                existing.requested_duration_days = d.requested_duration_days
        return

    # A fresh list replaces the old one; known durations carry forward.
    for d in incoming:
        old = current.get(d.key())
        if d.requested_duration_days is None and old is not None:
            d.requested_duration_days = old.requested_duration_days
    intent.destinations = incoming


def _merge_duration(intent: TripIntent, extracted: ExtractedEntities) -> None:
    if not extracted.duration_days:
        return
    if len(intent.destinations) == 1:
        intent.destinations[0].requested_duration_days = extracted.duration_days
        intent.requested_total_days = None
    else:
        intent.requested_total_days = extracted.duration_days


def _merge_dates(intent: TripIntent, extracted: ExtractedEntities) -> None:
    if extracted.start_date is None:
        return
    intent.start_date = extracted.start_date
    if extracted.end_date is not None:
        intent.end_date = extracted.end_date
    elif intent.end_date is not None and intent.end_date < extracted.start_date:
        intent.end_date = None


# ── validation ────────────────────────────


def _missing_issue(field: IntentField) -> ValidationIssue:
    return ValidationIssue(
        code="missing_field",
        field=field,
        severity=Severity.HIGH,
        message=FIELD_QUESTIONS[field],
        suggestions=[f'For example: "{FIELD_EXAMPLES[field]}"'],
    )


def _ambiguous_issue(issue: ValidationIssue) -> ValidationIssue:
    label = FIELD_LABELS[issue.field]
    return issue.model_copy(update={
        "code": "ambiguous_reply",
        "message": f"Sorry, I couldn't tell which {label} you meant. {FIELD_QUESTIONS[issue.field]}",
    })


def stated_duration_days(intent: TripIntent) -> Optional[int]:
    """Duration the user spelled out, ignoring dates and defaults."""
    durations = [d.requested_duration_days for d in intent.destinations]
    if durations and all(d is not None for d in durations):
        return sum(durations)  # type: ignore[arg-type]
    return intent.requested_total_days


def estimated_total_days(intent: TripIntent, limits: IntentLimits) -> Optional[int]:
    if not intent.destinations:
        return intent.requested_total_days
    if intent.requested_total_days is not None:
        explicit = sum(d.requested_duration_days or 0 for d in intent.destinations)
        return max(intent.requested_total_days, explicit)
    if intent.start_date and intent.end_date and intent.end_date >= intent.start_date:
        explicit = sum(d.requested_duration_days or 0 for d in intent.destinations)
        return max((intent.end_date - intent.start_date).days + 1, explicit)
    return sum(d.requested_duration_days or limits.default_destination_days for d in intent.destinations)


def validate_intent(intent: TripIntent, limits: Optional[IntentLimits] = None) -> list[ValidationIssue]:
    """Missing-or-invalid fields, most critical first. Never raises."""
    limits = limits or IntentLimits()
    issues = [_missing_issue(field) for field in check_missing(intent)]

    count = len(intent.destinations)
    if count > limits.max_destinations:
        kept = ", ".join(d.name for d in intent.destinations[: limits.max_destinations])
        issues.append(ValidationIssue(
            code="too_many_destinations",
            field=IntentField.DESTINATION,
            severity=Severity.HIGH,
            message=(
                f"That trip has {count} destinations, which is too complex to plan in one go. "
                f"I can plan up to {limits.max_destinations} at a time."
            ),
            suggestions=[f'For example: "just {kept}"', "or split the journey into two trips"],
        ))

    explicit = [d.requested_duration_days for d in intent.destinations]
    if (
        intent.requested_total_days is not None
        and explicit
        and all(days is not None for days in explicit)
        and sum(explicit) != intent.requested_total_days  # type: ignore[arg-type]
    ):
        issues.append(ValidationIssue(
            code="inconsistent_duration",
            field=IntentField.DURATION,
            severity=Severity.HIGH,
            message=(
                f"The stops add up to {sum(explicit)} days but the trip is "  # type: ignore[arg-type]
                f"{intent.requested_total_days} days long."
            ),
            suggestions=[f'For example: "{FIELD_EXAMPLES[IntentField.DURATION]}"'],
        ))

    if intent.start_date and intent.end_date:
        if intent.end_date < intent.start_date:
            issues.append(ValidationIssue(
                code="invalid_date_range",
                field=IntentField.DATES,
                severity=Severity.HIGH,
                message="The return date is before the departure date.",
                suggestions=[f'For example: "{FIELD_EXAMPLES[IntentField.DATES]}"'],
            ))
        else:
            range_days = (intent.end_date - intent.start_date).days + 1
            stated = stated_duration_days(intent)
            if stated is not None and stated != range_days:
                issues.append(ValidationIssue(
                    code="date_conflict",
                    field=IntentField.DATES,
                    severity=Severity.HIGH,
                    message=(
                        f"You mentioned {stated} days, but {intent.start_date:%b %d} to "
                        f"{intent.end_date:%b %d} is {range_days} days. Which one should I use?"
                    ),
                    suggestions=[
                        f'For example: "{range_days} days from {intent.start_date:%B %d} to {intent.end_date:%B %d}"',
                    ],
                ))

    total = estimated_total_days(intent, limits)
    if total is not None and total > limits.max_total_days:
        issues.append(ValidationIssue(
            code="trip_too_long",
            field=IntentField.DURATION,
            severity=Severity.HIGH,
            message=f"A {total}-day trip is longer than the {limits.max_total_days} days I can plan at once.",
            suggestions=[f'For example: "{min(total, limits.max_total_days) // 2} days in {intent.destinations[0].name}"'
                         if intent.destinations else f'For example: "{FIELD_EXAMPLES[IntentField.DURATION]}"'],
        ))

    return sorted(issues, key=lambda issue: field_rank(issue.field))


def blocking_issues(issues: list[ValidationIssue]) -> list[ValidationIssue]:
    """Issues other than plain missing fields; these stop generation outright."""
    return [issue for issue in issues if issue.code not in {"missing_field", "ambiguous_reply"}]


# ── defaults ────────────────────────────


def resolve_intent(
    intent: TripIntent, today: dt.date, limits: Optional[IntentLimits] = None
) -> tuple[TripIntent, list[str]]:
    """Backfill optional fields with explicit defaults.

    Returns the resolved copy plus the names of the defaults that were applied.
    Resolving an already-resolved intent changes nothing.
    """
    limits = limits or IntentLimits()
    resolved = intent.model_copy(deep=True)
    applied: list[str] = []

    if resolved.start_date is None:
        resolved.start_date = today + dt.timedelta(days=limits.default_start_lead_days)
        applied.append("start_date")

    unspecified = [d for d in resolved.destinations if d.requested_duration_days is None]
    if unspecified:
        specified = sum(d.requested_duration_days or 0 for d in resolved.destinations)
        pool: Optional[int] = None
        if resolved.requested_total_days is not None:
            pool = resolved.requested_total_days - specified
        elif resolved.end_date is not None and resolved.end_date >= resolved.start_date:
            pool = (resolved.end_date - resolved.start_date).days + 1 - specified
        if pool is not None and pool >= len(unspecified):
            base, extra = divmod(pool, len(unspecified))
            for i, d in enumerate(unspecified):
                d.requested_duration_days = base + (1 if i < extra else 0)
            applied.append("duration_split")
        else:
            for d in unspecified:
                d.requested_duration_days = limits.default_destination_days
            applied.append("duration")

    offset = 0
    for d in resolved.destinations:
        d.start_offset_days = offset
        offset += d.requested_duration_days or 0
    if resolved.destinations:
        resolved.end_date = resolved.start_date + dt.timedelta(days=max(offset, 1) - 1)

    if resolved.budget_tier is None:
        resolved.budget_tier = BudgetTier.MEDIUM
        applied.append("budget")

    return resolved, applied


__all__ = [
    "INCONSISTENCY_CODES",
    "bare_reply",
    "blocking_issues",
    "coerce_bare_reply",
    "estimated_total_days",
    "merge",
    "resolve_intent",
    "stated_duration_days",
    "validate_intent",
]
