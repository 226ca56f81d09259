"""Rule-driven entity extraction for free-text trip requests.

Shared by the dialog intake node and the intent merge step. ``extract_entities``
is a pure function of ``(text, now, hint)``: no ambient clock, no randomness,
and it never raises.
"""

from __future__ import annotations

import datetime as dt
import logging
import re
from dataclasses import dataclass
from typing import Optional, Union

from pydantic import BaseModel, Field

from nomad.domain.enums import BudgetTier, IntentField
from nomad.domain.models import Travelers
from nomad.parsing.dates import extract_dates, mask_spans
from nomad.parsing.rules import (
    ADDITIVE_RE,
    BUDGET_AMOUNT_RULES,
    BUDGET_TIER_RULES,
    DAILY_TIER_CEILINGS,
    DESTINATION_RULES,
    DURATION_RULES,
    INTEREST_RULES,
    KNOWN_PLACES,
    LIST_SPLIT_RE,
    NON_PLACE_WORDS,
    ORIGIN_RULES,
    PLACE,
    RETURN_RULES,
    TRAVELER_RULES,
    ExtractionRule,
    count_value,
)

_logger = logging.getLogger("nomad.parsing")

_BARE_NUMBER_RE = re.compile(r"^\s*(?:about\s+|around\s+|maybe\s+)?(\d{1,3})\s*[.!]?\s*$", re.I)
_BARE_LIST_RE = re.compile(rf"^\s*(?P<list>{PLACE}(?:\s*(?:,|\band\b|&)\s*{PLACE})+)\s*[.!]?\s*$")
_KNOWN_PLACE_RES = tuple(
    (name, re.compile(rf"(?<![A-Za-z]){re.escape(name)}(?![A-Za-z])", re.I)) for name in KNOWN_PLACES
)

Now = Union[dt.datetime, dt.date]


class PlaceCandidate(BaseModel):
    name: str
    duration_days: Optional[int] = None
    position: int = 0
    rule: str = ""


class ExtractedEntities(BaseModel):
    """Candidate bag for one piece of text. Absent values are None or empty."""

    origin: Optional[str] = None
    return_to: Optional[str] = None
    destinations: list[PlaceCandidate] = Field(default_factory=list)
    duration_days: Optional[int] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    travelers: Optional[Travelers] = None
    budget_tier: Optional[BudgetTier] = None
    budget_amount: Optional[float] = None
    interests: list[str] = Field(default_factory=list)
    additive: bool = False
    matched_rules: list[str] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not any((
            self.origin,
            self.return_to,
            self.destinations,
            self.duration_days,
            self.start_date,
            self.travelers,
            self.budget_tier,
            self.budget_amount,
            self.interests,
        ))


@dataclass
class _Span:
    name: str
    place_start: int
    place_end: int
    match_start: int
    match_end: int
    duration: Optional[int]
    rule: ExtractionRule

    @property
    def length(self) -> int:
        return self.match_end - self.match_start

    def overlaps(self, start: int, end: int) -> bool:
        return self.place_start < end and start < self.place_end


def _today(now: Now) -> dt.date:
    return now.date() if isinstance(now, dt.datetime) else now


def canonicalize_places(text: str) -> str:
    """Restore canonical capitalisation of known places without moving offsets."""
    chars = list(text)
    for name, pattern in _KNOWN_PLACE_RES:
        for m in pattern.finditer(text):
            if m.group(0) != name and len(m.group(0)) == len(name):
                chars[m.start():m.end()] = list(name)
    return "".join(chars)


def clean_place(raw: str) -> Optional[str]:
    """Trim stray words and reject tokens that are never places."""
    words = raw.strip(" ,.;:!?'\"").split()
    while words and words[0].lower() in NON_PLACE_WORDS:
        words.pop(0)
    while words and words[-1].lower() in NON_PLACE_WORDS:
        words.pop()
    if not words:
        return None
    name = " ".join(words)
    if name.lower() in NON_PLACE_WORDS or len(name) < 2:
        return None
    return name


def parse_duration(phrase: str) -> Optional[int]:
    """Days for a duration phrase ("a week" -> 7, "5d" -> 5); None if unparsed."""
    for rule in DURATION_RULES:
        m = rule.pattern.search(phrase)
        if m is None:
            continue
        if "n" in m.groupdict():
            n = count_value(m.group("n"))
            if n is None:
                continue
            return n * int(rule.value)
        return int(rule.value)
    return None


def _match_places(
    text: str, rules: tuple[ExtractionRule, ...], reserved: list[tuple[int, int]]
) -> list[_Span]:
    spans: list[_Span] = []
    for rule in rules:
        for m in rule.pattern.finditer(text):
            groups = m.groupdict()
            if groups.get("list"):
                list_start = m.start("list")
                for part in LIST_SPLIT_RE.split(groups["list"]):
                    name = clean_place(part)
                    if not name:
                        continue
                    offset = text.find(part, list_start)
                    offset = offset if offset >= 0 else list_start
                    spans.append(_Span(name, offset, offset + len(part), m.start(), m.end(), None, rule))
                continue
            name = clean_place(groups.get("place") or "")
            if not name:
                continue
            duration = parse_duration(groups["duration"]) if groups.get("duration") else None
            spans.append(_Span(name, m.start("place"), m.end("place"), m.start(), m.end(), duration, rule))

    # Longer matches first, then rule precedence; accept spans whose place
    # region is still free.
    spans.sort(key=lambda s: (-s.length, s.rule.precedence, s.place_start))
    accepted: list[_Span] = []
    for span in spans:
        if any(span.overlaps(s, e) for s, e in reserved):
            continue
        if any(span.overlaps(a.place_start, a.place_end) for a in accepted):
            continue
        accepted.append(span)
    accepted.sort(key=lambda s: s.place_start)
    return accepted


def _first_place(text: str, rules: tuple[ExtractionRule, ...], reserved: list[tuple[int, int]]) -> Optional[_Span]:
    matches = _match_places(text, rules, reserved)
    if not matches:
        return None
    return min(matches, key=lambda s: (s.rule.precedence, s.place_start))


def _dedupe(spans: list[_Span], excluded: set[str]) -> list[PlaceCandidate]:
    result: list[PlaceCandidate] = []
    index: dict[str, PlaceCandidate] = {}
    for span in spans:
        key = span.name.lower()
        if key in excluded:
            continue
        existing = index.get(key)
        if existing is None:
            candidate = PlaceCandidate(
                name=span.name, duration_days=span.duration, position=span.place_start, rule=span.rule.name
            )
            index[key] = candidate
            result.append(candidate)
        elif existing.duration_days is None and span.duration is not None:
            existing.duration_days = span.duration
    return result


def _trip_duration(text: str, consumed: list[tuple[int, int]]) -> tuple[Optional[int], Optional[str]]:
    free_text = mask_spans(text, consumed)
    for rule in DURATION_RULES:
        m = rule.pattern.search(free_text)
        if m is None:
            continue
        days = parse_duration(m.group(0))
        if days:
            return days, rule.name
    return None, None


def extract_travelers(text: str) -> tuple[Optional[Travelers], list[str]]:
    adults: Optional[int] = None
    children: Optional[int] = None
    fired: list[str] = []
    for rule in TRAVELER_RULES:
        m = rule.pattern.search(text)
        if m is None:
            continue
        groups = m.groupdict()
        n = count_value(groups.get("n") or groups.get("m"))
        if rule.name == "family_of_n" and n:
            adults, children = 2 if n >= 2 else n, max(0, n - 2)
        elif rule.name == "n_adults" and n and adults is None:
            adults = n
        elif rule.name == "n_children" and n is not None and children is None:
            children = n
        elif rule.name == "n_people" and n and adults is None:
            adults = n
        elif rule.value is not None and adults is None:
            adults = int(rule.value)
        else:
            continue
        fired.append(rule.name)
    if adults is None and children is None:
        return None, fired
    return Travelers(adults=adults if adults is not None else 1, children=children or 0), fired


def extract_budget(text: str) -> tuple[Optional[BudgetTier], Optional[float], list[str]]:
    tier: Optional[BudgetTier] = None
    amount: Optional[float] = None
    fired: list[str] = []
    for rule in BUDGET_AMOUNT_RULES:
        m = rule.pattern.search(text)
        if m is None:
            continue
        value = float(m.group("amount").replace(",", ""))
        if m.group("k"):
            value *= 1000
        amount = value
        fired.append(rule.name)
        if rule.name == "amount_per_day":
            tier = BudgetTier.LUXURY
            for ceiling, ceiling_tier in DAILY_TIER_CEILINGS:
                if value < ceiling:
                    tier = ceiling_tier
                    break
        break
    if tier is None:
        for rule in BUDGET_TIER_RULES:
            if rule.pattern.search(text):
                tier = rule.value
                fired.append(rule.name)
                break
    return tier, amount, fired


def extract_interests(text: str) -> list[str]:
    return sorted({str(rule.value) for rule in INTEREST_RULES if rule.pattern.search(text)})


def _apply_hint(text: str, hint: Optional[IntentField], bag: ExtractedEntities) -> None:
    """Bias bare replies toward the field the last question asked about."""
    if hint in (IntentField.TRAVELERS, IntentField.DURATION, IntentField.DATES):
        m = _BARE_NUMBER_RE.match(text)
        if m:
            n = int(m.group(1))
            if hint == IntentField.TRAVELERS and bag.travelers is None:
                bag.travelers = Travelers(adults=n, children=0)
                bag.matched_rules.append("hint_travelers_number")
            elif hint != IntentField.TRAVELERS and bag.duration_days is None:
                bag.duration_days = n
                bag.matched_rules.append("hint_duration_number")
    elif hint == IntentField.DESTINATION and not bag.destinations:
        m = _BARE_LIST_RE.match(text)
        if m:
            names = [clean_place(part) for part in LIST_SPLIT_RE.split(m.group("list"))]
            position = 0
            for name in names:
                if name and name.lower() not in {c.name.lower() for c in bag.destinations}:
                    bag.destinations.append(PlaceCandidate(name=name, position=position, rule="hint_place_list"))
                    position += 1
            if bag.destinations:
                bag.matched_rules.append("hint_place_list")


def extract_entities(text: str, now: Now, hint: Optional[IntentField] = None) -> ExtractedEntities:
    """Extract every candidate from ``text``. Never raises."""
    try:
        return _extract(text or "", _today(now), hint)
    except Exception:
        # A rule bug must not break the conversation; report an empty bag.
        _logger.exception("Entity extraction failed; returning empty candidates")
        return ExtractedEntities()


def _extract(text: str, today: dt.date, hint: Optional[IntentField]) -> ExtractedEntities:
    bag = ExtractedEntities()
    text = re.sub(r"\s+", " ", text).strip()
    if not text:
        return bag

    date_match, date_spans = extract_dates(text, today)
    if date_match is not None:
        bag.start_date = date_match.start
        bag.end_date = date_match.end
        bag.matched_rules.append(f"date:{date_match.rule}")

    working = canonicalize_places(mask_spans(text, date_spans))

    origin = _first_place(working, ORIGIN_RULES, [])
    reserved: list[tuple[int, int]] = []
    if origin is not None:
        bag.origin = origin.name
        reserved.append((origin.place_start, origin.place_end))
        bag.matched_rules.append(f"origin:{origin.rule.name}")

    returning = _first_place(working, RETURN_RULES, reserved)
    if returning is not None:
        bag.return_to = returning.name
        reserved.append((returning.place_start, returning.place_end))
        bag.matched_rules.append(f"return:{returning.rule.name}")

    spans = _match_places(working, DESTINATION_RULES, reserved)
    excluded = {name.lower() for name in (bag.origin, bag.return_to) if name}
    bag.destinations = _dedupe(spans, excluded)
    bag.matched_rules.extend(sorted({f"destination:{s.rule.name}" for s in spans}))

    consumed = [(s.match_start, s.match_end) for s in spans if s.duration is not None]
    bag.duration_days, duration_rule = _trip_duration(working, consumed)
    if duration_rule:
        bag.matched_rules.append(f"duration:{duration_rule}")

    bag.travelers, traveler_rules = extract_travelers(working)
    bag.matched_rules.extend(f"travelers:{name}" for name in traveler_rules)
    bag.budget_tier, bag.budget_amount, budget_rules = extract_budget(working)
    bag.matched_rules.extend(f"budget:{name}" for name in budget_rules)
    bag.interests = extract_interests(working)
    bag.additive = bool(ADDITIVE_RE.search(working))

    if hint is not None:
        _apply_hint(canonicalize_places(text), hint, bag)
    return bag


__all__ = [
    "ExtractedEntities",
    "PlaceCandidate",
    "canonicalize_places",
    "clean_place",
    "extract_budget",
    "extract_entities",
    "extract_interests",
    "extract_travelers",
    "parse_duration",
]
