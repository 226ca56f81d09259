"""Extraction rule tables.

Every pattern the extractors use lives here as data: an ordered tuple of
named ``ExtractionRule`` objects. Lower ``precedence`` wins when two rules
claim the same span, so adding a phrasing means appending a rule, not
editing control flow.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Optional

from nomad.domain.enums import BudgetTier


@dataclass(frozen=True)
class ExtractionRule:
    name: str
    pattern: re.Pattern[str]
    precedence: int
    value: Any = None
    doc: str = ""


def _rule(name: str, regex: str, precedence: int, value: Any = None, doc: str = "", flags: int = 0) -> ExtractionRule:
    return ExtractionRule(name=name, pattern=re.compile(regex, flags), precedence=precedence, value=value, doc=doc)


# ── vocabulary ────────────────────────────

NUMBER_WORDS: dict[str, int] = {
    "a": 1, "an": 1, "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10, "eleven": 11,
    "twelve": 12, "thirteen": 13, "fourteen": 14, "fifteen": 15,
    "twenty": 20, "thirty": 30, "couple": 2, "a couple of": 2,
}

_NUMBER_WORD_ALT = "one|two|three|four|five|six|seven|eight|nine|ten|eleven|twelve|thirteen|fourteen|fifteen|twenty|thirty"
COUNT = rf"(?:\d{{1,3}}|{_NUMBER_WORD_ALT})"

MONTHS: dict[str, int] = {
    "january": 1, "jan": 1, "february": 2, "feb": 2, "march": 3, "mar": 3,
    "april": 4, "apr": 4, "may": 5, "june": 6, "jun": 6, "july": 7, "jul": 7,
    "august": 8, "aug": 8, "september": 9, "sept": 9, "sep": 9,
    "october": 10, "oct": 10, "november": 11, "nov": 11, "december": 12, "dec": 12,
}
MONTH = r"(?:january|february|march|april|may|june|july|august|september|october|november|december|jan|feb|mar|apr|jun|jul|aug|sept|sep|oct|nov|dec)\.?"

WEEKDAYS: dict[str, int] = {
    "monday": 0, "tuesday": 1, "wednesday": 2, "thursday": 3,
    "friday": 4, "saturday": 5, "sunday": 6,
}

# Capitalised words, optionally joined by lowercase particles ("Rio de Janeiro").
PLACE = r"(?:[A-Z][A-Za-z'’\-]*(?:\s+(?:(?:de|da|do|del|of|the|la|le|el|al|upon|sur)\s+)?[A-Z][A-Za-z'’\-]*)*)"

# Capitalised tokens that are never places on their own.
NON_PLACE_WORDS = frozenset({
    "i", "i'm", "i'd", "i'll", "im", "we", "my", "me", "you", "it", "the", "a", "an",
    "then", "after", "also", "and", "but", "so", "finally", "next", "first", "last",
    "plan", "please", "hi", "hello", "hey", "thanks", "thank", "ok", "okay", "yes", "no",
    "trip", "travel", "visit", "spend", "from", "to", "in", "for", "on", "at",
    "day", "days", "week", "weeks", "weekend", "month", "months", "year",
    "today", "tomorrow", "tonight", "christmas", "easter", "new year", "new year's",
    "spring", "summer", "autumn", "fall", "winter",
    *MONTHS.keys(), *WEEKDAYS.keys(),
})

# Canonical spellings restored case-insensitively, so lowercase input still
# produces place candidates. Longest names first.
KNOWN_PLACES: tuple[str, ...] = tuple(sorted((
    "New York", "Los Angeles", "San Francisco", "San Diego", "Las Vegas", "New Orleans",
    "Rio de Janeiro", "Buenos Aires", "Mexico City", "Hong Kong", "Kuala Lumpur",
    "Cape Town", "Tel Aviv", "Ho Chi Minh City", "St Petersburg", "Sao Paulo",
    "New Zealand", "South Africa", "United Kingdom", "United States", "Costa Rica",
    "Paris", "London", "Rome", "Berlin", "Madrid", "Barcelona", "Lisbon", "Amsterdam",
    "Prague", "Vienna", "Budapest", "Athens", "Istanbul", "Dubai", "Tokyo", "Kyoto",
    "Osaka", "Seoul", "Beijing", "Shanghai", "Bangkok", "Singapore", "Bali", "Sydney",
    "Melbourne", "Auckland", "Toronto", "Vancouver", "Montreal", "Chicago", "Boston",
    "Miami", "Seattle", "Lima", "Cusco", "Cairo", "Marrakech", "Nairobi", "Reykjavik",
    "Dublin", "Edinburgh", "Copenhagen", "Stockholm", "Oslo", "Helsinki", "Zurich",
    "Florence", "Venice", "Milan", "Naples", "Munich", "Porto", "Seville",
    "Japan", "Italy", "France", "Spain", "Portugal", "Germany", "Greece", "Iceland",
    "Thailand", "Vietnam", "Peru", "Mexico", "Canada", "Australia", "Morocco", "Egypt",
    "Kenya", "Denmark", "Norway", "Sweden", "Ireland", "Scotland", "Croatia", "Turkey",
    "Zimbabwe", "Nicaragua", "Madagascar", "Ethiopia", "Argentina", "Brazil", "Chile",
), key=len, reverse=True))

# Filler replies that must never be coerced into a place slot.
FILLER_REPLIES = frozenset({
    "yes", "no", "yeah", "nope", "ok", "okay", "sure", "maybe", "idk", "dunno",
    "anywhere", "somewhere", "nowhere", "thanks", "thank you", "hi", "hello", "hey",
    "not sure", "don't know", "help", "what", "why", "skip",
})

ADDITIVE_RE = re.compile(r"(?i)\b(?:also|add|adding|too|as well|plus|in addition)\b")


# ── durations ────────────────────────────
# Most specific first: an explicit "N days" beats a vague "a week".

DURATION_PHRASE = (
    rf"(?:{COUNT}\s*(?:-\s*|\s+)?(?:days?|nights?)"
    rf"|\d{{1,3}}d"
    rf"|{COUNT}\s*(?:-\s*|\s+)?weeks?"
    rf"|(?:a|one|1)\s+fortnight|fortnight"
    rf"|(?:a|one)\s+week|(?:a|one)\s+month"
    rf"|(?:a\s+)?long\s+weekend|(?:a|the)\s+weekend)"
)

DURATION_RULES: tuple[ExtractionRule, ...] = (
    _rule("numeric_days", r"\b(?P<n>\d{1,3})\s*(?:-\s*|\s+)?(?:days?|nights?)\b", 10, 1, "5 days, 5-day, 4 nights", re.I),
    _rule("compact_days", r"\b(?P<n>\d{1,3})d\b", 11, 1, "5d", re.I),
    _rule("numeric_weeks", r"\b(?P<n>\d{1,2})\s*(?:-\s*|\s+)?weeks?\b", 12, 7, "2 weeks", re.I),
    _rule("word_days", rf"\b(?P<n>{_NUMBER_WORD_ALT})\s*(?:-\s*|\s+)?(?:days?|nights?)\b", 20, 1, "five days", re.I),
    _rule("word_weeks", rf"\b(?P<n>{_NUMBER_WORD_ALT})\s*(?:-\s*|\s+)?weeks?\b", 21, 7, "two weeks", re.I),
    _rule("fortnight", r"\bfortnight\b", 30, 14, "a fortnight", re.I),
    _rule("a_week", r"\b(?:a|one)\s+week\b", 31, 7, "a week", re.I),
    _rule("a_month", r"\b(?:a|one)\s+month\b", 32, 30, "a month", re.I),
    _rule("long_weekend", r"\blong\s+weekend\b", 33, 3, "a long weekend", re.I),
    _rule("weekend", r"\b(?:a|the)\s+weekend\b", 34, 2, "a weekend", re.I),
)


# ── places ────────────────────────────

ORIGIN_RULES: tuple[ExtractionRule, ...] = (
    _rule("from_place", rf"(?i:\bfrom)\s+(?P<place>{PLACE})", 10, doc="from Melbourne"),
    _rule(
        "departing_place",
        rf"(?i:\b(?:depart(?:ing|s)?|leaving|flying\s+out\s+of|based\s+in|live\s+in|living\s+in))\s+(?:(?i:from)\s+)?(?P<place>{PLACE})",
        20,
        doc="departing Sydney, I live in Boston",
    ),
)

RETURN_RULES: tuple[ExtractionRule, ...] = (
    _rule(
        "back_home_to",
        rf"(?i:\b(?:back\s+(?:home\s+)?to|return(?:ing)?\s+(?:home\s+)?to|home\s+to|fly(?:ing)?\s+home\s+to))\s+(?P<place>{PLACE})",
        10,
        doc="going back home to LA",
    ),
)

DESTINATION_RULES: tuple[ExtractionRule, ...] = (
    _rule(
        "duration_in_place",
        rf"(?i:(?:\bspend(?:ing)?\s+|\bstay(?:ing)?\s+)?)(?P<duration>(?i:{DURATION_PHRASE}))\s+(?i:in|at|exploring|visiting|around)\s+(?P<place>{PLACE})",
        10,
        doc="3 days in Paris, spend a week in Madagascar",
    ),
    _rule(
        "place_for_duration",
        rf"(?:(?i:\b(?:visit(?:ing)?|see(?:ing)?|explor(?:e|ing)|stay(?:ing)?\s+in|head(?:ing)?\s+to|go(?:ing)?\s+to|travel(?:l?ing)?\s+to|fly(?:ing)?\s+to|then|in))\s+)?(?P<place>{PLACE})\s+(?i:for)\s+(?:(?i:about|around|roughly|maybe)\s+)?(?P<duration>(?i:{DURATION_PHRASE}))",
        20,
        doc="visit Nicaragua for a week, Denmark for 3 days",
    ),
    _rule(
        "to_place_list",
        rf"(?i:\bto)\s+(?P<list>{PLACE}(?:\s*,\s*{PLACE})*(?:\s*,?\s*(?i:and|&)\s+{PLACE})?)",
        25,
        doc="from London to Paris, from Boston to Paris and Rome",
    ),
    _rule(
        "duration_trip_to_place",
        rf"(?P<duration>(?i:{DURATION_PHRASE}))\s+(?i:trip|holiday|vacation|getaway|break|stay)\s+(?i:to|in)\s+(?P<place>{PLACE})",
        30,
        doc="weekend trip to Rome, 5-day trip to Lisbon",
    ),
    _rule(
        "place_list",
        rf"(?i:\b(?:visit(?:ing)?|explor(?:e|ing)|includ(?:e|ing)|across|through|cities|countries))\s*:?\s+(?P<list>{PLACE}(?:\s*,\s*{PLACE})*\s*,?\s*(?i:and|&)\s+{PLACE})",
        40,
        doc="2 weeks across Paris, Rome and Berlin",
    ),
    _rule(
        "travel_verb_place",
        rf"(?i:\b(?:trip|travel(?:l?ing)?|fly(?:ing)?|go(?:ing)?|head(?:ing)?|journey|visit(?:ing)?|explor(?:e|ing)|see(?:ing)?|tour(?:ing)?|vacation|holiday))\s+(?:(?i:to|around|in)\s+)?(?P<place>{PLACE})",
        50,
        doc="trip to Zimbabwe, visit Denmark",
    ),
    _rule(
        "sequence_place",
        rf"(?i:\b(?:then|and\s+then|after\s+that|followed\s+by|finally))\s*,?\s+(?:(?i:to|in|on\s+to)\s+)?(?P<place>{PLACE})",
        60,
        doc="Paris then Rome",
    ),
    _rule("in_place", rf"(?i:\bin)\s+(?P<place>{PLACE})", 70, doc="some time in Lisbon"),
)

LIST_SPLIT_RE = re.compile(r"\s*,\s*(?:and\s+|&\s+)?|\s+(?:and|&)\s+", re.I)


# ── travelers ────────────────────────────

TRAVELER_RULES: tuple[ExtractionRule, ...] = (
    _rule("family_of_n", rf"\bfamily\s+of\s+(?P<n>{COUNT})\b", 10, doc="family of 4 -> 2 adults + 2 children", flags=re.I),
    _rule("n_adults", rf"\b(?P<n>{COUNT})\s+adults?\b", 20, flags=re.I),
    _rule("n_children", rf"\b(?P<n>{COUNT})\s+(?:kids?|children|child)\b", 21, flags=re.I),
    _rule(
        "n_people",
        rf"\b(?:(?:we\s+are|we're|group\s+of|party\s+of)\s+(?P<n>{COUNT})|(?P<m>{COUNT})\s+(?:people|persons|travell?ers|pax|of\s+us|friends))\b",
        30,
        flags=re.I,
    ),
    _rule(
        "couple",
        r"\b(?:couple|honeymoon|two\s+of\s+us|both\s+of\s+us|(?:with|and)\s+my\s+(?:wife|husband|partner|girlfriend|boyfriend|fianc[eé]e?))\b",
        40,
        value=2,
        flags=re.I,
    ),
    _rule("solo", r"\b(?:solo|alone|by\s+myself|just\s+me|on\s+my\s+own)\b", 50, value=1, flags=re.I),
)


# ── budget ────────────────────────────

BUDGET_AMOUNT_RULES: tuple[ExtractionRule, ...] = (
    _rule("amount_per_day", r"\$\s?(?P<amount>\d[\d,]*(?:\.\d+)?)\s*(?P<k>k)?\s*(?:per|a|/)\s*(?:day|night)\b", 10, flags=re.I),
    _rule("amount_total", r"\$\s?(?P<amount>\d[\d,]*(?:\.\d+)?)\s*(?P<k>k)?\b", 20, flags=re.I),
)

# Per-day spend ceilings (USD) used to derive a tier from a daily amount.
DAILY_TIER_CEILINGS: tuple[tuple[float, BudgetTier], ...] = (
    (100.0, BudgetTier.BUDGET),
    (300.0, BudgetTier.MEDIUM),
)

BUDGET_TIER_RULES: tuple[ExtractionRule, ...] = (
    _rule(
        "luxury_words",
        r"\b(?:luxury|luxurious|premium|high[\s-]end|upscale|first[\s-]class|five[\s-]star|5[\s-]star|splurge)\b",
        10,
        BudgetTier.LUXURY,
        flags=re.I,
    ),
    _rule(
        "budget_words",
        r"\b(?:on\s+a\s+budget|budget[\s-](?:friendly|trip|travel|conscious)|cheap|affordable|backpack(?:ing|er)?|hostels?|low[\s-]cost|shoestring)\b",
        20,
        BudgetTier.BUDGET,
        flags=re.I,
    ),
    _rule(
        "medium_words",
        r"\b(?:mid[\s-]range|moderate|standard|comfortable|mid[\s-]budget)\b",
        30,
        BudgetTier.MEDIUM,
        flags=re.I,
    ),
    _rule("dollar_signs_3", r"(?<![\w$])\$\$\$(?![\w$])", 40, BudgetTier.LUXURY),
    _rule("dollar_signs_2", r"(?<![\w$])\$\$(?![\w$])", 41, BudgetTier.MEDIUM),
    _rule("dollar_signs_1", r"(?<![\w$])\$(?![\w$\d\s])", 42, BudgetTier.BUDGET),
)


# ── interests ────────────────────────────

INTEREST_KEYWORDS: dict[str, tuple[str, ...]] = {
    "food": ("food", "foodie", "cuisine", "restaurants", "street food", "eating"),
    "museums": ("museum", "museums"),
    "history": ("history", "historical", "historic", "ruins"),
    "art": ("art", "arts", "galleries", "gallery"),
    "culture": ("culture", "cultural", "local life"),
    "nature": ("nature", "wildlife", "safari", "national park", "national parks"),
    "beaches": ("beach", "beaches", "island", "islands", "snorkeling", "diving"),
    "hiking": ("hiking", "hike", "trekking", "trek", "mountains"),
    "nightlife": ("nightlife", "bars", "clubs", "clubbing", "party"),
    "shopping": ("shopping", "markets", "market"),
    "architecture": ("architecture", "cathedrals", "castles"),
    "adventure": ("adventure", "adventurous", "surfing", "skiing"),
    "relaxation": ("relax", "relaxing", "relaxation", "spa", "wellness"),
    "wine": ("wine", "wineries", "vineyards"),
    "music": ("music", "concerts", "live music"),
    "photography": ("photography", "photos"),
}


def keyword_pattern(words: tuple[str, ...]) -> re.Pattern[str]:
    alternation = "|".join(re.escape(word).replace(r"\ ", r"\s+") for word in sorted(words, key=len, reverse=True))
    return re.compile(rf"\b(?:{alternation})\b", re.I)


INTEREST_RULES: tuple[ExtractionRule, ...] = tuple(
    ExtractionRule(name=f"interest_{tag}", pattern=keyword_pattern(words), precedence=100, value=tag)
    for tag, words in INTEREST_KEYWORDS.items()
)


def count_value(token: Optional[str]) -> Optional[int]:
    """Turn a COUNT match ("3", "three") into an int."""
    if token is None:
        return None
    text = token.strip().lower()
    if text.isdigit():
        return int(text)
    return NUMBER_WORDS.get(text)
