"""Date expression extraction.

Rules are tried in order and the first rule that matches anywhere in the text
wins, so ranges are preferred over single days and single days over bare
months. Relative phrases resolve against the ``today`` passed in by the caller.
"""

from __future__ import annotations

import calendar
import datetime as dt
import re
from dataclasses import dataclass
from typing import Callable, Optional

from nomad.parsing.rules import COUNT, MONTH, MONTHS, WEEKDAYS, count_value

_ORD = r"(?:st|nd|rd|th)?"
_YEAR = r"(?:,?\s*(?P<{name}>\d{{4}}))?"
_WEEKDAY = "|".join(WEEKDAYS)
_PART = r"(?P<part>early|mid|late|end\s+of|beginning\s+of|middle\s+of|start\s+of)"
_PART_DAY = {"early": 1, "beginning of": 1, "start of": 1, "mid": 15, "middle of": 15, "late": 22, "end of": 25}

# Lowercase tokens that are usually not months in running text.
_AMBIGUOUS_MONTH_WORDS = {"may", "march"}


@dataclass(frozen=True)
class DateMatch:
    rule: str
    start: dt.date
    end: Optional[dt.date]
    span: tuple[int, int]


Resolver = Callable[[re.Match[str], dt.date], Optional[tuple[dt.date, Optional[dt.date]]]]


@dataclass(frozen=True)
class DateRule:
    name: str
    pattern: re.Pattern[str]
    resolve: Resolver


def _month(token: str) -> int:
    return MONTHS[token.lower().rstrip(".")]


def _safe_date(year: int, month: int, day: int) -> Optional[dt.date]:
    try:
        return dt.date(year, month, day)
    except ValueError:
        return None


def _infer_year(month: int, day: int, today: dt.date) -> int:
    """A date without a year that already passed this year means next year."""
    if (month, day) < (today.month, today.day):
        return today.year + 1
    return today.year


def _dated(month: int, day: int, year: Optional[str], today: dt.date) -> Optional[dt.date]:
    resolved_year = int(year) if year else _infer_year(month, day, today)
    return _safe_date(resolved_year, month, day)


def _range(start: Optional[dt.date], end: Optional[dt.date]) -> Optional[tuple[dt.date, Optional[dt.date]]]:
    if start is None or end is None:
        return None
    if end < start and end.year == start.year:
        # "Dec 28 to Jan 3": the end rolls into the following year.
        end = _safe_date(end.year + 1, end.month, end.day)
        if end is None:
            return None
    return start, end


def _add_months(today: dt.date, months: int, day: int = 1) -> dt.date:
    month_index = today.month - 1 + months
    year = today.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return dt.date(year, month, min(day, last_day))


# ── resolvers ────────────────────────────


def _iso_range(m: re.Match[str], today: dt.date):
    return _range(_parse_iso(m.group("a")), _parse_iso(m.group("b")))


def _parse_iso(text: str) -> Optional[dt.date]:
    try:
        return dt.date.fromisoformat(text)
    except ValueError:
        return None


def _month_day_range(m: re.Match[str], today: dt.date):
    start = _dated(_month(m.group("m1")), int(m.group("d1")), m.group("y1"), today)
    end_month = _month(m.group("m2")) if m.group("m2") else _month(m.group("m1"))
    year = m.group("y2") or m.group("y1") or (str(start.year) if start else None)
    end = _safe_date(int(year), end_month, int(m.group("d2"))) if year else None
    return _range(start, end)


def _day_month_range(m: re.Match[str], today: dt.date):
    month = _month(m.group("m"))
    start = _dated(month, int(m.group("d1")), m.group("y"), today)
    end = _safe_date(start.year, month, int(m.group("d2"))) if start else None
    return _range(start, end)


def _iso_date(m: re.Match[str], today: dt.date):
    parsed = _parse_iso(m.group(0))
    return (parsed, None) if parsed else None


def _month_day(m: re.Match[str], today: dt.date):
    parsed = _dated(_month(m.group("m")), int(m.group("d")), m.group("y"), today)
    return (parsed, None) if parsed else None


def _today(m: re.Match[str], today: dt.date):
    word = m.group(0).lower()
    if "day after" in word:
        return today + dt.timedelta(days=2), None
    if "tomorrow" in word:
        return today + dt.timedelta(days=1), None
    return today, None


def _weekday(m: re.Match[str], today: dt.date):
    modifier = (m.group("mod") or "").lower()
    target = WEEKDAYS[m.group("wd").lower()]
    days_ahead = target - today.weekday()
    if days_ahead <= 0 or modifier == "next":
        days_ahead += 7
    return today + dt.timedelta(days=days_ahead), None


def _in_n_units(m: re.Match[str], today: dt.date):
    n = count_value(m.group("n")) or 1
    unit = m.group("unit").lower()
    if unit.startswith("day"):
        return today + dt.timedelta(days=n), None
    if unit.startswith("week"):
        return today + dt.timedelta(weeks=n), None
    return _add_months(today, n, today.day), None


def _part_of_next_month(m: re.Match[str], today: dt.date):
    part = re.sub(r"\s+", " ", m.group("part").lower())
    return _add_months(today, 1, _PART_DAY[part]), None


def _next_month(m: re.Match[str], today: dt.date):
    return _add_months(today, 1, 1), None


def _next_week(m: re.Match[str], today: dt.date):
    return today + dt.timedelta(days=7 - today.weekday()), None


def _weekend(m: re.Match[str], today: dt.date):
    days_to_saturday = (5 - today.weekday()) % 7
    if m.group("mod").lower() == "next":
        days_to_saturday += 7
    saturday = today + dt.timedelta(days=days_to_saturday)
    return saturday, saturday + dt.timedelta(days=1)


def _month_year(month: int, year_text: Optional[str], day: int, today: dt.date) -> Optional[dt.date]:
    year_text = (year_text or "").strip().lower()
    if year_text == "next year":
        return _safe_date(today.year + 1, month, day)
    if year_text.isdigit():
        return _safe_date(int(year_text), month, day)
    if month < today.month:
        return _safe_date(today.year + 1, month, day)
    if month == today.month and day < today.day:
        return today
    return _safe_date(today.year, month, day)


def _part_of_month(m: re.Match[str], today: dt.date):
    part = re.sub(r"\s+", " ", m.group("part").lower())
    parsed = _month_year(_month(m.group("m")), m.group("y"), _PART_DAY[part], today)
    return (parsed, None) if parsed else None


def _bare_month(m: re.Match[str], today: dt.date):
    token = m.group("m")
    if token in _AMBIGUOUS_MONTH_WORDS and not m.group("prep"):
        return None
    parsed = _month_year(_month(token), m.group("y"), 1, today)
    return (parsed, None) if parsed else None


def _r(regex: str) -> re.Pattern[str]:
    return re.compile(regex, re.I)


DATE_RULES: tuple[DateRule, ...] = (
    DateRule(
        "iso_range",
        _r(r"\b(?P<a>\d{4}-\d{2}-\d{2})\s*(?:to|until|through|till|-|–)\s*(?P<b>\d{4}-\d{2}-\d{2})\b"),
        _iso_range,
    ),
    DateRule(
        "month_day_range",
        _r(
            rf"\b(?P<m1>{MONTH})\s+(?P<d1>\d{{1,2}}){_ORD}{_YEAR.format(name='y1')}\s*"
            rf"(?:to|until|through|till|and|-|–)\s*(?:(?P<m2>{MONTH})\s+)?(?P<d2>\d{{1,2}}){_ORD}\b{_YEAR.format(name='y2')}"
        ),
        _month_day_range,
    ),
    DateRule(
        "day_month_range",
        _r(
            rf"\b(?P<d1>\d{{1,2}}){_ORD}\s*(?:to|until|through|till|-|–)\s*(?P<d2>\d{{1,2}}){_ORD}\s+(?:of\s+)?(?P<m>{MONTH}){_YEAR.format(name='y')}"
        ),
        _day_month_range,
    ),
    DateRule("iso_date", _r(r"\b\d{4}-\d{2}-\d{2}\b"), _iso_date),
    DateRule(
        "month_day",
        _r(rf"\b(?P<m>{MONTH})\s+(?P<d>\d{{1,2}}){_ORD}\b(?!\s*(?:days?|nights?|weeks?)){_YEAR.format(name='y')}"),
        _month_day,
    ),
    DateRule(
        "day_month",
        _r(rf"\b(?P<d>\d{{1,2}}){_ORD}\s+(?:of\s+)?(?P<m>{MONTH})(?![a-z]){_YEAR.format(name='y')}"),
        _month_day,
    ),
    DateRule("today_tomorrow", _r(r"\b(?:the\s+day\s+after\s+tomorrow|tomorrow|today|tonight)\b"), _today),
    DateRule("next_weekend", _r(r"\b(?P<mod>this|next)\s+weekend\b"), _weekend),
    DateRule("weekday", _r(rf"\b(?:(?P<mod>next|this|coming|on)\s+)?(?P<wd>{_WEEKDAY})\b"), _weekday),
    DateRule("in_n_units", _r(rf"\bin\s+(?P<n>{COUNT}|a|an)\s+(?P<unit>days?|weeks?|months?)\b"), _in_n_units),
    DateRule("part_of_next_month", _r(rf"\b{_PART}[\s-]*next\s+month\b"), _part_of_next_month),
    DateRule("next_month", _r(r"\bnext\s+month\b"), _next_month),
    DateRule("next_week", _r(r"\bnext\s+week\b"), _next_week),
    DateRule(
        "part_of_month",
        _r(rf"\b{_PART}[\s-]*(?P<m>{MONTH})(?![a-z])(?:\s+(?P<y>next\s+year|\d{{4}}))?"),
        _part_of_month,
    ),
    DateRule(
        "bare_month",
        re.compile(
            rf"\b(?:(?P<prep>(?i:in|on|during|around|for|this|next|until|by))\s+)?(?P<m>(?i:{MONTH}))(?![A-Za-z])(?:\s+(?P<y>(?i:next\s+year)|\d{{4}}))?"
        ),
        _bare_month,
    ),
)


def extract_dates(text: str, today: dt.date) -> tuple[Optional[DateMatch], list[tuple[int, int]]]:
    """Return the winning date expression and every date-like span to mask.

    Never raises; unparseable text yields ``(None, [])``.
    """
    best: Optional[DateMatch] = None
    spans: list[tuple[int, int]] = []
    for rule in DATE_RULES:
        for m in rule.pattern.finditer(text):
            try:
                resolved = rule.resolve(m, today)
            except (ValueError, KeyError, OverflowError):
                resolved = None
            if resolved is None:
                continue
            if any(s <= m.start() and m.end() <= e for s, e in spans):
                continue
            spans.append((m.start(), m.end()))
            if best is None:
                best = DateMatch(rule=rule.name, start=resolved[0], end=resolved[1], span=(m.start(), m.end()))
    return best, sorted(spans)


def mask_spans(text: str, spans: list[tuple[int, int]]) -> str:
    """Blank out ``spans`` with spaces, keeping every other offset stable."""
    chars = list(text)
    for start, end in spans:
        for i in range(start, min(end, len(chars))):
            chars[i] = " "
    return "".join(chars)
