"""Entity extractor tests."""

import datetime as dt

import pytest

from nomad.domain.enums import BudgetTier, IntentField
from nomad.parsing.regex_extractors import extract_entities, parse_duration

TODAY = dt.date(2026, 10, 19)  # a Monday


def _names(bag):
    return [c.name for c in bag.destinations]


def test_duration_in_place_with_origin():
    bag = extract_entities("3 days in Paris from New York", TODAY)
    assert bag.origin == "New York"
    assert _names(bag) == ["Paris"]
    assert bag.destinations[0].duration_days == 3
    assert bag.duration_days is None


def test_multi_destination_sentence_keeps_literal_order():
    text = (
        "plan a trip to Zimbabwe from Melbourne, then Nicaragua for a week, "
        "spend a week in Madagascar and a week in Ethiopia, then Denmark for 3 days, "
        "going back home to Melbourne"
    )
    bag = extract_entities(text, TODAY)

    assert bag.origin == "Melbourne"
    assert bag.return_to == "Melbourne"
    assert _names(bag) == ["Zimbabwe", "Nicaragua", "Madagascar", "Ethiopia", "Denmark"]
    durations = {c.name: c.duration_days for c in bag.destinations}
    assert durations == {"Zimbabwe": None, "Nicaragua": 7, "Madagascar": 7, "Ethiopia": 7, "Denmark": 3}
    assert not bag.additive


def test_lowercase_gazetteer_input_is_canonicalised():
    bag = extract_entities("3 days in paris from new york", TODAY)
    assert bag.origin == "New York"
    assert _names(bag) == ["Paris"]


@pytest.mark.parametrize(
    "phrase, days",
    [("a week", 7), ("5d", 5), ("5 days", 5), ("a fortnight", 14), ("a weekend", 2), ("two weeks", 14)],
)
def test_parse_duration_lookup(phrase, days):
    assert parse_duration(phrase) == days


def test_unparsed_duration_is_absent():
    assert parse_duration("a while") is None


def test_explicit_days_beat_vague_week():
    bag = extract_entities("I have 5 days, about a week off", TODAY)
    assert bag.duration_days == 5


@pytest.mark.parametrize(
    "text, start, end",
    [
        ("leaving next Tuesday", dt.date(2026, 10, 27), None),
        ("sometime mid next month", dt.date(2026, 11, 15), None),
        ("going in January", dt.date(2027, 1, 1), None),
        ("from March 3 to March 10", dt.date(2027, 3, 3), dt.date(2027, 3, 10)),
        ("Dec 28 to Jan 3", dt.date(2026, 12, 28), dt.date(2027, 1, 3)),
        ("2026-11-02 to 2026-11-06", dt.date(2026, 11, 2), dt.date(2026, 11, 6)),
        ("tomorrow", dt.date(2026, 10, 20), None),
    ],
)
def test_dates_resolve_against_injected_today(text, start, end):
    bag = extract_entities(text, TODAY)
    assert bag.start_date == start
    assert bag.end_date == end


def test_range_beats_bare_month():
    bag = extract_entities("Paris in March, from March 3 to March 10", TODAY)
    assert bag.start_date == dt.date(2027, 3, 3)
    assert bag.end_date == dt.date(2027, 3, 10)


def test_month_names_are_never_places():
    bag = extract_entities("trip to Lisbon from Boston in January", TODAY)
    assert _names(bag) == ["Lisbon"]
    assert bag.origin == "Boston"


def test_from_origin_to_destination():
    bag = extract_entities("Plan a trip from London to Paris", TODAY)
    assert bag.origin == "London"
    assert _names(bag) == ["Paris"]


def test_duration_after_destination_list_is_trip_level():
    bag = extract_entities("I'm flying from Boston to Paris and Rome for 2 weeks", TODAY)
    assert bag.origin == "Boston"
    assert _names(bag) == ["Paris", "Rome"]
    assert [c.duration_days for c in bag.destinations] == [None, None]
    assert bag.duration_days == 14


def test_same_input_same_output():
    text = "a week in Japan then 4 days in Seoul from Sydney, 2 adults, mid-range"
    first = extract_entities(text, TODAY)
    second = extract_entities(text, TODAY)
    assert first == second


def test_travelers_and_budget():
    bag = extract_entities("family of 4 to Rome on a budget", TODAY)
    assert bag.travelers.adults == 2
    assert bag.travelers.children == 2
    assert bag.budget_tier == BudgetTier.BUDGET

    bag = extract_entities("honeymoon in Bali, luxury please", TODAY)
    assert bag.travelers.adults == 2
    assert bag.budget_tier == BudgetTier.LUXURY


def test_daily_amount_maps_to_tier():
    bag = extract_entities("about $150 per day", TODAY)
    assert bag.budget_amount == 150.0
    assert bag.budget_tier == BudgetTier.MEDIUM


def test_interests_and_additive_flag():
    bag = extract_entities("also add Kyoto, we love food and museums", TODAY)
    assert bag.additive
    assert bag.interests == ["food", "museums"]


def test_hint_biases_bare_number():
    assert extract_entities("4", TODAY, hint=IntentField.TRAVELERS).travelers.adults == 4
    assert extract_entities("10", TODAY, hint=IntentField.DURATION).duration_days == 10
    assert extract_entities("10", TODAY).duration_days is None


def test_hint_reads_bare_place_list():
    bag = extract_entities("Paris, Rome and Berlin", TODAY, hint=IntentField.DESTINATION)
    assert _names(bag) == ["Paris", "Rome", "Berlin"]


@pytest.mark.parametrize("text", ["", "   ", "???", "$$$$$$ 99999999 days", "from from from", "\x00\x01"])
def test_extractor_never_raises(text):
    bag = extract_entities(text, TODAY)
    assert bag is not None


def test_empty_text_is_empty_bag():
    assert extract_entities("hello there", TODAY).is_empty()
