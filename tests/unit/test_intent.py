"""Intent merge / validation / default resolution tests."""

import datetime as dt

from nomad.config.settings import IntentLimits
from nomad.domain.enums import BudgetTier, IntentField
from nomad.domain.models import Destination, TripIntent
from nomad.parsing.intent import blocking_issues, merge, resolve_intent, validate_intent
from nomad.parsing.regex_extractors import extract_entities

TODAY = dt.date(2026, 10, 19)


def _turn(prior, text, awaiting=None, limits=None):
    extracted = extract_entities(text, TODAY, hint=awaiting)
    return merge(prior, extracted, awaiting, limits, text=text)


def test_merge_does_not_mutate_prior():
    prior = TripIntent(origin="Boston")
    before = prior.model_dump()
    intent, _ = _turn(prior, "a week in Lisbon")
    assert prior.model_dump() == before
    assert intent.origin == "Boston"
    assert intent.destinations[0].name == "Lisbon"
    assert intent.destinations[0].requested_duration_days == 7


def test_merge_is_idempotent():
    extracted = extract_entities("3 days in Paris then 2 days in Rome from New York", TODAY)
    once, _ = merge(TripIntent(), extracted)
    twice, _ = merge(once, extracted)
    assert once == twice


def test_unmentioned_fields_are_retained():
    intent, _ = _turn(TripIntent(), "3 days in Paris from New York, 2 adults")
    intent, _ = _turn(intent, "make it luxury")
    assert intent.origin == "New York"
    assert intent.travelers.adults == 2
    assert intent.budget_tier == BudgetTier.LUXURY
    assert [d.name for d in intent.destinations] == ["Paris"]


def test_bare_reply_fills_awaited_destination():
    prior = TripIntent(origin="Melbourne")
    intent, issues = _turn(prior, "barcelona", awaiting=IntentField.DESTINATION)
    assert [d.name for d in intent.destinations] == ["Barcelona"]
    assert issues == []


def test_bare_reply_fills_awaited_origin():
    prior = TripIntent(destinations=[Destination(name="Rome")])
    intent, issues = _turn(prior, "Lisbon", awaiting=IntentField.ORIGIN)
    assert intent.origin == "Lisbon"
    assert [d.name for d in intent.destinations] == ["Rome"]
    assert issues == []


def test_filler_reply_becomes_ambiguous_issue():
    intent, issues = _turn(TripIntent(origin="Oslo"), "not sure", awaiting=IntentField.DESTINATION)
    assert intent.destinations == []
    assert [i.code for i in issues] == ["ambiguous_reply"]
    assert issues[0].field == IntentField.DESTINATION
    assert "Where would you like to go?" in issues[0].message
    assert blocking_issues(issues) == []


def test_additive_reply_appends_destination():
    intent, _ = _turn(TripIntent(origin="Boston"), "4 days in Tokyo")
    intent, _ = _turn(intent, "also add 3 days in Kyoto")
    assert [(d.name, d.requested_duration_days) for d in intent.destinations] == [("Tokyo", 4), ("Kyoto", 3)]


def test_new_destination_list_replaces_old_one():
    intent, _ = _turn(TripIntent(origin="Boston"), "4 days in Tokyo")
    intent, _ = _turn(intent, "actually a week in Lisbon")
    assert [d.name for d in intent.destinations] == ["Lisbon"]


def test_trip_duration_goes_to_single_destination():
    intent, _ = _turn(TripIntent(origin="Boston", destinations=[Destination(name="Rome")]), "5 days", IntentField.DURATION)
    assert intent.destinations[0].requested_duration_days == 5
    assert intent.requested_total_days is None


def test_missing_fields_are_reported_most_critical_first():
    issues = validate_intent(TripIntent())
    assert [(i.code, i.field) for i in issues] == [
        ("missing_field", IntentField.ORIGIN),
        ("missing_field", IntentField.DESTINATION),
    ]
    assert all(i.suggestions for i in issues)


def test_too_many_destinations_is_flagged_not_truncated():
    limits = IntentLimits(max_destinations=3)
    intent = TripIntent(origin="Boston", destinations=[Destination(name=n) for n in ("A", "B", "C", "D", "E")])
    issues = validate_intent(intent, limits)
    assert [i.code for i in issues] == ["too_many_destinations"]
    assert issues[0].suggestions[0].startswith("For example:")
    assert len(intent.destinations) == 5


def test_trip_too_long():
    intent = TripIntent(origin="Boston", destinations=[Destination(name="Rome", requested_duration_days=400)])
    issues = validate_intent(intent)
    assert [i.code for i in issues] == ["trip_too_long"]


def test_days_and_date_range_disagree():
    intent, issues = _turn(TripIntent(origin="Boston"), "5 days in Rome from Jan 1 to Jan 10")
    codes = [i.code for i in issues]
    assert "date_conflict" in codes
    assert intent.inconsistent
    assert blocking_issues(issues)


def test_inconsistent_stop_durations():
    intent = TripIntent(
        origin="Boston",
        requested_total_days=10,
        destinations=[Destination(name="Rome", requested_duration_days=3), Destination(name="Paris", requested_duration_days=4)],
    )
    assert [i.code for i in validate_intent(intent)] == ["inconsistent_duration"]


def test_destination_equal_to_origin_is_dropped():
    intent, _ = _turn(TripIntent(), "from Paris, 3 days in Rome")
    intent, _ = _turn(intent, "visit Paris and Rome", awaiting=None)
    assert [d.name for d in intent.destinations] == ["Rome"]


def test_resolve_fills_explicit_defaults():
    intent = TripIntent(origin="Boston", destinations=[Destination(name="Rome"), Destination(name="Paris", requested_duration_days=2)])
    resolved, applied = resolve_intent(intent, TODAY)
    assert applied == ["start_date", "duration", "budget"]
    assert resolved.start_date == TODAY + dt.timedelta(days=7)
    assert [d.requested_duration_days for d in resolved.destinations] == [3, 2]
    assert [d.start_offset_days for d in resolved.destinations] == [0, 3]
    assert resolved.end_date == resolved.start_date + dt.timedelta(days=4)
    assert resolved.budget_tier == BudgetTier.MEDIUM
    assert intent.start_date is None


def test_resolve_splits_requested_total():
    intent = TripIntent(
        origin="Boston",
        requested_total_days=7,
        start_date=dt.date(2026, 11, 1),
        destinations=[Destination(name="Rome"), Destination(name="Paris")],
    )
    resolved, applied = resolve_intent(intent, TODAY)
    assert "duration_split" in applied
    assert [d.requested_duration_days for d in resolved.destinations] == [4, 3]
    assert resolved.end_date == dt.date(2026, 11, 7)


def test_resolve_is_idempotent():
    intent = TripIntent(origin="Boston", destinations=[Destination(name="Rome")])
    once, _ = resolve_intent(intent, TODAY)
    twice, applied = resolve_intent(once, TODAY)
    assert once == twice
    assert applied == []
