"""Conversation through itinerary with the offline template generator and mock tools."""

import asyncio
import datetime as dt
import json

from nomad.application.context import make_app_context
from nomad.cli import format_itinerary, main
from nomad.config.settings import OrchestratorSettings, Settings
from nomad.domain.constants import ADDRESS_NA
from nomad.domain.enums import AssemblyStatus, DialogStatus, DraftStage, ProgressStatus, ResponseType
from nomad.domain.models import Destination, TripIntent

NOW = dt.datetime(2026, 10, 19, 9, 30)


def _context():
    settings = Settings(orchestrator=OrchestratorSettings(pacing_seconds=0.0, max_days_per_call=2))
    return make_app_context(settings)


def test_dialog_answers_feed_the_orchestrator():
    ctx = _context()
    dialog = ctx.get_dialog()

    first = dialog.process_message("I want to travel", now=NOW)
    ctx.conversations.save(first.state)
    second = dialog.process_message("barcelona", ctx.conversations.load(first.state.session_id), now=NOW)
    ctx.conversations.save(second.state)
    third = dialog.process_message("from London", ctx.conversations.load(second.state.session_id), now=NOW)
    assert third.type == ResponseType.READY

    intent = TripIntent.model_validate(third.context["intent"])
    state = dialog.mark_generating(third.state)
    drafts = ctx.draft_manager(state.session_id, autosave=False)
    events = []
    assembly = asyncio.run(ctx.orchestrator().generate(
        intent, today=NOW.date(), draft=drafts, on_progress=events.append, prompt="barcelona from London"
    ))
    state = dialog.mark_answered(state)

    assert state.status == DialogStatus.ANSWERED
    assert assembly.status == AssemblyStatus.COMPLETE
    assert [d.day_number for d in assembly.days] == [1, 2, 3]
    assert [d.date for d in assembly.days] == [dt.date(2026, 10, 26) + dt.timedelta(days=i) for i in range(3)]
    assert assembly.origin == "London"
    assert all(day.weather for day in assembly.days)
    assert assembly.segments[0].currency == "EUR"
    for day in assembly.days:
        for activity in day.activities:
            assert activity.address == ADDRESS_NA or "Barcelona" in activity.address or "Spain" in activity.address

    assert events[0].status == ProgressStatus.STARTED
    assert events[-1].status == ProgressStatus.COMPLETE
    stored = drafts.get_draft(assembly.draft_id)
    assert stored.stage == DraftStage.COMPLETE
    assert stored.final_data["days"][0]["destination_name"] == "Barcelona"


def test_multi_city_trip_is_contiguous_and_rendered():
    ctx = _context()
    intent = TripIntent(
        origin="Boston",
        start_date=dt.date(2026, 11, 2),
        destinations=[
            Destination(name="Rome", requested_duration_days=3),
            Destination(name="Paris", requested_duration_days=2),
        ],
        interests=["food"],
    )
    assembly = asyncio.run(ctx.orchestrator().generate(intent, today=NOW.date()))

    assert [d.day_number for d in assembly.days] == [1, 2, 3, 4, 5]
    assert [d.destination_name for d in assembly.days] == ["Rome"] * 3 + ["Paris"] * 2
    assert [(s.name, s.start_day, s.end_day) for s in assembly.segments] == [("Rome", 1, 3), ("Paris", 4, 5)]

    text = format_itinerary(assembly)
    assert text.startswith("5-day trip: Rome -> Paris")
    assert "Day 4 (2026-11-05)  Paris" in text
    assert "EUR" in text


def test_cli_single_shot_writes_itinerary(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("GENERATION_PACING_SECONDS", "0")
    code = main(["3 days in Paris from New York"])
    out = capsys.readouterr().out
    assert code == 0
    assert "3-day trip: Paris" in out
    saved = json.loads((tmp_path / "itinerary_output.json").read_text(encoding="utf-8"))
    assert len(saved["days"]) == 3
    assert saved["origin"] == "New York"


def test_cli_incomplete_request_asks_a_question(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    assert main(["I want to travel"]) == 1
    assert "Where would you like to go?" in capsys.readouterr().out
    assert not (tmp_path / "itinerary_output.json").exists()


def test_cli_resume_lists_nothing_for_fresh_session(capsys):
    assert main(["--resume", "--session", "fresh"]) == 0
    assert "No interrupted drafts to recover." in capsys.readouterr().out
