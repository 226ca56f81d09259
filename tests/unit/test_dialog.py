"""Dialog controller tests."""

import datetime as dt

from nomad.application.dialog import ConversationRepository, DialogController
from nomad.config.settings import DialogSettings, Settings
from nomad.domain.enums import DialogStatus, IntentField, ResponseType
from nomad.infrastructure.kv_store import MemoryKeyValueStore

NOW = dt.datetime(2026, 10, 19, 9, 30)


def _controller(**settings):
    return DialogController(Settings(**settings), clock=lambda: NOW.timestamp())


def test_vague_request_asks_for_destination_first():
    controller = _controller()
    response = controller.process_message("I want to travel", now=NOW)
    assert response.type == ResponseType.QUESTION
    assert response.awaiting_field == IntentField.DESTINATION
    assert set(response.missing_fields) == {IntentField.ORIGIN, IntentField.DESTINATION}
    assert response.message.startswith("Where would you like to go?")
    assert response.state.status == DialogStatus.GATHERING


def test_question_priority_is_configurable_and_deterministic():
    settings = {"dialog": DialogSettings(question_priority=[IntentField.ORIGIN, IntentField.DESTINATION])}
    fields = {_controller(**settings).process_message("I want to travel", now=NOW).awaiting_field for _ in range(5)}
    assert fields == {IntentField.ORIGIN}


def test_input_state_is_not_mutated():
    controller = _controller()
    state = controller.new_state("s1")
    before = state.model_dump()
    response = controller.process_message("a week in Lisbon", state, now=NOW)
    assert state.model_dump() == before
    assert response.state.partial_intent.destinations[0].name == "Lisbon"
    assert len(response.state.turn_history) == 1


def test_multi_turn_conversation_reaches_ready():
    controller = _controller()
    first = controller.process_message("I want to travel", now=NOW)
    second = controller.process_message("barcelona", first.state, now=NOW)
    assert second.type == ResponseType.QUESTION
    assert second.awaiting_field == IntentField.ORIGIN
    assert second.message.startswith("Great, Barcelona!")

    third = controller.process_message("from London", second.state, now=NOW)
    assert third.type == ResponseType.READY
    assert third.state.status == DialogStatus.READY
    assert third.awaiting_field is None
    resolved = third.context["intent"]
    assert resolved["origin"] == "London"
    assert resolved["destinations"][0]["requested_duration_days"] == 3
    assert resolved["start_date"] == "2026-10-26"
    assert set(third.context["applied_defaults"]) == {"start_date", "duration", "budget"}
    assert "Planning 3 days from London" in third.message


def test_origin_and_destination_in_one_sentence_is_ready():
    response = _controller().process_message("Plan a trip from London to Paris", now=NOW)
    assert response.type == ResponseType.READY
    resolved = response.context["intent"]
    assert resolved["origin"] == "London"
    assert [d["name"] for d in resolved["destinations"]] == ["Paris"]


def test_trip_length_is_split_across_listed_destinations():
    response = _controller().process_message("I'm flying from Boston to Paris and Rome for 2 weeks", now=NOW)
    assert response.type == ResponseType.READY
    resolved = response.context["intent"]
    assert [d["name"] for d in resolved["destinations"]] == ["Paris", "Rome"]
    assert [d["requested_duration_days"] for d in resolved["destinations"]] == [7, 7]


def test_blocking_issue_is_explained_with_example():
    controller = _controller()
    response = controller.process_message("from Boston, 5 days in Rome from Jan 1 to Jan 10", now=NOW)
    assert response.type == ResponseType.ERROR
    assert response.awaiting_field is None
    assert "For example" in response.message
    assert any(issue.code == "date_conflict" for issue in response.issues)
    assert response.state.status == DialogStatus.FAILED


def test_ambiguous_reply_reasks_same_field():
    controller = _controller()
    first = controller.process_message("from Oslo", now=NOW)
    assert first.awaiting_field == IntentField.DESTINATION
    second = controller.process_message("dunno", first.state, now=NOW)
    assert second.type == ResponseType.QUESTION
    assert second.awaiting_field == IntentField.DESTINATION
    assert second.message.startswith("Sorry, I couldn't tell which destination you meant.")


class _BrokenGraph:
    def invoke(self, state):
        raise RuntimeError("graph exploded")


def test_graph_failure_falls_back_to_single_question():
    controller = DialogController(Settings(), graph=_BrokenGraph(), clock=lambda: NOW.timestamp())
    response = controller.process_message("3 days in Paris", now=NOW)
    assert response.type == ResponseType.QUESTION
    assert response.awaiting_field == IntentField.DESTINATION
    assert response.context == {"fallback": True}


def test_generation_status_transitions():
    controller = _controller()
    state = controller.process_message("3 days in Paris from Rome", now=NOW).state
    generating = controller.mark_generating(state)
    assert generating.status == DialogStatus.GENERATING
    answered = controller.mark_answered(generating, "done")
    assert answered.status == DialogStatus.ANSWERED
    assert answered.turn_history[-1].system_summary == "done"
    assert state.status == DialogStatus.READY


def test_conversation_repository_round_trip_and_schema_guard():
    store = MemoryKeyValueStore()
    repo = ConversationRepository(store)
    controller = _controller()
    state = controller.process_message("from Oslo", controller.new_state("abc"), now=NOW).state
    repo.save(state)
    assert repo.load("abc") == state

    store.put("conversation:old", {**state.model_dump(mode="json"), "schema_version": 0})
    assert repo.load("old") is None
    store.put_raw("conversation:bad", "{not json")
    assert repo.load("bad") is None
    assert repo.load("missing") is None
