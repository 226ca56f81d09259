"""Draft manager tests (fake clock, no auto-save thread unless stated)."""

import time

from nomad.config.settings import DraftSettings
from nomad.domain.enums import DraftStage
from nomad.drafts.manager import DraftManager
from nomad.infrastructure.kv_store import MemoryKeyValueStore


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


SETTINGS = DraftSettings(max_drafts=3, expiry_seconds=3600.0, recovery_window_seconds=600.0, autosave_seconds=5.0)


def _manager(store=None, clock=None, session="s1"):
    store = store or MemoryKeyValueStore(ttl=10**9, clock=clock or FakeClock())
    return DraftManager(store, session, SETTINGS, clock=clock or FakeClock(), autosave=False)


def test_lifecycle_persists_each_stage():
    clock = FakeClock()
    store = MemoryKeyValueStore(ttl=10**9, clock=clock)
    manager = DraftManager(store, "s1", SETTINGS, clock=clock, autosave=False)

    draft_id = manager.start_draft("a week in Rome", metadata={"destinations": ["Rome"]})
    assert draft_id.startswith("draft_")
    assert manager.update_draft(DraftStage.VALIDATING)
    assert manager.update_draft(DraftStage.GENERATING, partial_data={"days": [1, 2]})
    assert manager.update_draft(DraftStage.GENERATING, partial_data={"segments": ["Rome"]})

    stored = manager.get_draft(draft_id)
    assert stored.stage == DraftStage.GENERATING
    assert stored.partial_data == {"days": [1, 2], "segments": ["Rome"]}
    assert stored.metadata.destinations == ["Rome"]

    assert manager.complete_draft({"days": 7})
    done = manager.get_draft(draft_id)
    assert done.stage == DraftStage.COMPLETE
    assert done.final_data == {"days": 7}
    assert manager.current_draft_id is None


def test_backward_stage_move_is_refused():
    manager = _manager()
    manager.start_draft("trip")
    assert manager.update_draft(DraftStage.ENHANCING)
    assert not manager.update_draft(DraftStage.PARSING)
    assert manager.current_stage == DraftStage.ENHANCING


def test_terminal_drafts_ignore_updates():
    manager = _manager()
    draft_id = manager.start_draft("trip")
    assert manager.fail_draft("boom")
    assert not manager.update_draft(DraftStage.GENERATING)
    failed = manager.get_draft(draft_id)
    assert failed.stage == DraftStage.ERROR
    assert failed.metadata.error == "boom"
    assert failed.metadata.retry_count == 1
    assert manager.resume_draft(draft_id) is None


def test_pruning_keeps_newest_and_drops_expired():
    clock = FakeClock()
    store = MemoryKeyValueStore(ttl=10**9, clock=clock)
    manager = DraftManager(store, "s1", SETTINGS, clock=clock, autosave=False)
    ids = []
    for i in range(5):
        ids.append(manager.start_draft(f"trip {i}"))
        manager.suspend()
        clock.advance(10)
    assert [d.id for d in manager.list_drafts()] == list(reversed(ids[-3:]))

    clock.advance(3600)
    assert manager.list_drafts() == []


def test_incomplete_drafts_respect_recovery_window():
    clock = FakeClock()
    store = MemoryKeyValueStore(ttl=10**9, clock=clock)
    manager = DraftManager(store, "s1", SETTINGS, clock=clock, autosave=False)

    stale = manager.start_draft("old trip")
    manager.suspend()
    clock.advance(700)
    fresh = manager.start_draft("new trip")
    manager.update_draft(DraftStage.GENERATING)
    manager.suspend()
    done = manager.start_draft("finished trip")
    manager.complete_draft({})

    assert [d.id for d in manager.get_incomplete_drafts()] == [fresh]
    assert {d.id for d in manager.list_drafts()} == {stale, fresh, done}


def test_resume_restores_active_draft():
    clock = FakeClock()
    store = MemoryKeyValueStore(ttl=10**9, clock=clock)
    first = DraftManager(store, "s1", SETTINGS, clock=clock, autosave=False)
    draft_id = first.start_draft("trip")
    first.update_draft(DraftStage.GENERATING, partial_data={"days": ["d1"]})

    # A new process picks the draft up from the store.
    second = DraftManager(store, "s1", SETTINGS, clock=clock, autosave=False)
    resumed = second.resume_draft(draft_id)
    assert resumed.partial_data == {"days": ["d1"]}
    assert second.current_stage == DraftStage.GENERATING
    assert second.update_draft(DraftStage.ENHANCING)


def test_corrupt_records_are_treated_as_missing():
    clock = FakeClock()
    store = MemoryKeyValueStore(ttl=10**9, clock=clock)
    manager = DraftManager(store, "s1", SETTINGS, clock=clock, autosave=False)
    good = manager.start_draft("trip")
    record = store.get(manager.storage_key)
    record["drafts"].append({"id": "bad", "schema_version": 99})
    record["drafts"].append({"id": "worse", "schema_version": 1, "timestamp": "not a number"})
    store.put(manager.storage_key, record)

    assert [d.id for d in manager.list_drafts()] == [good]
    assert manager.get_draft("bad") is None

    store.put_raw(manager.storage_key, "{{{ not json")
    assert manager.list_drafts() == []
    assert manager.get_incomplete_drafts() == []


def test_sessions_are_isolated():
    clock = FakeClock()
    store = MemoryKeyValueStore(ttl=10**9, clock=clock)
    a = DraftManager(store, "a", SETTINGS, clock=clock, autosave=False)
    b = DraftManager(store, "b", SETTINGS, clock=clock, autosave=False)
    a.start_draft("trip a")
    assert b.list_drafts() == []


def test_delete_and_clear():
    manager = _manager()
    first = manager.start_draft("one")
    manager.suspend()
    second = manager.start_draft("two")
    manager.delete_draft(second)
    assert manager.current_draft_id is None
    assert [d.id for d in manager.list_drafts()] == [first]
    manager.clear_all()
    assert manager.list_drafts() == []


def test_autosave_thread_refreshes_last_updated():
    store = MemoryKeyValueStore()
    manager = DraftManager(store, "live", DraftSettings(autosave_seconds=0.05), autosave=True)
    try:
        draft_id = manager.start_draft("trip")
        assert manager.autosave_running
        first = manager.get_draft(draft_id).last_updated
        deadline = time.time() + 2.0
        while manager.get_draft(draft_id).last_updated == first and time.time() < deadline:
            time.sleep(0.02)
        assert manager.get_draft(draft_id).last_updated > first
    finally:
        manager.close()
    assert not manager.autosave_running
