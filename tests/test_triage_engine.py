import random
import threading
import time

import pytest

from core.errors import DeletionInProgress, InvalidCategory, OutOfRangeDecision
from core.models import Category, Decision, ImageHandle
from core.services.interfaces import NullFeedback
from core.services.triage_engine import TriageEngine

RECENTS = Category.recents()


def _ids(images):
    return [i.identifier for i in images]


def _snapshot(session):
    return (session.cursor, session.kept_count, session.deleted_count, _ids(session.staged))


def test_walkthrough_keep_delete_undo_and_flush(engine, review, backend):
    s = engine.switch_category(RECENTS)

    engine.decide(RECENTS, Decision.KEEP)
    assert (s.cursor, s.kept_count) == (1, 1)

    engine.decide(RECENTS, Decision.DELETE)
    assert _snapshot(s) == (2, 1, 1, ["B"])

    engine.undo()
    assert _snapshot(s) == (1, 1, 0, [])

    engine.decide(RECENTS, Decision.DELETE)
    assert _snapshot(s) == (2, 1, 1, ["B"])

    outcome = engine.decide(RECENTS, Decision.DELETE)
    assert outcome.exhausted
    assert _snapshot(s) == (3, 1, 2, ["B", "C"])
    assert not s.completed

    assert review.confirm_permanent_deletion(RECENTS) == 2
    assert s.staged == []
    assert s.completed
    assert _ids(backend.batches[0]) == ["B", "C"]


def test_decide_pushes_history_entry(engine):
    engine.switch_category(RECENTS)
    outcome = engine.decide(RECENTS, Decision.DELETE)
    entry = outcome.entry
    assert (entry.category, entry.image.identifier, entry.decision, entry.cursor_before) == (
        RECENTS,
        "A",
        Decision.DELETE,
        0,
    )
    assert engine.history.peek() is entry
    assert not outcome.exhausted


def test_random_decision_sequences_keep_counts_consistent(engine):
    rng = random.Random(7)
    s = engine.switch_category(RECENTS)
    for _ in range(3):
        engine.decide(RECENTS, rng.choice([Decision.KEEP, Decision.DELETE]))
        assert s.kept_count + s.deleted_count == s.cursor == len(engine.history)
        assert len(s.staged) == s.deleted_count


@pytest.mark.parametrize("decision", [Decision.KEEP, Decision.DELETE])
@pytest.mark.parametrize("prefix", [0, 1, 2])
def test_undo_restores_exact_pre_decision_state(engine, decision, prefix):
    s = engine.switch_category(RECENTS)
    for _ in range(prefix):
        engine.decide(RECENTS, Decision.DELETE)
    before = _snapshot(s)
    engine.decide(RECENTS, decision)
    entry = engine.undo()
    assert entry.decision is decision
    assert entry.cursor_before == prefix
    assert _snapshot(s) == before
    assert s.current_image.identifier == "ABC"[prefix]


def test_undo_walks_back_to_start_then_noops(engine, feedback):
    s = engine.switch_category(RECENTS)
    engine.decide(RECENTS, Decision.KEEP)
    engine.decide(RECENTS, Decision.DELETE)
    engine.decide(RECENTS, Decision.KEEP)
    assert engine.undo().image.identifier == "C"
    assert engine.undo().image.identifier == "B"
    assert engine.undo().image.identifier == "A"
    assert _snapshot(s) == (0, 0, 0, [])
    assert engine.undo() is None
    assert _snapshot(s) == (0, 0, 0, [])
    assert feedback.events == ["keep", "delete", "keep", "undo", "undo", "undo"]


def test_delete_undo_redelete_does_not_double_stage(engine):
    s = engine.switch_category(RECENTS)
    engine.decide(RECENTS, Decision.DELETE)
    single = _snapshot(s)
    engine.undo()
    engine.decide(RECENTS, Decision.DELETE)
    assert _snapshot(s) == single == (1, 0, 1, ["A"])


def test_decide_on_exhausted_category_is_rejected(engine):
    s = engine.switch_category(RECENTS)
    for _ in range(3):
        engine.decide(RECENTS, Decision.KEEP)
    with pytest.raises(OutOfRangeDecision):
        engine.decide(RECENTS, Decision.DELETE)
    assert _snapshot(s) == (3, 3, 0, [])
    assert len(engine.history) == 3


def test_exhausting_with_nothing_staged_completes(engine):
    s = engine.switch_category(RECENTS)
    for _ in range(3):
        engine.decide(RECENTS, Decision.KEEP)
    assert s.completed
    engine.undo()
    assert not s.completed


def test_empty_category_is_exhausted_immediately(engine):
    s = engine.switch_category(Category.for_year(1999))
    assert s.total == 0
    with pytest.raises(OutOfRangeDecision):
        engine.keep()


def test_decide_without_session_is_rejected(engine):
    with pytest.raises(OutOfRangeDecision):
        engine.decide(Category.random(), Decision.KEEP)
    with pytest.raises(OutOfRangeDecision):
        engine.keep()


def test_switching_preserves_session_state(engine, source):
    s = engine.switch_category(RECENTS)
    engine.keep()
    engine.delete()
    before = _snapshot(s)

    other = engine.switch_category(Category.for_year(2023))
    assert _ids(other.ordered_images) == ["A", "B"]
    engine.keep()

    resumed = engine.switch_category(RECENTS)
    assert resumed is s
    assert _snapshot(resumed) == before
    assert engine.current_image().identifier == "C"
    assert source.fetch_calls == [RECENTS, Category.for_year(2023)]


def test_select_category_normalizes_and_rejects_bad_month(engine):
    s = engine.select_category("2023-05")
    assert engine.active_category == Category.for_month(2023, 5)
    assert _ids(s.ordered_images) == ["A", "B"]
    with pytest.raises(InvalidCategory):
        engine.select_category((2023, 13))
    assert engine.active_category == Category.for_month(2023, 5)
    assert len(engine.store) == 1


def test_undo_reverses_latest_entry_across_categories(engine):
    recents = engine.switch_category(RECENTS)
    engine.delete()
    year = engine.switch_category(Category.for_year(2022))
    engine.delete()
    engine.switch_category(RECENTS)

    entry = engine.undo()
    assert entry.category == Category.for_year(2022)
    assert _snapshot(year) == (0, 0, 0, [])
    assert _snapshot(recents) == (1, 0, 1, ["A"])

    entry = engine.undo()
    assert entry.category == RECENTS
    assert _snapshot(recents) == (0, 0, 0, [])


def test_undo_after_restore_still_decrements_counter(engine, review):
    s = engine.switch_category(RECENTS)
    engine.delete()
    review.restore(RECENTS, ImageHandle("A"))
    assert _snapshot(s) == (1, 0, 1, [])
    engine.undo()
    assert _snapshot(s) == (0, 0, 0, [])


def test_leave_category_keeps_progress(engine):
    s = engine.switch_category(RECENTS)
    engine.keep()
    engine.leave_category()
    assert engine.active_category is None
    assert engine.current_image() is None
    assert engine.switch_category(RECENTS).cursor == 1 == s.cursor


def test_flush_pending_blocks_decide_and_undo(engine):
    s = engine.switch_category(RECENTS)
    engine.delete()
    s.flush_pending = True
    with pytest.raises(DeletionInProgress):
        engine.keep()
    with pytest.raises(DeletionInProgress):
        engine.undo()
    assert len(engine.history) == 1
    s.flush_pending = False
    assert engine.undo() is not None


def test_feedback_failure_does_not_break_decide(source):
    class Broken:
        def notify(self, event):
            raise RuntimeError("no haptics")

    engine = TriageEngine(source, feedback=Broken())
    engine.switch_category(RECENTS)
    assert engine.keep().entry.decision is Decision.KEEP
    assert engine.undo() is not None


def test_switch_category_rejects_invalid_category_before_fetching(engine, source):
    with pytest.raises(InvalidCategory):
        engine.switch_category(Category.for_month(2023, 13))
    assert source.fetch_calls == []
    assert len(engine.store) == 0
    assert engine.active_category is None


def test_undo_checks_pending_flush_under_store_lock(engine):
    s = engine.switch_category(RECENTS)
    engine.delete()
    errors = []

    def undo():
        try:
            engine.undo()
        except DeletionInProgress as ex:
            errors.append(ex)

    with engine.store.lock:
        worker = threading.Thread(target=undo)
        worker.start()
        time.sleep(0.05)
        s.flush_pending = True
    worker.join(5)
    assert len(errors) == 1
    assert len(engine.history) == 1
    assert _ids(s.staged) == ["A"]
    assert s.cursor == 1


def test_default_feedback_is_silent(source):
    engine = TriageEngine(source)
    engine.switch_category(RECENTS)
    assert engine.delete().entry.decision is Decision.DELETE
    assert engine.undo() is not None
    assert NullFeedback().notify("keep") is None
