"""Tests for the review session state machine."""

import threading
import time
from unittest.mock import MagicMock

import pytest

from reprise.application.cards import Card
from reprise.application.matrix_state import MatrixState
from reprise.application.session import ReviewSession, SessionStatus
from reprise.domain.errors import (
    InvalidAction,
    InvalidArgument,
    NodeNotFoundError,
    PropertyWriteError,
)
from reprise.domain.models import RESET_PROPERTIES, CardType, Phase
from reprise.domain.ports import MatrixStore


@pytest.fixture
def store(fake_store):
    fake_store.add("a", "Alpha?", **{"card-type": "sided"})
    fake_store.add("a/0", "Answer A", parent="a")
    fake_store.add("b", "Beta?", **{"card-type": "sided"})
    fake_store.add("c", "The {{cloze Nile}}", **{"card-type": "cloze"})
    return fake_store


@pytest.fixture
def matrix():
    return MatrixState()


@pytest.fixture
def make_session(store, matrix, clock):
    def factory(ids=("a", "b"), **kwargs):
        cards = [Card(i, CardType.CLOZE if i == "c" else CardType.SIDED) for i in ids]
        return ReviewSession(cards, store, matrix, clock=clock, **kwargs)

    return factory


def _score(session, quality):
    session.reveal()
    return session.score(quality)


# ---------- Construction and phases ----------


def test_empty_queue_rejected(store, matrix):
    with pytest.raises(InvalidArgument):
        ReviewSession([], store, matrix)


def test_initial_state(make_session):
    session = make_session()

    assert session.cursor == 0
    assert session.phase is Phase.QUESTION
    assert session.current == Card("a")
    assert session.tally == {}
    assert session.status is SessionStatus.ACTIVE


def test_reveal_hide_toggle(make_session):
    session = make_session()

    session.reveal()
    assert session.phase is Phase.ANSWER
    session.hide()
    assert session.phase is Phase.QUESTION
    assert session.toggle() is Phase.ANSWER
    assert session.toggle() is Phase.QUESTION


def test_visible_nodes_follow_phase(make_session):
    session = make_session()

    assert [n.id for n in session.visible_nodes()] == ["a"]
    session.reveal()
    assert [n.id for n in session.visible_nodes()] == ["a", "a/0"]


def test_cloze_display_config(make_session):
    session = make_session(ids=("c",))

    assert session.display_config() == {"cloze": True}
    session.reveal()
    assert session.display_config() == {}


# ---------- Scoring ----------


def test_score_requires_answer_phase(make_session, store):
    session = make_session()

    with pytest.raises(InvalidAction):
        session.score(4)
    assert store.writes == []


def test_invalid_quality_changes_nothing(make_session, store):
    session = make_session()
    session.reveal()

    with pytest.raises(InvalidArgument):
        session.score(7)

    assert session.cursor == 0
    assert len(session.queue) == 2
    assert store.writes == []


def test_passing_score_writes_and_advances(make_session, store, matrix):
    session = make_session()

    outcome = _score(session, 4)

    assert session.cursor == 1
    assert session.phase is Phase.QUESTION
    assert len(session.queue) == 2
    assert session.tally == {4: [Card("a")]}

    node_id, written = store.writes[0]
    assert node_id == "a"
    assert written == outcome.updates
    assert written["card-repeats"] == 1
    assert written["card-last-score"] == 4
    assert written["card-last-reviewed"] == "2026-10-19T09:30:00+00:00"

    assert matrix.dirty
    assert matrix.current == outcome.matrix


def test_failing_score_reinserts_card(make_session):
    session = make_session()

    _score(session, 1)
    assert session.queue == (Card("a"), Card("b"), Card("a"))
    assert session.cursor == 1

    _score(session, 5)
    assert session.current == Card("a")
    _score(session, 4)

    assert session.status is SessionStatus.COMPLETE
    assert session.tally == {1: [Card("a")], 5: [Card("b")], 4: [Card("a")]}
    assert session.reviews_recorded == len(session.queue)


def test_tally_counts_match_cursor(make_session):
    session = make_session(ids=("a", "b", "c"))

    for quality in (2, 5, 0):
        _score(session, quality)
        assert session.reviews_recorded == session.cursor

    assert len(session.queue) == 5


def test_properties_are_read_fresh(make_session, store):
    session = make_session()
    session.reveal()

    # Edited in the document after the session started
    store.nodes["a"]["properties"].update(
        {"card-repeats": 2, "card-ease-factor": 2.5, "card-last-interval": 4}
    )
    session.score(4)

    _, written = store.writes[0]
    assert written["card-repeats"] == 3
    assert written["card-last-interval"] == pytest.approx(10.0)


def test_write_failure_leaves_state_untouched(make_session, store, matrix):
    session = make_session()
    session.reveal()
    store.fail_writes = True

    with pytest.raises(PropertyWriteError):
        session.score(0)

    assert session.queue == (Card("a"), Card("b"))
    assert session.cursor == 0
    assert session.phase is Phase.ANSWER
    assert session.tally == {}
    assert not matrix.dirty
    assert len(matrix.current) == 0

    # Retry succeeds once the store recovers
    store.fail_writes = False
    session.score(0)
    assert session.queue == (Card("a"), Card("b"), Card("a"))
    assert session.tally == {0: [Card("a")]}


def test_missing_node_rolls_back_reinsertion(make_session, store):
    session = make_session()
    session.reveal()
    del store.nodes["a"]

    with pytest.raises(NodeNotFoundError):
        session.score(1)

    assert len(session.queue) == 2
    assert session.cursor == 0


def test_score_hints_for_fresh_card(make_session):
    session = make_session()
    session.reveal()
    assert session.score_hints() == {3: 4, 4: 4, 5: 4}


# ---------- Skip / reset ----------


def test_skip_records_without_writing(make_session, store):
    session = make_session()

    with pytest.raises(InvalidAction):
        session.skip()

    session.reveal()
    session.skip()

    assert session.tally == {"skip": [Card("a")]}
    assert session.cursor == 1
    assert store.writes == []


def test_reset_restores_defaults_without_advancing(make_session, store):
    store.nodes["a"]["properties"].update({"card-repeats": 4, "card-ease-factor": 1.9})
    session = make_session()
    session.reveal()

    session.reset()

    assert store.writes == [("a", dict(RESET_PROPERTIES))]
    assert store.nodes["a"]["properties"]["card-repeats"] == 0
    assert session.cursor == 0
    assert session.phase is Phase.ANSWER
    assert session.tally == {}


def test_reset_write_failure(make_session, store):
    session = make_session()
    store.fail_writes = True

    with pytest.raises(PropertyWriteError):
        session.reset()


# ---------- Completion ----------


def test_completion_callback_runs_once(make_session):
    on_complete = MagicMock()
    session = make_session(on_complete=on_complete)

    _score(session, 5)
    _score(session, 3)

    on_complete.assert_called_once_with({5: [Card("a")], 3: [Card("b")]})
    assert session.cursor == len(session.queue)
    assert not session.is_active

    with pytest.raises(InvalidAction):
        session.reveal()
    with pytest.raises(InvalidAction):
        session.finish()
    on_complete.assert_called_once()


def test_finish_early_reports_partial_tally(make_session):
    on_complete = MagicMock()
    session = make_session(on_complete=on_complete)

    _score(session, 4)
    session.finish()

    on_complete.assert_called_once_with({4: [Card("a")]})
    assert session.status is SessionStatus.COMPLETE


def test_close_skips_callback(make_session):
    on_complete = MagicMock()
    session = make_session(on_complete=on_complete)

    session.close()

    assert session.status is SessionStatus.CLOSED
    on_complete.assert_not_called()


# ---------- Shared matrix ----------


def test_concurrent_sessions_keep_both_matrix_entries(make_session, store, matrix):
    store.nodes["b"]["properties"]["card-ease-factor"] = 2.0
    first, second = make_session(ids=("a",)), make_session(ids=("b",))
    first.reveal()
    second.reveal()

    slow_write = store.write_properties

    def write_properties(node, props):
        time.sleep(0.05)
        return slow_write(node, props)

    store.write_properties = write_properties
    barrier = threading.Barrier(2)

    def run(session):
        barrier.wait()
        session.score(4)

    threads = [threading.Thread(target=run, args=(s,)) for s in (first, second)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert first.status is SessionStatus.COMPLETE
    assert second.status is SessionStatus.COMPLETE
    assert matrix.current.lookup(0, 2.5) is not None
    assert matrix.current.lookup(0, 2.0) is not None


# ---------- Read-only ----------


def test_read_only_session_never_writes(store, clock):
    matrix_store = MagicMock(spec=MatrixStore)
    matrix = MatrixState(store=matrix_store)
    on_complete = MagicMock()
    session = ReviewSession(
        [Card("a"), Card("b")], store, matrix, read_only=True, on_complete=on_complete, clock=clock
    )

    session.reveal()
    for action in (lambda: session.score(5), session.skip, session.reset):
        with pytest.raises(InvalidAction):
            action()

    session.next_item()
    assert session.current == Card("b")
    assert session.phase is Phase.QUESTION
    session.toggle()
    session.next_item()

    assert store.writes == []
    matrix_store.save.assert_not_called()
    assert not matrix.dirty
    on_complete.assert_called_once_with({})


def test_next_item_only_in_read_only(make_session):
    session = make_session()
    with pytest.raises(InvalidAction):
        session.next_item()
