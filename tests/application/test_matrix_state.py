from unittest.mock import MagicMock

from reprise.application.matrix_state import MatrixState
from reprise.domain.matrix import DifficultyMatrix
from reprise.domain.ports import MatrixStore


def test_load_uses_store():
    store = MagicMock(spec=MatrixStore)
    store.load.return_value = DifficultyMatrix({(1, 2.5): 4.0})

    state = MatrixState.load(store)

    assert state.current.lookup(1, 2.5) == 4.0
    assert not state.dirty


def test_load_failure_starts_empty(caplog):
    store = MagicMock(spec=MatrixStore)
    store.load.side_effect = RuntimeError("disk on fire")

    state = MatrixState.load(store)

    assert len(state.current) == 0
    assert "disk on fire" in caplog.text


def test_load_without_store():
    state = MatrixState.load(None)
    assert len(state.current) == 0
    assert state.flush() is False


def test_commit_and_flush():
    store = MagicMock(spec=MatrixStore)
    store.save.return_value = True
    state = MatrixState(store=store)
    updated = state.current.with_entry(0, 2.5, 3.44)

    state.commit(updated)
    assert state.dirty
    assert state.current is updated

    assert state.flush() is True
    store.save.assert_called_once_with(updated)
    assert not state.dirty


def test_flush_failure_is_not_fatal():
    store = MagicMock(spec=MatrixStore)
    store.save.side_effect = OSError("read-only file system")
    state = MatrixState(store=store)
    state.commit(state.current.with_entry(1, 2.5, 4.0))

    assert state.flush() is False
    assert state.dirty

    store.save.side_effect = None
    store.save.return_value = False
    assert state.flush() is False
    assert state.dirty
