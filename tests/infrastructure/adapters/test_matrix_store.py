import json
from unittest.mock import patch

from reprise.domain.matrix import DifficultyMatrix
from reprise.infrastructure.adapters.matrix_store import JsonMatrixStore


def test_missing_file_loads_empty(tmp_path):
    assert JsonMatrixStore(tmp_path / "none.json").load() == DifficultyMatrix()


def test_save_and_load(tmp_path):
    path = tmp_path / "state" / "of-matrix.json"
    matrix = DifficultyMatrix({(0, 2.5): 3.44, (2, 2.5): 2.5})
    store = JsonMatrixStore(path)

    assert store.save(matrix) is True
    assert json.loads(path.read_text()) == {"0": {"2.5": 3.44}, "2": {"2.5": 2.5}}
    assert store.load() == matrix


def test_corrupt_file_loads_empty(tmp_path, caplog):
    path = tmp_path / "of-matrix.json"
    path.write_text("{not json")

    assert JsonMatrixStore(path).load() == DifficultyMatrix()
    assert "Ignoring unreadable matrix file" in caplog.text


def test_wrong_shape_loads_empty(tmp_path):
    path = tmp_path / "of-matrix.json"
    path.write_text("[1, 2, 3]")
    assert len(JsonMatrixStore(path).load()) == 0

    path.write_text('{"1": 4.0}')
    assert len(JsonMatrixStore(path).load()) == 0


def test_save_failure_returns_false(tmp_path):
    store = JsonMatrixStore(tmp_path / "of-matrix.json")
    with patch(
        "reprise.infrastructure.adapters.matrix_store.atomic_write_text",
        side_effect=OSError("read-only"),
    ):
        assert store.save(DifficultyMatrix({(1, 2.5): 4.0})) is False
