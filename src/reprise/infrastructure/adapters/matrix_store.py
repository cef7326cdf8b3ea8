import json
import logging
from pathlib import Path

from reprise.application.utils.fs import atomic_write_text
from reprise.domain.matrix import DifficultyMatrix
from reprise.domain.ports import MatrixStore


class JsonMatrixStore(MatrixStore):
    """Persists the Difficulty Matrix as nested JSON: {"<n>": {"<ef>": of}}."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self.logger = logging.getLogger(__name__)

    def load(self) -> DifficultyMatrix:
        if not self.path.exists():
            return DifficultyMatrix()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError("top level is not an object")
            return DifficultyMatrix.from_nested(data)
        except (OSError, ValueError) as e:
            # json.JSONDecodeError is a ValueError
            self.logger.warning(f"Ignoring unreadable matrix file {self.path}: {e}")
            return DifficultyMatrix()

    def save(self, matrix: DifficultyMatrix) -> bool:
        try:
            atomic_write_text(self.path, json.dumps(matrix.to_nested(), indent=2, sort_keys=True))
        except OSError as e:
            self.logger.error(f"Failed to write matrix file {self.path}: {e}")
            return False
        return True
