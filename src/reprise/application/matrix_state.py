"""Process-wide Difficulty Matrix owned by the review coordinator."""

import logging
import threading

from reprise.domain.matrix import DifficultyMatrix
from reprise.domain.ports import MatrixStore

logger = logging.getLogger(__name__)


class MatrixState:
    """
    Holds the shared Difficulty Matrix value.

    The Scheduler only ever receives `current` by value; the review session is
    the only writer, through `commit`. `flush` pushes the in-memory value to
    durable storage (last writer wins).
    """

    def __init__(self, store: MatrixStore | None = None, matrix: DifficultyMatrix | None = None):
        self._store = store
        self._matrix = matrix if matrix is not None else DifficultyMatrix()
        self._dirty = False
        self._lock = threading.RLock()

    @classmethod
    def load(cls, store: MatrixStore | None) -> "MatrixState":
        """Load once at startup. Failures are logged and leave an empty matrix."""
        if store is None:
            return cls()
        try:
            matrix = store.load()
        except Exception as e:
            logger.warning(f"Could not load difficulty matrix, starting empty: {e}")
            matrix = DifficultyMatrix()
        logger.debug(f"[matrix] loaded {len(matrix)} entries")
        return cls(store=store, matrix=matrix)

    @property
    def current(self) -> DifficultyMatrix:
        return self._matrix

    @property
    def lock(self):
        """Held by a writer across read-compute-commit of the matrix."""
        return self._lock

    @property
    def dirty(self) -> bool:
        return self._dirty

    def commit(self, matrix: DifficultyMatrix) -> None:
        with self._lock:
            self._matrix = matrix
            self._dirty = True

    def flush(self) -> bool:
        """Persist the current matrix. Non-fatal: returns False on failure."""
        if self._store is None:
            return False
        with self._lock:
            try:
                ok = self._store.save(self._matrix)
            except Exception as e:
                logger.warning(f"Failed to save difficulty matrix: {e}")
                return False
            if ok:
                self._dirty = False
                logger.debug(f"[matrix] flushed {len(self._matrix)} entries")
            else:
                logger.warning("Failed to save difficulty matrix")
            return ok
