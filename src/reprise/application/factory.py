"""
Review Service Factory
Centralizes the wiring of adapters for a resolved configuration.
"""

from pathlib import Path

from reprise.application.config import AppConfig
from reprise.application.matrix_state import MatrixState
from reprise.application.review_service import ReviewService
from reprise.infrastructure.adapters.matrix_store import JsonMatrixStore
from reprise.infrastructure.adapters.summary_log import MarkdownSummaryLog
from reprise.infrastructure.adapters.vault_store import VaultNodeStore

# One shared matrix per matrix file for the lifetime of the process.
_matrix_states: dict[Path, MatrixState] = {}


def get_matrix_state(path: Path) -> MatrixState:
    """
    Returns the process-wide MatrixState for a matrix file, loading it on first use.
    """
    path = Path(path)
    state = _matrix_states.get(path)
    if state is None:
        state = MatrixState.load(JsonMatrixStore(path))
        _matrix_states[path] = state
    return state


def get_review_service(config: AppConfig) -> ReviewService:
    """
    Returns a ReviewService over the configured vault.
    """
    vault_root = config.vault_root or Path.cwd()
    sink = MarkdownSummaryLog(config.summary_path) if config.summary_path else None
    return ReviewService(
        store=VaultNodeStore(vault_root),
        matrix=get_matrix_state(config.effective_matrix_path()),
        summary_sink=sink,
    )
