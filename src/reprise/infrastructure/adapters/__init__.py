# Infrastructure Adapters Package
from .matrix_store import JsonMatrixStore
from .summary_log import MarkdownSummaryLog
from .vault_store import VaultNodeStore

__all__ = ["JsonMatrixStore", "MarkdownSummaryLog", "VaultNodeStore"]
