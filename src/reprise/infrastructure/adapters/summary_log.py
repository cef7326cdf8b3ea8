import logging
from pathlib import Path

from reprise.application.summary import ReviewSummary, format_summary


class MarkdownSummaryLog:
    """Appends review summaries as outline blocks to a Markdown note."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self.logger = logging.getLogger(__name__)

    def __call__(self, summary: ReviewSummary) -> None:
        self.append(summary)

    def append(self, summary: ReviewSummary) -> bool:
        block = format_summary(summary)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            existing = self.path.read_text(encoding="utf-8") if self.path.exists() else ""
            sep = "" if not existing or existing.endswith("\n") else "\n"
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(f"{sep}{block}\n")
        except OSError as e:
            self.logger.warning(f"Could not append summary to {self.path}: {e}")
            return False
        self.logger.debug(f"[summary] appended to {self.path}")
        return True
