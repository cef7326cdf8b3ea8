"""
End-of-batch review summary.

This is a pure computation module with no I/O.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date

from reprise.application.cards import Card
from reprise.domain.constants import SUMMARY_ORDER


@dataclass
class OutcomeCount:
    outcome: int | str
    count: int
    percent: int  # floor(100 * count / reviews), 0 when there were no reviews


@dataclass
class ReviewSummary:
    """Aggregated tally of one review session."""

    items: int  # distinct cards in the batch
    reviews: int  # recorded Score/Skip decisions
    day: date
    outcomes: list[OutcomeCount] = field(default_factory=list)

    def count(self, outcome: int | str) -> int:
        for entry in self.outcomes:
            if entry.outcome == outcome:
                return entry.count
        return 0

    def to_dict(self) -> dict:
        return {
            "items": self.items,
            "reviews": self.reviews,
            "day": self.day.isoformat(),
            "outcomes": {str(o.outcome): {"count": o.count, "percent": o.percent} for o in self.outcomes},
        }


def summarize(
    tally: Mapping[int | str, Sequence[Card]],
    cards: Sequence[Card],
    day: date | None = None,
) -> ReviewSummary:
    """
    Build the summary of a batch.

    Args:
        tally: Outcome key (0..5 or "skip") -> cards, as handed to the
            session's completion callback.
        cards: The batch as it was before any re-insertion.
        day: Date stamped on the summary (default: today).
    """
    reviews = sum(len(v) for v in tally.values())
    outcomes = []
    for outcome in SUMMARY_ORDER:
        count = len(tally.get(outcome, ()))
        percent = (100 * count) // reviews if reviews else 0
        outcomes.append(OutcomeCount(outcome=outcome, count=count, percent=percent))

    return ReviewSummary(
        items=len({c.node_id for c in cards}),
        reviews=reviews,
        day=day or date.today(),
        outcomes=outcomes,
    )


def format_summary(summary: ReviewSummary) -> str:
    """Render as a Markdown outline block suitable for appending to a note."""
    lines = [
        f"- Summary: {summary.items} items, {summary.reviews} review counts "
        f"[[{summary.day.isoformat()}]]"
    ]
    for entry in summary.outcomes:
        lines.append(f"  - {entry.outcome}: {entry.count}({entry.percent}%)")
    return "\n".join(lines)
