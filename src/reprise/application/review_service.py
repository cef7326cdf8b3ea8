"""
Review coordinator: Application layer orchestrator.

Owns the node store and the shared Difficulty Matrix for one vault, selects
cards, and starts review or preview sessions wired with their completion
callbacks.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from reprise.application.cards import Card, card_from_node
from reprise.application.due import DeckStatus, deck_status, select_due
from reprise.application.matrix_state import MatrixState
from reprise.application.session import ReviewSession, Tally
from reprise.application.summary import ReviewSummary, summarize
from reprise.domain.ports import NodeStore

logger = logging.getLogger(__name__)

SummarySink = Callable[[ReviewSummary], None]


def _local_now() -> datetime:
    return datetime.now().astimezone()


class ReviewService:
    """
    Application service for review sessions.

    Follows Dependency Inversion: depends on the NodeStore abstraction and an
    injected summary sink, not on concrete adapters.
    """

    def __init__(
        self,
        store: NodeStore,
        matrix: MatrixState,
        summary_sink: SummarySink | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        """
        Args:
            store: The node store (port) holding the cards.
            matrix: Shared Difficulty Matrix state.
            summary_sink: Receives the summary of every completed review.
            clock: Source of "now"; defaults to local time.
        """
        self.store = store
        self.matrix = matrix
        self._summary_sink = summary_sink
        self._clock = clock or _local_now

    # ---------- Selection ----------

    def all_cards(self, deck: str | None = None) -> list[Card]:
        return [card_from_node(node) for node in self.store.iter_card_nodes(deck)]

    def due_cards(self, deck: str | None = None) -> list[Card]:
        nodes = select_due(self.store.iter_card_nodes(deck), self._clock())
        return [card_from_node(node) for node in nodes]

    def status(self, deck: str | None = None) -> DeckStatus:
        return deck_status(self.store.iter_card_nodes(deck), self._clock())

    # ---------- Sessions ----------

    def start_review(
        self,
        deck: str | None = None,
        cards: list[Card] | None = None,
        on_summary: SummarySink | None = None,
    ) -> ReviewSession | None:
        """
        Start a scoring session over due cards (or the given cards).

        Returns None when there is nothing to review.
        """
        batch = list(cards) if cards is not None else self.due_cards(deck)
        if not batch:
            logger.info("No cards due for review.")
            return None

        def complete(tally: Tally) -> None:
            summary = summarize(tally, batch, day=self._clock().date())
            self.matrix.flush()
            if self._summary_sink is not None:
                self._summary_sink(summary)
            if on_summary is not None:
                on_summary(summary)

        logger.info(f"Starting review of {len(batch)} card(s)")
        return ReviewSession(batch, self.store, self.matrix, on_complete=complete, clock=self._clock)

    def start_preview(
        self,
        deck: str | None = None,
        on_complete: Callable[[Tally], None] | None = None,
    ) -> ReviewSession | None:
        """Start a read-only session over every card, due or not."""
        batch = self.all_cards(deck)
        if not batch:
            logger.info("No cards to preview.")
            return None
        return ReviewSession(
            batch,
            self.store,
            self.matrix,
            read_only=True,
            on_complete=on_complete,
            clock=self._clock,
        )
