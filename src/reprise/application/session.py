"""
Review session state machine.

Sequences a batch of cards through two-phase reveal, scoring or skipping each
one, and hands the per-outcome tally to a completion callback at the end.

Flow per card:
    1. Question phase (initial reveal)
    2. reveal() -> Answer phase (full reveal); hide() goes back
    3. score(q) or skip() records the outcome and advances
       - score(0..2) first appends a duplicate of the card to the queue so it
         comes back later in the same batch
    4. After the last card the completion callback receives the tally
"""

import logging
from collections.abc import Callable, Iterable
from datetime import datetime
from enum import Enum
from typing import Any

from reprise.application.cards import Card, phase_config, phase_nodes, root_node
from reprise.application.matrix_state import MatrixState
from reprise.application.scheduler import (
    ReviewOutcome,
    preview_intervals,
    schedule_review,
    validate_quality,
)
from reprise.domain.constants import PASSING_QUALITY, SKIP
from reprise.domain.errors import InvalidAction, InvalidArgument, PropertyWriteError
from reprise.domain.models import RESET_PROPERTIES, CardProperties, Node, Phase
from reprise.domain.ports import NodeStore

logger = logging.getLogger(__name__)

Outcome = int | str
Tally = dict[Outcome, list[Card]]
CompletionCallback = Callable[[Tally], None]


class SessionStatus(str, Enum):
    ACTIVE = "active"
    COMPLETE = "complete"
    CLOSED = "closed"


def _local_now() -> datetime:
    return datetime.now().astimezone()


class ReviewSession:
    """
    One interactive review over a queue of cards.

    The queue only ever grows (re-inserted cards are appended); the cursor
    moves forward one card per Score/Skip. Read-only sessions (previews) can
    move between phases and cards but never write anything.
    """

    def __init__(
        self,
        cards: Iterable[Card],
        store: NodeStore,
        matrix: MatrixState,
        read_only: bool = False,
        on_complete: CompletionCallback | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        queue = list(cards)
        if not queue:
            raise InvalidArgument("A review session needs at least one card")

        self._queue: list[Card] = queue
        self._cursor = 0
        self._phase = Phase.QUESTION
        self._tally: Tally = {}
        self._store = store
        self._matrix = matrix
        self._read_only = read_only
        self._on_complete = on_complete
        self._clock = clock or _local_now
        self._status = SessionStatus.ACTIVE

    # ---------- State ----------

    @property
    def queue(self) -> tuple[Card, ...]:
        return tuple(self._queue)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def tally(self) -> Tally:
        return {key: list(cards) for key, cards in self._tally.items()}

    @property
    def read_only(self) -> bool:
        return self._read_only

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def is_active(self) -> bool:
        return self._status is SessionStatus.ACTIVE

    @property
    def reviews_recorded(self) -> int:
        return sum(len(cards) for cards in self._tally.values())

    @property
    def current(self) -> Card:
        self._require_active()
        return self._queue[self._cursor]

    # ---------- Display ----------

    def reveal(self) -> None:
        self._require_active()
        self._phase = Phase.ANSWER

    def hide(self) -> None:
        self._require_active()
        self._phase = Phase.QUESTION

    def toggle(self) -> Phase:
        self._require_active()
        self._phase = Phase.ANSWER if self._phase is Phase.QUESTION else Phase.QUESTION
        return self._phase

    def visible_nodes(self) -> list[Node]:
        return phase_nodes(self.current, self._phase, self._store)

    def display_config(self) -> dict[str, Any]:
        return phase_config(self.current, self._phase)

    def score_hints(self) -> dict[int, int]:
        """Days until the next review for scores 3, 4 and 5 (not committed)."""
        node = root_node(self.current, self._store)
        props = CardProperties.from_mapping(self._store.read_properties(node))
        return preview_intervals(props, self._matrix.current)

    # ---------- Actions ----------

    def score(self, quality: int) -> ReviewOutcome:
        """
        Schedule the current card with `quality` and advance.

        Raises:
            InvalidArgument: quality is not an integer in 0..5.
            InvalidAction: not in the Answer phase, read-only, or finished.
            PropertyWriteError: the store rejected the write; nothing changed.
        """
        quality = validate_quality(quality)
        self._require_decision("score")
        card = self._queue[self._cursor]

        reinserted = quality < PASSING_QUALITY
        if reinserted:
            self._queue.append(card)

        # Other sessions share the matrix: read, write and commit as one step.
        with self._matrix.lock:
            try:
                node = root_node(card, self._store)
                props = CardProperties.from_mapping(self._store.read_properties(node))
                outcome = schedule_review(props, quality, self._matrix.current, self._clock())
                if not self._store.write_properties(node, outcome.updates):
                    raise PropertyWriteError(f"Could not save review of {card.node_id}")
            except Exception:
                if reinserted:
                    self._queue.pop()
                raise

            self._matrix.commit(outcome.matrix)
        logger.debug(
            f"[session] scored {card.node_id} q={quality} -> "
            f"interval={outcome.properties.last_interval} reps={outcome.properties.repetitions}"
        )
        self._record(quality, card)
        return outcome

    def skip(self) -> None:
        self._require_decision("skip")
        card = self._queue[self._cursor]
        logger.debug(f"[session] skipped {card.node_id}")
        self._record(SKIP, card)

    def reset(self) -> None:
        """Restore the current card's scheduling defaults. Does not advance."""
        self._require_active()
        if self._read_only:
            raise InvalidAction("Cannot reset cards in a read-only session")
        card = self._queue[self._cursor]
        node = root_node(card, self._store)
        if not self._store.write_properties(node, dict(RESET_PROPERTIES)):
            raise PropertyWriteError(f"Could not reset {card.node_id}")
        logger.info(f"Reset scheduling for {card.node_id}")

    def next_item(self) -> None:
        """Move to the next card without recording anything (previews only)."""
        self._require_active()
        if not self._read_only:
            raise InvalidAction("Score or skip the card to move on")
        self._advance()

    def finish(self) -> None:
        """End the session now and run the completion callback."""
        self._require_active()
        self._complete()

    def close(self) -> None:
        """Discard the session without running the completion callback."""
        if self._status is SessionStatus.ACTIVE:
            self._status = SessionStatus.CLOSED
            logger.debug("[session] closed without completing")

    # ---------- Internals ----------

    def _require_active(self) -> None:
        if self._status is not SessionStatus.ACTIVE:
            raise InvalidAction(f"Session is {self._status.value}")

    def _require_decision(self, action: str) -> None:
        self._require_active()
        if self._read_only:
            raise InvalidAction(f"Cannot {action} in a read-only session")
        if self._phase is not Phase.ANSWER:
            raise InvalidAction(f"Reveal the answer before you {action}")

    def _record(self, outcome: Outcome, card: Card) -> None:
        self._tally.setdefault(outcome, []).append(card)
        self._advance()

    def _advance(self) -> None:
        if self._cursor + 1 < len(self._queue):
            self._cursor += 1
            self._phase = Phase.QUESTION
        else:
            self._cursor = len(self._queue)
            self._complete()

    def _complete(self) -> None:
        self._status = SessionStatus.COMPLETE
        logger.info(
            f"Review session complete: {self.reviews_recorded} review(s) "
            f"over {len(self._queue)} queued card(s)"
        )
        if self._on_complete is not None:
            self._on_complete(self.tally)
