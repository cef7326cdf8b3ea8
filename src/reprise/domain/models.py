"""
Domain models for review items.

These are pure data structures with no I/O or external dependencies.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any

from reprise.domain.constants import (
    CARD_EASE_FACTOR_PROPERTY,
    CARD_LAST_INTERVAL_PROPERTY,
    CARD_LAST_REVIEWED_PROPERTY,
    CARD_LAST_SCORE_PROPERTY,
    CARD_NEXT_SCHEDULE_PROPERTY,
    CARD_REPEATS_PROPERTY,
    DEFAULT_EASINESS_FACTOR,
    DEFAULT_LAST_INTERVAL,
    DEFAULT_REPETITIONS,
    MAX_QUALITY,
    MIN_QUALITY,
)

_NIL_MARKERS = {"", "nil", "none", "null"}


class CardType(str, Enum):
    SIDED = "sided"
    CLOZE = "cloze"


class Phase(IntEnum):
    """Reveal stage of the item under review."""

    QUESTION = 1
    ANSWER = 2


@dataclass(frozen=True)
class Node:
    """
    A document node as seen by the core.

    Attributes:
        id: Stable opaque reference used to re-fetch the node.
        content: Raw node text (may contain cloze spans).
        properties: Every key stored on the node besides its structure.
        depth: 0 for a card's root node, 1 for its children, and so on.
        source: Where the node lives (file path for the vault store).
    """

    id: str
    content: str = ""
    properties: dict[str, Any] = field(default_factory=dict)
    depth: int = 0
    source: str | None = None


def _is_nil(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip().lower() in _NIL_MARKERS)


def parse_float(value: Any) -> float | None:
    """Lenient float parsing: anything unparsable is treated as absent."""
    if _is_nil(value) or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_int(value: Any) -> int | None:
    if _is_nil(value) or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        number = parse_float(value)
        return int(number) if number is not None else None


def parse_timestamp(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if _is_nil(value):
        return None
    try:
        return datetime.fromisoformat(str(value).strip())
    except ValueError:
        return None


def format_timestamp(value: datetime | None) -> str | None:
    return value.isoformat(timespec="seconds") if value is not None else None


@dataclass(frozen=True)
class CardProperties:
    """
    The six persisted scheduling fields of an item.

    Missing or corrupt values are never an error: they fall back to the
    defaults of a never-reviewed item.
    """

    last_interval: float = DEFAULT_LAST_INTERVAL
    repetitions: int = DEFAULT_REPETITIONS
    easiness_factor: float = DEFAULT_EASINESS_FACTOR
    last_reviewed_at: datetime | None = None
    next_scheduled_at: datetime | None = None
    last_score: int | None = None

    @classmethod
    def from_mapping(cls, props: Mapping[str, Any] | None) -> "CardProperties":
        props = props or {}
        last_interval = parse_float(props.get(CARD_LAST_INTERVAL_PROPERTY))
        repetitions = parse_int(props.get(CARD_REPEATS_PROPERTY))
        easiness = parse_float(props.get(CARD_EASE_FACTOR_PROPERTY))
        score = parse_int(props.get(CARD_LAST_SCORE_PROPERTY))
        if score is not None and not MIN_QUALITY <= score <= MAX_QUALITY:
            score = None

        return cls(
            last_interval=DEFAULT_LAST_INTERVAL if last_interval is None else last_interval,
            repetitions=DEFAULT_REPETITIONS if repetitions is None else max(0, repetitions),
            easiness_factor=DEFAULT_EASINESS_FACTOR if easiness is None else easiness,
            last_reviewed_at=parse_timestamp(props.get(CARD_LAST_REVIEWED_PROPERTY)),
            next_scheduled_at=parse_timestamp(props.get(CARD_NEXT_SCHEDULE_PROPERTY)),
            last_score=score,
        )

    def to_mapping(self) -> dict[str, Any]:
        """Render as the flat key-value set written to the store."""
        return {
            CARD_LAST_INTERVAL_PROPERTY: self.last_interval,
            CARD_REPEATS_PROPERTY: self.repetitions,
            CARD_EASE_FACTOR_PROPERTY: self.easiness_factor,
            CARD_NEXT_SCHEDULE_PROPERTY: format_timestamp(self.next_scheduled_at),
            CARD_LAST_REVIEWED_PROPERTY: format_timestamp(self.last_reviewed_at),
            CARD_LAST_SCORE_PROPERTY: self.last_score,
        }


# The full set written by a reset: defaults plus cleared review fields.
RESET_PROPERTIES = CardProperties().to_mapping()
