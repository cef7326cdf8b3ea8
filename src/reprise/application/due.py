"""
Due selection and deck status counts.

Decides which card nodes are scheduled for review at a given time, and
computes the overdue / new / total indicator for a deck.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from reprise.domain.constants import CARD_NEXT_SCHEDULE_PROPERTY, CARD_REPEATS_PROPERTY
from reprise.domain.models import Node, parse_int, parse_timestamp


@dataclass
class DeckStatus:
    overdue: int
    new: int
    total: int

    def __str__(self) -> str:
        return f"{self.overdue}/{self.new}/{self.total}"


def _as_comparable(moment: datetime, reference: datetime) -> datetime:
    # Naive timestamps in the vault are read as local time.
    if moment.tzinfo is None and reference.tzinfo is not None:
        return moment.astimezone()
    if moment.tzinfo is not None and reference.tzinfo is None:
        return moment.astimezone().replace(tzinfo=None)
    return moment


def is_new(node: Node) -> bool:
    repeats = parse_int(node.properties.get(CARD_REPEATS_PROPERTY))
    return repeats is None or repeats < 1


def is_due(node: Node, now: datetime) -> bool:
    """
    A card is due when it was never successfully reviewed, has no usable next
    schedule, or its next schedule is before `now`.
    """
    if is_new(node):
        return True
    next_schedule = parse_timestamp(node.properties.get(CARD_NEXT_SCHEDULE_PROPERTY))
    if next_schedule is None:
        return True
    return _as_comparable(next_schedule, now) < now


def select_due(nodes: Iterable[Node], now: datetime) -> list[Node]:
    return [node for node in nodes if is_due(node, now)]


def deck_status(nodes: Iterable[Node], now: datetime) -> DeckStatus:
    nodes = list(nodes)
    return DeckStatus(
        overdue=len(select_due(nodes, now)),
        new=sum(1 for node in nodes if is_new(node)),
        total=len(nodes),
    )
