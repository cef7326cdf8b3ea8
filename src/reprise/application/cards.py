"""
Review items and their reveal behavior.

A card is a small value (node id + variant). Reveal behavior differs between
variants only in which nodes each phase shows and which rendering hints go
with them, so both live in lookup tables keyed by (variant, phase).
"""

from dataclasses import dataclass
from typing import Any

from reprise.domain.constants import CARD_TYPE_PROPERTY
from reprise.domain.models import CardType, Node, Phase
from reprise.domain.ports import NodeStore

# Whether a phase shows the root's descendants.
_SHOWS_DESCENDANTS: dict[tuple[CardType, Phase], bool] = {
    (CardType.SIDED, Phase.QUESTION): False,
    (CardType.SIDED, Phase.ANSWER): True,
    (CardType.CLOZE, Phase.QUESTION): True,
    (CardType.CLOZE, Phase.ANSWER): True,
}

# Rendering hints handed to the renderer with each phase.
_PHASE_CONFIG: dict[tuple[CardType, Phase], dict[str, Any]] = {
    (CardType.SIDED, Phase.QUESTION): {},
    (CardType.SIDED, Phase.ANSWER): {},
    (CardType.CLOZE, Phase.QUESTION): {"cloze": True},
    (CardType.CLOZE, Phase.ANSWER): {},
}


@dataclass(frozen=True)
class Card:
    node_id: str
    card_type: CardType = CardType.SIDED


def card_type_of(node: Node) -> CardType | None:
    raw = node.properties.get(CARD_TYPE_PROPERTY)
    if raw is None:
        return None
    try:
        return CardType(str(raw).strip().lower().lstrip(":"))
    except ValueError:
        return None


def is_card_node(node: Node) -> bool:
    return card_type_of(node) is not None


def card_from_node(node: Node) -> Card:
    """Build the card for a node. Unknown or missing markers fall back to sided."""
    return Card(node_id=node.id, card_type=card_type_of(node) or CardType.SIDED)


def root_node(card: Card, store: NodeStore) -> Node:
    """Fresh read of the card's backing node. Never cached."""
    return store.fetch_node(card.node_id)


def phase_nodes(card: Card, phase: Phase, store: NodeStore) -> list[Node]:
    if _SHOWS_DESCENDANTS[(card.card_type, Phase(phase))]:
        root, descendants = store.fetch_node_and_descendants(card.node_id)
        return [root, *descendants]
    return [root_node(card, store)]


def phase_config(card: Card, phase: Phase) -> dict[str, Any]:
    return dict(_PHASE_CONFIG[(card.card_type, Phase(phase))])
