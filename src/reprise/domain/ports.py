"""
Ports (interfaces) for the external collaborators.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from typing import Any

from .matrix import DifficultyMatrix
from .models import Node


class NodeStore(ABC):
    """
    Port for reading document nodes and their item properties.

    Implementations:
        - VaultNodeStore: Markdown files with YAML frontmatter.
    """

    @abstractmethod
    def fetch_node(self, node_id: str) -> Node:
        """
        Read the current state of a node.

        Raises:
            NodeNotFoundError: No node with this id exists.
        """
        pass

    @abstractmethod
    def fetch_node_and_descendants(self, node_id: str) -> tuple[Node, list[Node]]:
        """Read a node plus all of its descendants in document order."""
        pass

    @abstractmethod
    def read_properties(self, node: Node) -> dict[str, Any]:
        """Return the node's flat property mapping."""
        pass

    @abstractmethod
    def write_properties(self, node: Node, props: Mapping[str, Any]) -> bool:
        """
        Merge `props` into the node's stored properties.

        Returns:
            True on success, False if the write could not be applied.
        """
        pass

    @abstractmethod
    def iter_card_nodes(self, deck: str | None = None) -> Iterable[Node]:
        """Yield every root node carrying a card type marker."""
        pass


class MatrixStore(ABC):
    """Port for durable Difficulty Matrix storage."""

    @abstractmethod
    def load(self) -> DifficultyMatrix:
        """Load the stored matrix. An absent store yields an empty matrix."""
        pass

    @abstractmethod
    def save(self, matrix: DifficultyMatrix) -> bool:
        """Persist the matrix. Returns False on failure."""
        pass
