# Domain Package
from .errors import (
    InvalidAction,
    InvalidArgument,
    NodeNotFoundError,
    PropertyWriteError,
    RepriseError,
)
from .matrix import DifficultyMatrix
from .models import CardProperties, CardType, Node, Phase
from .ports import MatrixStore, NodeStore

__all__ = [
    "CardProperties",
    "CardType",
    "DifficultyMatrix",
    "InvalidAction",
    "InvalidArgument",
    "MatrixStore",
    "Node",
    "NodeNotFoundError",
    "NodeStore",
    "Phase",
    "PropertyWriteError",
    "RepriseError",
]
