"""
Difficulty Matrix value type.

A sparse table of optimal factors indexed by (repetitions, easiness factor).
Instances are immutable: every update returns a new matrix, and the owner
decides when the new value becomes the shared one.
"""

from collections.abc import Iterator, Mapping
from typing import Any

MatrixKey = tuple[int, float]


class DifficultyMatrix(Mapping[MatrixKey, float]):
    __slots__ = ("_entries",)

    def __init__(self, entries: Mapping[MatrixKey, float] | None = None):
        self._entries: dict[MatrixKey, float] = {
            (int(n), float(ef)): float(of) for (n, ef), of in (entries or {}).items()
        }

    def __getitem__(self, key: MatrixKey) -> float:
        n, ef = key
        return self._entries[(int(n), float(ef))]

    def __iter__(self) -> Iterator[MatrixKey]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, DifficultyMatrix):
            return self._entries == other._entries
        return NotImplemented

    def __hash__(self) -> int:
        return hash(frozenset(self._entries.items()))

    def __repr__(self) -> str:
        return f"DifficultyMatrix({self._entries!r})"

    def lookup(self, repetitions: int, easiness_factor: float) -> float | None:
        return self._entries.get((int(repetitions), float(easiness_factor)))

    def with_entry(
        self, repetitions: int, easiness_factor: float, optimal_factor: float
    ) -> "DifficultyMatrix":
        """Return a copy of this matrix with one entry set."""
        entries = dict(self._entries)
        entries[(int(repetitions), float(easiness_factor))] = float(optimal_factor)
        return DifficultyMatrix(entries)

    # ---------- Serialization ----------

    def to_nested(self) -> dict[str, dict[str, float]]:
        """Nested form ``{"<repetitions>": {"<ef>": of}}`` used for storage."""
        nested: dict[str, dict[str, float]] = {}
        for (n, ef), of in sorted(self._entries.items()):
            nested.setdefault(str(n), {})[repr(ef)] = of
        return nested

    @classmethod
    def from_nested(cls, data: Mapping[str, Any]) -> "DifficultyMatrix":
        """Inverse of `to_nested`. Malformed rows raise ValueError."""
        entries: dict[MatrixKey, float] = {}
        for n, row in data.items():
            if not isinstance(row, Mapping):
                raise ValueError(f"matrix row {n!r} is not a mapping")
            for ef, of in row.items():
                entries[(int(n), float(ef))] = float(of)
        return cls(entries)
