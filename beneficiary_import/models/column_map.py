from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field

"""ColumnMap model: semantic field name -> column index (or unresolved)."""

__all__ = [
    "ColumnMap",
]


@dataclass(frozen=True)
class ColumnMap(Mapping[str, "int | None"]):
    """Read-only mapping built once per file from header text.

    Every known field is present as a key; unresolved fields map to ``None``.
    """
    indices: dict[str, int | None] = field(default_factory=dict)
    headers: tuple[str, ...] = ()

    def __getitem__(self, name: str) -> int | None:
        return self.indices[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self.indices)

    def __len__(self) -> int:
        return len(self.indices)

    def index_of(self, name: str) -> int | None:
        """Return the column index for ``name`` or None when unresolved/unknown."""
        return self.indices.get(name)

    def is_resolved(self, name: str) -> bool:
        return self.indices.get(name) is not None

    def header_of(self, name: str) -> str | None:
        """Header text that satisfied the rule for ``name``."""
        idx = self.indices.get(name)
        if idx is None or idx >= len(self.headers):
            return None
        return self.headers[idx]

    @property
    def unresolved(self) -> list[str]:
        return [name for name, idx in self.indices.items() if idx is None]
