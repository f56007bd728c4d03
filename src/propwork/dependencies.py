"""Reverse dependency index: from an edited path to the Works to re-run.

Rebuilt from scratch at every tick pass from the Works' current
dependencies. Lookup is by exact path: a Work that read ("a", "b") is not
found under ("a",) nor under ("a", "b", "c").
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable

from propwork.paths import Path
from propwork.work import Work


class ReversedDependencies:
    """Flat index keyed by path tuple."""

    __slots__ = ("_index",)

    def __init__(self) -> None:
        self._index: dict[Path, list[Work]] = {}

    @classmethod
    def from_works(cls, works: Iterable[Work]) -> ReversedDependencies:
        index = cls()
        for work in works:
            for path in work.dependencies:
                index.add(path, work)
        return index

    def add(self, path: Iterable[Hashable], work: Work) -> None:
        path = tuple(path)
        if not path:
            return
        self._index.setdefault(path, []).append(work)

    def get(self, path: Iterable[Hashable]) -> list[Work]:
        """Works that declared exactly this path, in registration order."""
        return list(self._index.get(tuple(path), ()))

    def __len__(self) -> int:
        return len(self._index)

    def __repr__(self) -> str:
        entries = {path: len(works) for path, works in self._index.items()}
        return f"ReversedDependencies({entries!r})"
