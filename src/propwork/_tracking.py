"""Execution contexts: the read and write sets of one Work run.

A store installs a fresh ExecutionContext before calling a Work handler
and restores the previous one afterwards. Prop reads and writes made while
it is installed are appended here; the store inspects the context once the
handler returns to derive the Work's new dependencies.

Reads and writes made while no context is installed are not recorded.
"""

from __future__ import annotations

from propwork.paths import Path, path_in


class ExecutionContext:
    """Accessed and edited paths of a single execution, deduplicated."""

    __slots__ = ("accessed", "edited")

    def __init__(self) -> None:
        self.accessed: list[Path] = []
        self.edited: list[Path] = []

    def record_access(self, path: Path) -> None:
        if not path_in(path, self.accessed):
            self.accessed.append(path)

    def record_edit(self, path: Path) -> None:
        if not path_in(path, self.edited):
            self.edited.append(path)

    def dependencies(self) -> list[Path]:
        """Accessed paths minus edited ones.

        A Work never depends on a path it wrote itself, otherwise its own
        write would immediately re-trigger it.
        """
        return [path for path in self.accessed if not path_in(path, self.edited)]

    def __repr__(self) -> str:
        return f"ExecutionContext(accessed={self.accessed!r}, edited={self.edited!r})"
