"""Works: side-effecting handlers re-run when what they read changes.

A Work holds its handler and the paths it read during its last run. The
dependency list is replaced, never merged, after every run: paths that the
last run did not read are forgotten.
"""

from __future__ import annotations

from typing import Any, Callable

from propwork.paths import Path, path_in

WorkHandler = Callable[[Any, Any], Any]


class Work:
    """A registered handler plus its current dependencies."""

    __slots__ = ("_handler", "_dependencies")

    def __init__(self, handler: WorkHandler) -> None:
        self._handler = handler
        self._dependencies: list[Path] = []

    @property
    def handler(self) -> WorkHandler:
        return self._handler

    @property
    def dependencies(self) -> list[Path]:
        """A copy of the paths declared by the last run."""
        return list(self._dependencies)

    def dispatch(self, props: Any, computeds: Any) -> None:
        self._handler(props, computeds)

    def reset_dependencies(self) -> None:
        self._dependencies.clear()

    def declare_dependency(self, path: Path) -> None:
        if not path_in(path, self._dependencies):
            self._dependencies.append(path)

    def replace_dependencies(self, paths: list[Path]) -> None:
        self.reset_dependencies()
        for path in paths:
            self.declare_dependency(path)

    def __repr__(self) -> str:
        name = getattr(self._handler, "__name__", repr(self._handler))
        return f"Work({name}, dependencies={self._dependencies!r})"
