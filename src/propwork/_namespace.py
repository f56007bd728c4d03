"""Namespaces: the public ``store.prop`` and ``store.computed`` objects.

A namespace maps names to accessors. Attribute and item syntax are
equivalent (``store.prop.red`` / ``store.prop["red"]``); integer names are
only reachable through item syntax.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterator
from typing import Any, Callable, NamedTuple

from propwork.errors import IllegalMutation


class Accessor(NamedTuple):
    get: Callable[[], Any]
    set: Callable[[Any], None]


class Namespace:
    """Read/write view over a store's accessors.

    Not a Mapping: mixin methods such as ``keys`` or ``get`` would shadow
    Props of the same name under attribute syntax.

    Key inspection (``in``, ``len``, iteration over names) does not read
    any value, so it records no access.
    """

    __slots__ = ("_kind", "_accessors")

    def __init__(self, kind: str) -> None:
        object.__setattr__(self, "_kind", kind)
        object.__setattr__(self, "_accessors", {})

    def _install(self, name: Hashable, accessor: Accessor) -> None:
        self._accessors[name] = accessor

    def _clear(self) -> None:
        self._accessors.clear()

    def __getitem__(self, name: Hashable) -> Any:
        try:
            accessor = self._accessors[name]
        except KeyError:
            raise KeyError(f"No {self._kind} named {name!r}") from None
        return accessor.get()

    def __setitem__(self, name: Hashable, value: Any) -> None:
        try:
            accessor = self._accessors[name]
        except KeyError:
            raise KeyError(f"No {self._kind} named {name!r}, define it first") from None
        accessor.set(value)

    def __delitem__(self, name: Hashable) -> None:
        raise IllegalMutation(f"{self._kind.capitalize()} {name!r} can't be deleted")

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__"):
            raise AttributeError(name)
        try:
            return self[name]
        except KeyError as exc:
            raise AttributeError(exc.args[0]) from None

    def __setattr__(self, name: str, value: Any) -> None:
        try:
            self[name] = value
        except KeyError as exc:
            raise AttributeError(exc.args[0]) from None

    def __delattr__(self, name: str) -> None:
        del self[name]

    def __contains__(self, name: object) -> bool:
        return name in self._accessors

    def __iter__(self) -> Iterator[Hashable]:
        return iter(list(self._accessors))

    def __len__(self) -> int:
        return len(self._accessors)

    def __dir__(self) -> list[str]:
        return [name for name in self._accessors if isinstance(name, str)]

    def __repr__(self) -> str:
        return f"<{self._kind} namespace: {', '.join(map(repr, self._accessors))}>"
