"""Observed containers: dicts and lists that report reads and writes.

observe() copies a plain dict or list into an ObservedDict / ObservedList.
Every read of a present key calls on_access(*suffix), every changing write
calls on_mutate(*suffix) and every deletion calls on_delete(*suffix), where
suffix is the key path below the observed root. Nested dicts and lists are
wrapped recursively and report through their parent, so a write three
levels down arrives as on_mutate("a", "b", "c").

Writing a key that did not exist yet reports an empty suffix on the
container itself: its shape changed. List operations that change the
length do the same.

Only exact dict and list instances are observed. Class instances, dict
subclasses and tuples are stored as-is and never report anything.
"""

from __future__ import annotations

import functools
import operator
from collections.abc import Callable, Hashable, Iterable, Iterator, MutableMapping, MutableSequence
from typing import Any

from propwork.paths import has_key

Callback = Callable[..., None]
Parents = dict[int, tuple[Any, "_Observed"]]


def is_plain(value: object) -> bool:
    """Plain data that observe() will wrap."""
    return type(value) in (dict, list) or isinstance(value, _Observed)


def differs(old: object, new: object) -> bool:
    """Containers compare by identity, everything else by value.

    A comparison that raises or has no truth value (array-like objects)
    counts as a difference.
    """
    if old is new:
        return False
    if isinstance(old, (dict, list, _Observed)) or isinstance(new, (dict, list, _Observed)):
        return True
    try:
        return bool(old != new)
    except (TypeError, ValueError):
        return True


def observe(
    source: Any,
    on_access: Callback,
    on_mutate: Callback,
    on_delete: Callback,
    parents: Parents | None = None,
) -> Any:
    """Wrap source so reads and writes report their key path.

    parents maps id(container) -> (container, proxy) for the containers
    already wrapped on the current branch. A structure that refers back to
    one of its ancestors gets the ancestor's proxy instead of recursing.
    """
    raw = source._data if isinstance(source, _Observed) else source
    parents = {} if parents is None else parents
    if id(raw) in parents:
        return parents[id(raw)][1]
    if not is_plain(raw):
        return source
    if isinstance(raw, list):
        return ObservedList(raw, on_access, on_mutate, on_delete, parents)
    return ObservedDict(raw, on_access, on_mutate, on_delete, parents)


def to_plain(value: Any, _memo: dict[int, Any] | None = None) -> Any:
    """Deep copy observed data back into dicts and lists. Records nothing."""
    if not isinstance(value, (_Observed, dict, list)):
        return value
    memo = {} if _memo is None else _memo
    if id(value) in memo:
        return memo[id(value)]
    data = value._data if isinstance(value, _Observed) else value
    if isinstance(data, list):
        items: list = []
        memo[id(value)] = items
        items.extend(to_plain(item, memo) for item in data)
        return items
    mapping: dict = {}
    memo[id(value)] = mapping
    mapping.update((key, to_plain(item, memo)) for key, item in data.items())
    return mapping


def peek(value: Any, path: Iterable[Hashable]) -> Any:
    """Read value at path without reporting any access."""
    for key in path:
        data = value._data if isinstance(value, _Observed) else value
        if not has_key(data, key):
            return None
        value = data[key]
    return value


class _Observed:
    """Shared plumbing: callbacks, parent chain and child wrapping."""

    __slots__ = ("_data", "_on_access", "_on_mutate", "_on_delete", "_parents")

    def __init__(
        self,
        source: Any,
        data: Any,
        on_access: Callback,
        on_mutate: Callback,
        on_delete: Callback,
        parents: Parents,
    ) -> None:
        self._data = data
        self._on_access = on_access
        self._on_mutate = on_mutate
        self._on_delete = on_delete
        # Scoped to this branch: siblings never see each other.
        self._parents = {**parents, id(source): (source, self), id(data): (data, self)}

    # Children report through these, so rebinding a container also moves
    # every descendant.
    def _report_access(self, *path: Hashable) -> None:
        self._on_access(*path)

    def _report_mutate(self, *path: Hashable) -> None:
        self._on_mutate(*path)

    def _report_delete(self, *path: Hashable) -> None:
        self._on_delete(*path)

    def _wrap(self, key: Hashable, value: Any) -> Any:
        return observe(
            value,
            functools.partial(self._report_access, key),
            functools.partial(self._report_mutate, key),
            functools.partial(self._report_delete, key),
            self._parents,
        )

    def _bind(self, parent: _Observed, key: Hashable) -> None:
        """Re-attach this container under parent[key]."""
        self._on_access = functools.partial(parent._report_access, key)
        self._on_mutate = functools.partial(parent._report_mutate, key)
        self._on_delete = functools.partial(parent._report_delete, key)

    def _is_ancestor_of(self, value: _Observed) -> bool:
        return id(value._data) in self._parents

    def __eq__(self, other: object) -> bool:
        return to_plain(self) == to_plain(other)

    __hash__ = None  # type: ignore[assignment]


class ObservedDict(_Observed, MutableMapping):
    """A dict that reports reads and writes of its keys."""

    __slots__ = ()

    def __init__(
        self,
        source: dict,
        on_access: Callback,
        on_mutate: Callback,
        on_delete: Callback,
        parents: Parents | None = None,
    ) -> None:
        super().__init__(source, {}, on_access, on_mutate, on_delete, parents or {})
        for key, value in source.items():
            self._data[key] = self._wrap(key, value)

    # --- Read operations (track) ---

    def __getitem__(self, key: Hashable) -> Any:
        if key in self._data:
            self._on_access(key)
        return self._data[key]

    def get(self, key: Hashable, default: Any = None) -> Any:
        if key in self._data:
            self._on_access(key)
            return self._data[key]
        return default

    # --- Key inspection (untracked) ---

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[Hashable]:
        return iter(list(self._data))

    def __len__(self) -> int:
        return len(self._data)

    # --- Write operations (notify) ---

    def __setitem__(self, key: Hashable, value: Any) -> None:
        newly_defined = key not in self._data
        if newly_defined or differs(self._data[key], value):
            self._data[key] = self._wrap(key, value)
            if newly_defined:
                self._on_mutate()
            else:
                self._on_mutate(key)

    def __delitem__(self, key: Hashable) -> None:
        del self._data[key]
        self._on_delete(key)

    def __repr__(self) -> str:
        return f"ObservedDict({to_plain(self)!r})"


class ObservedList(_Observed, MutableSequence):
    """A list that reports reads and writes of its indexes.

    Structural operations (insert, pop, sort, ...) run on a copy, then the
    differences are reported: changed indexes, removed indexes, and an
    empty suffix when the length changed.
    """

    __slots__ = ()

    def __init__(
        self,
        source: list,
        on_access: Callback,
        on_mutate: Callback,
        on_delete: Callback,
        parents: Parents | None = None,
    ) -> None:
        super().__init__(source, [], on_access, on_mutate, on_delete, parents or {})
        for index, value in enumerate(source):
            self._data.append(self._wrap(index, value))

    def _position(self, index: int) -> int:
        position = operator.index(index)
        if position < 0:
            position += len(self._data)
        if not 0 <= position < len(self._data):
            raise IndexError("list index out of range")
        return position

    # --- Read operations (track) ---

    def __getitem__(self, index):
        if isinstance(index, slice):
            return [self[i] for i in range(*index.indices(len(self._data)))]
        position = self._position(index)
        self._on_access(position)
        return self._data[position]

    def __iter__(self) -> Iterator[Any]:
        index = 0
        while index < len(self._data):
            yield self[index]
            index += 1

    def __len__(self) -> int:
        return len(self._data)

    # --- Write operations (notify) ---

    def __setitem__(self, index, value) -> None:
        if isinstance(index, slice):
            values = list(value)
            self._splice(lambda items: items.__setitem__(index, values))
            return
        position = self._position(index)
        if differs(self._data[position], value):
            self._data[position] = self._wrap(position, value)
            self._on_mutate(position)

    def __delitem__(self, index) -> None:
        self._splice(lambda items: items.__delitem__(index))

    def insert(self, index: int, value: Any) -> None:
        self._splice(lambda items: items.insert(index, value))

    def append(self, value: Any) -> None:
        self._splice(lambda items: items.append(value))

    def extend(self, values: Iterable[Any]) -> None:
        values = list(values)
        self._splice(lambda items: items.extend(values))

    def pop(self, index: int = -1) -> Any:
        return self._splice(lambda items: items.pop(index))

    def remove(self, value: Any) -> None:
        self._splice(lambda items: items.remove(value))

    def clear(self) -> None:
        self._splice(lambda items: items.clear())

    def sort(self, *, key: Callable[[Any], Any] | None = None, reverse: bool = False) -> None:
        self._splice(lambda items: items.sort(key=key, reverse=reverse))

    def reverse(self) -> None:
        self._splice(lambda items: items.reverse())

    def __iadd__(self, values: Iterable[Any]) -> ObservedList:
        self.extend(values)
        return self

    def _splice(self, operation: Callable[[list], Any]) -> Any:
        items = list(self._data)
        result = operation(items)
        self._apply(items)
        return result

    def _apply(self, items: list) -> None:
        """Replace the contents with items and report what changed."""
        old = list(self._data)
        unchanged = {
            index for index, value in enumerate(items)
            if index < len(old) and not differs(old[index], value)
        }
        placed = {id(old[index]) for index in unchanged}
        movable = {id(item) for item in old if isinstance(item, _Observed)}
        data = []
        mutated = []
        for index, value in enumerate(items):
            if index in unchanged:
                data.append(old[index])
                continue
            if (
                isinstance(value, _Observed)
                and id(value) in movable
                and id(value) not in placed
                and not self._is_ancestor_of(value)
            ):
                # Moved within this list: keep the same container.
                value._bind(self, index)
                placed.add(id(value))
            else:
                value = self._wrap(index, value)
            data.append(value)
            if index < len(old):
                mutated.append(index)
        self._data[:] = data

        for index in mutated:
            self._on_mutate(index)
        for index in range(len(items), len(old)):
            self._on_delete(index)
        if len(items) != len(old):
            self._on_mutate()

    def __repr__(self) -> str:
        return f"ObservedList({to_plain(self)!r})"
