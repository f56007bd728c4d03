"""Paths: tuples of keys addressing a location inside the Prop tree.

A path's first key is a Prop name; the rest walk into nested dicts and
lists. Paths compare structurally, so tuple equality is path equality and
a tuple is its own canonical hashable form.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Mapping, Sequence
from typing import Any, Union

PropName = Union[str, int]
Path = tuple[Hashable, ...]


def is_prop_name(name: object) -> bool:
    """Only str and int keys may name a Prop."""
    return isinstance(name, (str, int)) and not isinstance(name, bool)


def as_path(path: PropName | Iterable[Hashable]) -> Path:
    """Normalize a bare key or a key sequence into a path."""
    if isinstance(path, (str, int)):
        return (path,)
    return tuple(path)


def paths_equal(a: Iterable[Hashable], b: Iterable[Hashable]) -> bool:
    a, b = tuple(a), tuple(b)
    return len(a) == len(b) and all(x == y for x, y in zip(a, b))


def path_in(needle: Iterable[Hashable], haystack: Iterable[Path]) -> bool:
    """True if an equal path is in haystack. Prefixes do not count."""
    needle = tuple(needle)
    return any(paths_equal(needle, item) for item in haystack)


def has_key(container: Any, key: Hashable) -> bool:
    """Check that container[key] exists without reading it."""
    if isinstance(container, Mapping):
        return key in container
    if isinstance(container, Sequence) and not isinstance(container, (str, bytes)):
        return isinstance(key, int) and -len(container) <= key < len(container)
    return False


def get_deep(container: Any, path: Iterable[Hashable]) -> Any:
    """Walk path through container with normal item access.

    Every level is read through ``__getitem__``, so walking observed data
    records an access at each prefix of the path. Stops and returns None at
    the first missing key.
    """
    value = container
    for key in path:
        if not has_key(value, key):
            return None
        value = value[key]
    return value
