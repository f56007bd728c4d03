"""Link registry: directed edges from a source store's Prop to targets.

Links live here rather than on the stores so that neither side holds the
other alive: both ends are weak references. A store consults the registry
whenever it records an access or an edit, and forwards it to every live
target under the linked name.
"""

from __future__ import annotations

import weakref
from typing import TYPE_CHECKING, NamedTuple, Iterator

from propwork.paths import PropName

if TYPE_CHECKING:
    from propwork.reactive import Reactive


class Link(NamedTuple):
    target: weakref.ref
    target_prop: PropName


class LinkRegistry:
    """source store -> source Prop name -> links."""

    def __init__(self) -> None:
        self._edges: weakref.WeakKeyDictionary[Reactive, dict[PropName, list[Link]]] = (
            weakref.WeakKeyDictionary()
        )

    def link(self, source: Reactive, source_prop: PropName, target: Reactive, target_prop: PropName) -> None:
        edges = self._edges.setdefault(source, {})
        edges.setdefault(source_prop, []).append(Link(weakref.ref(target), target_prop))

    def targets(self, source: Reactive, source_prop: object) -> Iterator[tuple[Reactive, PropName]]:
        """Live (target store, target Prop name) pairs linked to source_prop."""
        edges = self._edges.get(source)
        if not edges:
            return
        for link in list(edges.get(source_prop, ())):
            target = link.target()
            if target is not None:
                yield target, link.target_prop

    def is_linked(self, source: Reactive) -> bool:
        return bool(self._edges.get(source))

    def unlink(self, store: Reactive) -> None:
        """Drop every edge where store is the source or the target."""
        self._edges.pop(store, None)
        for edges in list(self._edges.values()):
            for source_prop, links in list(edges.items()):
                kept = [link for link in links if link.target() not in (None, store)]
                if kept:
                    edges[source_prop] = kept
                else:
                    del edges[source_prop]


# Process-wide registry shared by every store.
registry = LinkRegistry()
