"""Reactive: the store tying Props, Computeds and Works together.

Instead of wiring "when A changes, update B", a Work simply reads A. The
store records what each Work read during its last run, and re-runs it when
one of those exact paths is edited.

    reactive = Reactive({"red": False, "blue": False})
    reactive.define_computed("multicolor", lambda prop, computed: prop.red and prop.blue)

    @reactive.define_work
    def rainbow(prop, computed):
        if computed.multicolor:
            print("RAINBOW")

    reactive.prop.red = True
    reactive.prop.blue = True  # prints "RAINBOW"

Edits are processed in ticks. A write outside any tick starts one and
drains it before returning; a write made by a Work during a tick is picked
up by the next pass of that same tick.
"""

from __future__ import annotations

import functools
import logging
import weakref
from collections import Counter
from collections.abc import Hashable, Iterable, Mapping
from typing import Any, Callable

from propwork import _links
from propwork._namespace import Accessor, Namespace
from propwork._tracking import ExecutionContext
from propwork.dependencies import ReversedDependencies
from propwork.errors import (
    CascadeOverflow,
    DuplicateDefinition,
    IllegalMutation,
    InvalidHandler,
    InvalidKey,
)
from propwork.observable import differs, is_plain, observe, peek, to_plain
from propwork.paths import Path, PropName, as_path, get_deep, is_prop_name, path_in
from propwork.work import Work, WorkHandler

logger = logging.getLogger(__name__)

# A Work dispatched more often than this before a tick settles is a loop.
MAX_SUCCESSIVE_RUNS = 20


class Reactive:
    """A store of Props, Computeds and Works.

    ``prop`` is the observed namespace: reading a Prop inside a Work makes
    the Work depend on it, writing it re-runs the Works that depend on it.
    ``computed`` holds read-only values derived from Props.
    """

    max_successive_runs = MAX_SUCCESSIVE_RUNS

    def __init__(
        self,
        props: Mapping[PropName, Any] | None = None,
        computeds: Mapping[Hashable, WorkHandler] | None = None,
        *,
        verbose: bool = False,
    ) -> None:
        self.prop = Namespace("prop")
        self.computed = Namespace("computed")
        self._props: dict[PropName, Any] = {}
        self._computeds: dict[Hashable, Any] = {}
        self._works: list[Work] = []
        self._tick_running = False
        self._successive_stack: list[Work] = []
        self._edited_during_tick: list[Path] = []
        self._context: ExecutionContext | None = None
        self._teardown_hooks: list[Callable[[], None]] = []
        # Copy Works this store placed on the sources of its shared Props.
        self._feeds: list[tuple[weakref.ref, Work]] = []
        self._verbose = verbose

        if props:
            self.define_props(props)
        if computeds:
            self.define_computeds(computeds)

    @property
    def works(self) -> list[Work]:
        return list(self._works)

    @property
    def is_ticking(self) -> bool:
        return self._tick_running

    # ─── Props ────────────────────────────────────────────────────────────

    def define_prop(self, name: PropName, value: Any = None) -> None:
        """Define a new Prop, observed from now on.

        Plain dicts and lists are observed at every depth. A name can be
        defined once only.
        """
        if not is_prop_name(name):
            raise InvalidKey(f"Prop can't be indexed with {type(name).__name__} {name!r}")
        if name in self.prop:
            raise DuplicateDefinition(f"Prop {name!r} already defined")

        def store(new_value: Any) -> None:
            if is_plain(new_value):
                self._props[name] = observe(
                    new_value,
                    functools.partial(self._prop_accessed, name),
                    functools.partial(self._prop_edited, name),
                    functools.partial(self._prop_edited, name),
                )
            else:
                self._props[name] = new_value

        def read() -> Any:
            self._prop_accessed(name)
            return self._props[name]

        def write(new_value: Any) -> None:
            if differs(self._props[name], new_value):
                store(new_value)
                self._prop_edited(name)

        store(value)
        self.prop._install(name, Accessor(read, write))

    def define_props(self, props: Mapping[PropName, Any]) -> None:
        """Define several Props at once.

        reactive.define_props({
            "blue": True,
            "palette": {"current": "blue", "selected": ["yellow"]},
        })
        """
        for name, value in props.items():
            self.define_prop(name, value)

    # ─── Works ────────────────────────────────────────────────────────────

    def define_work(self, handler: WorkHandler) -> Work:
        """Define a Work and run it once.

        The Work re-runs every time a Prop or Computed it read during its
        previous run is edited. It may edit Props itself. Usable as a
        decorator.
        """
        if self._verbose:
            logger.debug("define work %s", _name(handler))
        work = Work(handler)
        self._works.append(work)
        self._dispatch_work(work)
        return work

    def define_works(self, handlers: Iterable[WorkHandler]) -> list[Work]:
        return [self.define_work(handler) for handler in handlers]

    # ─── Computeds ────────────────────────────────────────────────────────

    def define_computed(self, name: Hashable, handler: WorkHandler) -> None:
        """Define a value derived from Props and other Computeds.

        handler(prop, computed) should have no side effect. Its result is
        cached and refreshed whenever a Prop it read is edited.
        """
        if name in self.computed:
            raise DuplicateDefinition(f"Computed {name!r} already defined")
        if not callable(handler):
            raise InvalidHandler(f"Computed {name!r} handler must be callable, got {handler!r}")
        if self._verbose:
            logger.debug("define computed %r", name)

        def compute(prop: Namespace, computed: Namespace) -> None:
            self._computeds[name] = handler(prop, computed)

        compute.__name__ = f"computed:{name}"
        work = Work(compute)
        self._works.append(work)

        def read() -> Any:
            dependencies = work.dependencies
            if any(path_in(path, self._edited_during_tick) for path in dependencies):
                self._execute(work)
                dependencies = work.dependencies
            # Whoever reads the Computed depends on what it depends on.
            for prop_name, *rest in dependencies:
                if prop_name in self.prop:
                    get_deep(self.prop[prop_name], rest)
            return self._computeds.get(name)

        def write(value: Any) -> None:
            raise IllegalMutation(f"Computed {name!r} can't be set directly")

        self.computed._install(name, Accessor(read, write))
        self._dispatch_work(work)

    def define_computeds(self, handlers: Mapping[Hashable, WorkHandler]) -> None:
        """Define several Computeds at once.

        reactive.define_computeds({
            "green": lambda prop, computed: prop.blue and prop.yellow,
            "light_green": lambda prop, computed: prop.white and computed.green,
        })
        """
        for name, handler in handlers.items():
            self.define_computed(name, handler)

    # ─── Shared Props ─────────────────────────────────────────────────────

    def define_shared_prop(self, source: Reactive, target_name: PropName, source_name: PropName) -> None:
        """Mirror Prop source_name of another store as target_name here.

        The shared Prop can be read, and Works reading it re-run when the
        source is edited, including edits deep inside it. It can't be
        written from this store.
        """
        if not is_prop_name(target_name):
            raise InvalidKey(f"Prop can't be indexed with {type(target_name).__name__} {target_name!r}")
        if target_name in self.prop:
            raise DuplicateDefinition(f"Prop {target_name!r} already defined")
        if source_name not in source.prop:
            raise KeyError(f"No prop named {source_name!r} in {source!r}")
        if self._verbose:
            logger.debug("define shared prop %r from %r", target_name, source_name)

        target = weakref.ref(self)

        def copy(prop: Namespace, computed: Namespace) -> None:
            value = prop[source_name]
            store = target()
            if store is not None:
                store._props[target_name] = value

        copy.__name__ = f"shared:{source_name}->{target_name}"
        work = Work(copy)
        source._works.append(work)
        self._feeds.append((weakref.ref(source), work))
        _links.registry.link(source, source_name, self, target_name)

        def read() -> Any:
            self._prop_accessed(target_name)
            return self._props.get(target_name)

        def write(value: Any) -> None:
            raise IllegalMutation(f"Prop {target_name!r} is shared from another store, it can't be set directly")

        self.prop._install(target_name, Accessor(read, write))
        source._dispatch_work(work)

    def define_shared_props(self, source: Reactive, names: Mapping[PropName, PropName]) -> None:
        """Share several Props, mapping source names to target names.

        paris.define_shared_props(eiffel_tower, {
            "lights_on": "tower_lights_on",
            "lights": "tower_lights",
        })
        """
        for source_name, target_name in names.items():
            self.define_shared_prop(source, target_name, source_name)

    # ─── Touch / teardown ─────────────────────────────────────────────────

    def touch(self, path: PropName | Iterable[Hashable]) -> None:
        """Mark a path as edited without changing its value."""
        self._prop_edited(*as_path(path))

    def on_destroy(self, callback: Callable[[], None]) -> None:
        """Register a callback run by destroy(), e.g. to detach listeners."""
        self._teardown_hooks.append(callback)

    def destroy(self) -> None:
        """Release every Prop, Computed, Work and link of this store."""
        self.prop._clear()
        self.computed._clear()
        self._props.clear()
        self._computeds.clear()
        self._works.clear()
        self._successive_stack.clear()
        self._edited_during_tick.clear()
        self._context = None
        for source_ref, work in self._feeds:
            source = source_ref()
            if source is not None and work in source._works:
                source._works.remove(work)
        self._feeds.clear()
        _links.registry.unlink(self)
        hooks, self._teardown_hooks = self._teardown_hooks, []
        for hook in hooks:
            hook()

    # ─── Tracking ─────────────────────────────────────────────────────────

    def _prop_edited(self, *path: Hashable) -> None:
        """Record an edit of path and run the Works depending on it.

        Editing ("a", "b") re-runs Works that read exactly ("a", "b"), not
        those that read ("a",) nor ("a", "b", "c").
        """
        if self._verbose:
            logger.debug("%r edited to %r", path, to_plain(peek(self._props, path)))
        if not path_in(path, self._edited_during_tick):
            self._edited_during_tick.append(path)
        if self._context is not None:
            self._context.record_edit(path)

        if not self._tick_running:
            self._dispatch_works()

        if not path:
            return
        for target, target_name in _links.registry.targets(self, path[0]):
            if len(path) == 1:
                target._props[target_name] = self._props.get(path[0])
            target._prop_edited(target_name, *path[1:])

    def _prop_accessed(self, *path: Hashable) -> None:
        """Record that the running Work read path."""
        if self._context is not None:
            self._context.record_access(path)

        for target, target_name in _links.registry.targets(self, path[0]):
            target._prop_accessed(target_name, *path[1:])

    # ─── Scheduling ───────────────────────────────────────────────────────

    def _dispatch_works(self) -> None:
        """Run ticks until no edit is left."""
        while True:
            self._tick()
            if not self._edited_during_tick:
                self._successive_stack.clear()
                return

    def _tick(self) -> None:
        """One pass over the paths edited since the previous pass."""
        self._tick_running = True
        try:
            invalidated = tuple(self._edited_during_tick)
            self._edited_during_tick.clear()
            self._check_loop_in_stack()
            reversed_dependencies = ReversedDependencies.from_works(self._works)
            if self._verbose:
                logger.debug("tick start: invalidated %r", invalidated)
                logger.debug("reversed dependencies %r", reversed_dependencies)
            for path in invalidated:
                for work in reversed_dependencies.get(path):
                    self._dispatch_work(work)
            if self._verbose:
                logger.debug("tick end")
        finally:
            self._tick_running = False

    def _dispatch_work(self, work: Work) -> None:
        """Run work and replace its dependencies with what it read."""
        if self._verbose:
            logger.debug("dispatch %r", work)
        context = self._execute(work)
        if self._verbose:
            logger.debug("accessed %r", context.accessed)
            logger.debug("edited %r", context.edited)
            logger.debug("dependencies %r", work.dependencies)
        self._successive_stack.append(work)

    def _execute(self, work: Work) -> ExecutionContext:
        context = ExecutionContext()
        outer, self._context = self._context, context
        try:
            work.dispatch(self.prop, self.computed)
        finally:
            self._context = outer
        work.replace_dependencies(context.dependencies())
        return context

    def _check_loop_in_stack(self) -> None:
        if not self._successive_stack:
            return
        work, count = Counter(self._successive_stack).most_common(1)[0]
        if count > self.max_successive_runs:
            raise CascadeOverflow(
                f"Infinite loop detected: {work!r} ran {count} times in a row",
                work=work,
                count=count,
            )

    def __repr__(self) -> str:
        return (
            f"Reactive(props={list(self.prop)!r}, computeds={list(self.computed)!r}, "
            f"works={len(self._works)})"
        )


def _name(handler: Callable) -> str:
    return getattr(handler, "__name__", repr(handler))
