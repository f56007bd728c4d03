"""Textual integration for propwork. Opt-in: requires textual.

Binds Textual form widgets (Input, Checkbox, Switch, Select,
SelectionList) to Props of a Reactive store:

    binding = FormBinding(app, reactive)
    binding.bind("name", app.query_one("#name", Input))

    # in the App
    def on_input_changed(self, event):
        binding.on_changed(event)

Prop -> widget runs as a Work, so the widget follows every edit of the
Prop. Widget -> Prop is driven by the widget's Changed messages, which the
app forwards to on_changed().

// [LAW:single-enforcer] Guard + NoMatches + thread-marshal enforced here, not at callsites.
// [LAW:locality-or-seam] Textual coupling isolated in this module, core propwork stays agnostic.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, NamedTuple

from textual.css.query import NoMatches
from textual.widgets import Checkbox, Input, SelectionList, Switch

from propwork.paths import PropName
from propwork.reactive import Reactive

logger = logging.getLogger(__name__)

Getter = Callable[[Any], Any]
Setter = Callable[[Any, Any], None]

# Module-owned pause state, keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend widget updates during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def widget_value(widget) -> Any:
    """Default getter: the value a widget currently holds."""
    if isinstance(widget, SelectionList):
        return list(widget.selected)
    return widget.value


def set_widget_value(widget, value: Any) -> None:
    """Default setter: push a Prop value into a widget."""
    if isinstance(widget, (Checkbox, Switch)):
        widget.value = bool(value)
    elif isinstance(widget, Input):
        widget.value = "" if value is None else str(value)
    elif isinstance(widget, SelectionList):
        widget.deselect_all()
        for selected in value or ():
            widget.select(selected)
    else:
        widget.value = value


class _Link(NamedTuple):
    widget: Any
    prop_name: PropName
    getter: Getter


class FormBinding:
    """Two-way links between form widgets and the Props of one store.

    Registered as a teardown hook of the store: destroying the store
    detaches every link.
    """

    def __init__(self, app, store: Reactive) -> None:
        self._app = app
        self._store = store
        self._links: dict[int, _Link] = {}
        self._disposed = False
        self._main = threading.get_ident()
        store.on_destroy(self.dispose)

    @property
    def disposed(self) -> bool:
        return self._disposed

    def bind(
        self,
        prop_name: PropName,
        widget,
        *,
        getter: Getter | None = None,
        setter: Setter | None = None,
    ) -> None:
        """Link widget to Prop prop_name, defining the Prop if needed.

        A new Prop starts from the widget's current value.
        """
        getter = getter or widget_value
        setter = setter or set_widget_value
        if prop_name not in self._store.prop:
            self._store.define_prop(prop_name, getter(widget))
        self._links[id(widget)] = _Link(widget, prop_name, getter)

        def push(prop, computed) -> None:
            # Read first: the Work must depend on the Prop even when the
            # widget can't be touched right now.
            value = prop[prop_name]
            if self._disposed or not is_safe(self._app):
                return
            if threading.get_ident() != self._main:
                self._app.call_from_thread(_safe, value)
            else:
                _safe(value)

        def _safe(value) -> None:
            try:
                setter(widget, value)
            except NoMatches:
                pass

        push.__name__ = f"form:{prop_name}"
        self._store.define_work(push)

    def bind_many(self, links: dict) -> None:
        """Bind several widgets at once.

        binding.bind_many({
            "color": app.query_one("#color", Select),
            "volume": (app.query_one("#volume", Input), {"getter": int}),
        })
        """
        for prop_name, link in links.items():
            if isinstance(link, tuple):
                widget, accessors = link
                self.bind(prop_name, widget, **accessors)
            else:
                self.bind(prop_name, link)

    def on_changed(self, message) -> bool:
        """Write a widget's new value to its Prop.

        Takes any Textual Changed message (it exposes the widget as
        ``control``). Input whose validation failed is ignored. Returns
        whether the widget is bound here.
        """
        if self._disposed:
            return False
        link = self._links.get(id(message.control))
        if link is None:
            return False
        validation = getattr(message, "validation_result", None)
        if validation is not None and not validation.is_valid:
            logger.debug("ignored invalid input for %r: %s", link.prop_name, validation.failure_descriptions)
            return True
        self._store.prop[link.prop_name] = link.getter(link.widget)
        return True

    def dispose(self) -> None:
        """Detach every link. Widgets and Props keep their values."""
        self._disposed = True
        self._links.clear()
