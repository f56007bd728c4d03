"""Exception hierarchy for propwork.

Every error is raised synchronously to the call that triggered it: a
definition call, a Prop assignment, or the tick started by that assignment.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from propwork.work import Work


class PropworkError(Exception):
    """Base exception for all propwork errors."""


class DuplicateDefinition(PropworkError):
    """A Prop or Computed name is already in use."""


class InvalidKey(PropworkError):
    """A Prop name is not a str or an int."""


class InvalidHandler(PropworkError):
    """A Computed handler is not callable."""


class IllegalMutation(PropworkError):
    """Write to a Computed or to a shared Prop."""


class CascadeOverflow(PropworkError):
    """A Work re-ran too many times before the tick settled.

    Signals a dependency cycle or a runaway feedback loop between Props and
    Works. The store is left mid-tick and must not be used further.
    """

    def __init__(self, message: str, *, work: Work | None = None, count: int = 0) -> None:
        self.work = work
        self.count = count
        super().__init__(message)
