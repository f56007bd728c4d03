"""propwork: fine-grained reactive Props, Computeds and Works for Python."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("propwork")
except PackageNotFoundError:
    __version__ = "0+local"

from propwork.errors import (
    CascadeOverflow,
    DuplicateDefinition,
    IllegalMutation,
    InvalidHandler,
    InvalidKey,
    PropworkError,
)
from propwork.observable import ObservedDict, ObservedList, observe, to_plain
from propwork.work import Work
from propwork.dependencies import ReversedDependencies
from propwork.reactive import Reactive, MAX_SUCCESSIVE_RUNS
# textual is opt-in: import propwork.textual explicitly

__all__ = [
    "Reactive",
    "Work",
    "ReversedDependencies",
    "ObservedDict",
    "ObservedList",
    "observe",
    "to_plain",
    "MAX_SUCCESSIVE_RUNS",
    "PropworkError",
    "DuplicateDefinition",
    "InvalidKey",
    "InvalidHandler",
    "IllegalMutation",
    "CascadeOverflow",
]
