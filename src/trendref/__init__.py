"""trendref — previous and reference run selection for trend reports."""

from trendref.history import BuildHistory, NoPreviousResultError
from trendref.reference import (
    ReferenceFinder,
    ReferenceStrategy,
    create_history,
    create_reference_finder,
)
from trendref.status import BuildStatus

__version__ = "0.1.0"

__all__ = [
    "BuildHistory",
    "BuildStatus",
    "NoPreviousResultError",
    "ReferenceFinder",
    "ReferenceStrategy",
    "__version__",
    "create_history",
    "create_reference_finder",
]
