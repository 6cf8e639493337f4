"""Ordered build status shared by runs and analysis results.

A run's overall status and the plugin-specific status of an analysis result
use the same scale. Lower ordinals are better; ``SUCCESS`` is the only
"stable" outcome.
"""

from __future__ import annotations

import enum

# Spellings a host may use for a run that has not finished yet.
_INCOMPLETE = frozenset({"", "null", "none", "running", "in_progress", "building"})


class BuildStatus(enum.Enum):
    """Overall outcome of a run, ordered from best to worst."""

    SUCCESS = "success"
    UNSTABLE = "unstable"
    FAILURE = "failure"
    NOT_BUILT = "not_built"
    ABORTED = "aborted"

    @property
    def ordinal(self) -> int:
        """Severity rank (0 = best)."""
        return _ORDER[self]

    def is_better_than(self, other: BuildStatus) -> bool:
        return self.ordinal < other.ordinal

    def is_better_or_equal_to(self, other: BuildStatus) -> bool:
        return self.ordinal <= other.ordinal

    def is_worse_than(self, other: BuildStatus) -> bool:
        return self.ordinal > other.ordinal

    def is_worse_or_equal_to(self, other: BuildStatus) -> bool:
        return self.ordinal >= other.ordinal

    @classmethod
    def best(cls) -> BuildStatus:
        """The best possible outcome, i.e. a stable run."""
        return cls.SUCCESS

    @classmethod
    def from_string(cls, text: str | None) -> BuildStatus | None:
        """Parse a status name case-insensitively.

        Returns None for the spellings of an incomplete run (``None``,
        ``"running"``, ...). Raises ValueError for anything else unknown.
        """
        if text is None:
            return None
        key = text.strip().lower().replace("-", "_")
        if key in _INCOMPLETE:
            return None
        for member in cls:
            if member.value == key:
                return member
        raise ValueError(f"Unknown build status: {text!r}")


_ORDER: dict[BuildStatus, int] = {
    BuildStatus.SUCCESS: 0,
    BuildStatus.UNSTABLE: 1,
    BuildStatus.FAILURE: 2,
    BuildStatus.NOT_BUILT: 3,
    BuildStatus.ABORTED: 4,
}
