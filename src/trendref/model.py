"""Capabilities the history walk consumes, plus the issue container.

Runs and analysis results are owned by the host system. trendref only
reads them through the small protocols below, so any object with the right
attributes works: the file-backed :mod:`trendref.store`, an ORM row, or a
test double.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional, Protocol, runtime_checkable

from trendref.status import BuildStatus

SEVERITIES = ("high", "normal", "low")


class Run(Protocol):
    """A completed or running entry in a backward-linked run history."""

    @property
    def previous(self) -> Run | None:
        """The immediately preceding run, or None for the first one."""
        ...

    @property
    def status(self) -> BuildStatus | None:
        """Overall outcome, or None while the run is still in progress."""
        ...

    @property
    def timestamp(self) -> datetime: ...


class AnalysisResult(Protocol):
    """The analysis result a tool attached to a run."""

    @property
    def run(self) -> Run: ...

    @property
    def plugin_status(self) -> BuildStatus:
        """Status the analysis itself reported, independent of the run's."""
        ...

    @property
    def is_successful(self) -> bool: ...

    @property
    def issues(self) -> IssueContainer: ...


# Extracts the result of one analysis tool from a run, if it attached one.
ResultSelector = Callable[[Run], Optional[AnalysisResult]]


@runtime_checkable
class _ResultCarrier(Protocol):
    def result_for(self, tool: str) -> AnalysisResult | None: ...


class ToolResultSelector:
    """Select the result attached by a named analysis tool.

    Works with runs exposing ``result_for(tool)``; any other run is treated
    as carrying no result.
    """

    def __init__(self, tool: str) -> None:
        self.tool = tool

    def __repr__(self) -> str:
        return f"ToolResultSelector(tool={self.tool!r})"

    def __call__(self, run: Run) -> AnalysisResult | None:
        if isinstance(run, _ResultCarrier):
            return run.result_for(self.tool)
        return None


@dataclass(frozen=True)
class Issue:
    """A single finding reported by an analysis tool."""

    message: str
    severity: str = "normal"
    file_name: str | None = None
    line: int | None = None
    category: str = ""

    @property
    def key(self) -> tuple[str | None, str, str]:
        """Identity used to match the same issue across runs.

        Line numbers are left out since unrelated edits shift them.
        """
        return (self.file_name, self.category, self.message)


@dataclass
class IssueContainer:
    """Collection of issues attached to an analysis result."""

    issues: list[Issue] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.issues)

    def __iter__(self) -> Iterator[Issue]:
        return iter(self.issues)

    @property
    def is_empty(self) -> bool:
        return not self.issues

    def count_by_severity(self) -> dict[str, int]:
        """Issue counts per severity, with every known severity present."""
        counts = Counter(i.severity for i in self.issues)
        result = {sev: counts.get(sev, 0) for sev in SEVERITIES}
        for sev, n in counts.items():
            result.setdefault(sev, n)
        return result

    def new_since(self, reference: IssueContainer) -> list[Issue]:
        """Issues in this container that *reference* does not have."""
        known = {i.key for i in reference}
        return [i for i in self.issues if i.key not in known]

    def fixed_since(self, reference: IssueContainer) -> list[Issue]:
        """Issues of *reference* that are gone from this container."""
        return reference.new_since(self)

    @classmethod
    def from_dicts(cls, items: Iterable[dict[str, object]]) -> IssueContainer:
        """Build a container from JSON-loaded issue dicts."""
        issues: list[Issue] = []
        for data in items:
            line = data.get("line")
            if isinstance(line, bool) or not isinstance(line, (int, str)):
                line = None
            file_name = data.get("file_name")
            issues.append(
                Issue(
                    message=str(data.get("message", "")),
                    severity=str(data.get("severity", "normal")).lower(),
                    file_name=str(file_name) if file_name is not None else None,
                    line=int(line) if line is not None and str(line).isdigit() else None,
                    category=str(data.get("category", "")),
                )
            )
        return cls(issues=issues)
