"""File-backed run history.

Lays a results directory out as a backward-linked chain of runs::

    results/
      2026-10-01_build-41/
        run_meta.json        {"run_id", "number", "status", "timestamp"}
        analysis/
          pylint.json        {"plugin_status", "successful", "issues": [...]}

Runs are ordered by ``number`` (falling back to the directory name); the
predecessor of a run is the next older run in the same directory.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from trendref.logging import get_logger
from trendref.model import IssueContainer
from trendref.status import BuildStatus

log = get_logger("store")

_EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


def parse_timestamp(value: object) -> datetime:
    """Parse an ISO 8601 timestamp; missing or bad values give the epoch."""
    if not value:
        return _EPOCH
    if not isinstance(value, str):
        log.warning("Timestamp %r is not an ISO 8601 string, using epoch", value)
        return _EPOCH
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        log.warning("Invalid timestamp %r, using epoch", value)
        return _EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class RunMeta:
    """Metadata for a single run, loaded from run_meta.json."""

    run_id: str = ""
    number: int | None = None
    status: BuildStatus | None = None
    timestamp: datetime = _EPOCH

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RunMeta:
        """Create a RunMeta from a JSON-loaded dict, tolerating missing keys."""
        try:
            status = BuildStatus.from_string(data.get("status"))
        except ValueError:
            log.warning("Run %s has unknown status %r", data.get("run_id"), data.get("status"))
            status = None
        number = data.get("number")
        return cls(
            run_id=data.get("run_id", ""),
            number=number if isinstance(number, int) else None,
            status=status,
            timestamp=parse_timestamp(data.get("timestamp")),
        )


@dataclass
class StoredResult:
    """An analysis result loaded from ``analysis/<tool>.json``."""

    run: StoredRun
    tool: str
    plugin_status: BuildStatus = BuildStatus.SUCCESS
    is_successful: bool = True
    issues: IssueContainer = field(default_factory=IssueContainer)

    def __repr__(self) -> str:
        return f"StoredResult(run={self.run.run_id!r}, tool={self.tool!r})"

    @classmethod
    def from_dict(cls, run: StoredRun, tool: str, data: dict[str, Any]) -> StoredResult:
        successful = data.get("successful", True)
        if not isinstance(successful, bool):
            raise ValueError(f"'successful' must be true or false, got {successful!r}")
        plugin_status = BuildStatus.from_string(data.get("plugin_status") or "success")
        return cls(
            run=run,
            tool=tool,
            plugin_status=plugin_status or BuildStatus.SUCCESS,
            is_successful=successful,
            issues=IssueContainer.from_dicts(data.get("issues") or []),
        )


class StoredRun:
    """A run directory, loaded lazily."""

    def __init__(self, run_id: str, run_dir: Path, store: HistoryStore) -> None:
        self.run_id = run_id
        self.run_dir = run_dir
        self._store = store
        self._meta: RunMeta | None = None
        self._results: dict[str, StoredResult | None] = {}

    def __repr__(self) -> str:
        return f"StoredRun(run_id={self.run_id!r})"

    @property
    def meta(self) -> RunMeta:
        """Load run_meta.json on first access."""
        if self._meta is None:
            self._meta = self._load_meta()
        return self._meta

    @property
    def number(self) -> int | None:
        return self.meta.number

    @property
    def status(self) -> BuildStatus | None:
        return self.meta.status

    @property
    def timestamp(self) -> datetime:
        return self.meta.timestamp

    @property
    def previous(self) -> StoredRun | None:
        return self._store.predecessor_of(self)

    def tools(self) -> list[str]:
        """Names of the analysis tools that attached a result."""
        analysis_dir = self.run_dir / "analysis"
        if not analysis_dir.is_dir():
            return []
        return sorted(f.stem for f in analysis_dir.glob("*.json"))

    def result_for(self, tool: str) -> StoredResult | None:
        """The result *tool* attached to this run, or None."""
        if tool not in self._results:
            self._results[tool] = self._load_result(tool)
        return self._results[tool]

    def _load_meta(self) -> RunMeta:
        meta_file = self.run_dir / "run_meta.json"
        if not meta_file.exists():
            return RunMeta(run_id=self.run_id)
        try:
            data = json.loads(meta_file.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            log.warning("Ignoring unreadable metadata %s: %s", meta_file, exc)
            return RunMeta(run_id=self.run_id)
        if not isinstance(data, dict):
            log.warning("Ignoring metadata %s: expected a JSON object", meta_file)
            return RunMeta(run_id=self.run_id)
        meta = RunMeta.from_dict(data)
        meta.run_id = meta.run_id or self.run_id
        return meta

    def _load_result(self, tool: str) -> StoredResult | None:
        result_file = self.run_dir / "analysis" / f"{tool}.json"
        if not result_file.exists():
            return None
        try:
            data = json.loads(result_file.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            log.warning("Ignoring unreadable result %s: %s", result_file, exc)
            return None
        if not isinstance(data, dict):
            log.warning("Ignoring result %s: expected a JSON object", result_file)
            return None
        try:
            return StoredResult.from_dict(self, tool, data)
        except ValueError as exc:
            log.warning("Ignoring result %s: %s", result_file, exc)
            return None


class HistoryStore:
    """Discovers runs in a results directory and links them by age."""

    def __init__(self, results_dir: Path) -> None:
        self.results_dir = results_dir
        self._runs: list[StoredRun] | None = None
        self._index: dict[str, int] = {}

    def list_runs(self) -> list[StoredRun]:
        """All runs, newest first."""
        if self._runs is None:
            self._runs = self._discover()
            self._index = {run.run_id: i for i, run in enumerate(self._runs)}
        return list(self._runs)

    def latest(self) -> StoredRun | None:
        """Return the most recent run, or None."""
        runs = self.list_runs()
        return runs[0] if runs else None

    def get(self, run_id: str) -> StoredRun | None:
        """Get a specific run. Accepts ``'latest'`` as alias."""
        if run_id == "latest":
            return self.latest()
        self.list_runs()
        i = self._index.get(run_id)
        return self._runs[i] if i is not None and self._runs is not None else None

    def predecessor_of(self, run: StoredRun) -> StoredRun | None:
        """The next older run, or None for the oldest one."""
        runs = self.list_runs()
        i = self._index.get(run.run_id)
        if i is None or i + 1 >= len(runs):
            return None
        return runs[i + 1]

    def tools(self) -> list[str]:
        """Every tool name that attached a result to some run."""
        names: set[str] = set()
        for run in self.list_runs():
            names.update(run.tools())
        return sorted(names)

    def _discover(self) -> list[StoredRun]:
        if not self.results_dir.is_dir():
            return []
        runs = [
            StoredRun(run_id=d.name, run_dir=d, store=self)
            for d in self.results_dir.iterdir()
            if d.is_dir() and (d / "run_meta.json").exists()
        ]

        def sort_key(run: StoredRun) -> tuple[int, str]:
            number = run.number
            return (number if number is not None else -1, run.run_id)

        runs.sort(key=sort_key, reverse=True)
        log.debug("Found %d run(s) in %s", len(runs), self.results_dir)
        return runs
