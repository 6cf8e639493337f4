"""Backward walk over a run history.

A :class:`BuildHistory` starts at a baseline run and looks at its
predecessors, newest first, for the analysis result of the same kind (as
chosen by a result selector). The first result whose run qualifies wins.

A run qualifies when it has finished and either

* its overall status is better than ``FAILURE``, or
* it failed, but the attached analysis itself reported ``FAILURE`` or worse,
  so the analysis plugin is what failed the run.

The second rule keeps a failure in some unrelated build step from breaking
the trend. When a stable run is required, only ``SUCCESS`` qualifies.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime

from trendref.logging import get_logger
from trendref.model import AnalysisResult, ResultSelector, Run
from trendref.status import BuildStatus

log = get_logger("history")


class NoPreviousResultError(LookupError):
    """Raised when a previous result is requested but none qualifies."""


class BuildHistory:
    """History of analysis results, starting from a baseline run."""

    def __init__(self, baseline: Run, selector: ResultSelector) -> None:
        self._baseline = baseline
        self._selector = selector

    def __repr__(self) -> str:
        return f"{type(self).__name__}(baseline={self._baseline!r})"

    @property
    def baseline(self) -> Run:
        return self._baseline

    @property
    def timestamp(self) -> datetime:
        """Timestamp of the baseline run."""
        return self._baseline.timestamp

    def result_for(self, run: Run) -> AnalysisResult | None:
        """The result the selector extracts from *run*, if any."""
        return self._selector(run)

    def baseline_result(self) -> AnalysisResult | None:
        """The result attached to the baseline run itself."""
        return self.result_for(self._baseline)

    # -- traversal ---------------------------------------------------------

    def _predecessors(self) -> Iterator[Run]:
        run = self._baseline.previous
        while run is not None:
            yield run
            run = run.previous

    def find_result(
        self, is_status_relevant: bool, must_be_stable: bool = False
    ) -> AnalysisResult | None:
        """Return the result of the nearest qualifying previous run.

        Args:
            is_status_relevant: Also require the result itself to report
                success.
            must_be_stable: Only accept runs whose status is ``SUCCESS``.

        Returns:
            The attached result, or None when the history is exhausted.
        """
        for run in self._predecessors():
            result = self.result_for(run)
            if result is None:
                log.debug("Skipping %r: no result attached", run)
                continue
            if not self.has_valid_result(run, must_be_stable, result):
                log.debug("Skipping %r: status %s does not qualify", run, run.status)
                continue
            if is_status_relevant and not result.is_successful:
                log.debug("Skipping %r: analysis result is not successful", run)
                continue
            log.debug("Selected result of %r", run)
            return result
        return None

    def has_valid_result(
        self,
        run: Run,
        must_be_stable: bool = False,
        result: AnalysisResult | None = None,
    ) -> bool:
        """Check whether *run* finished with an acceptable outcome.

        The plugin-cause override only applies when *result* is given.
        """
        status = run.status
        if status is None:
            return False
        if must_be_stable:
            return status is BuildStatus.best()
        return status.is_better_than(BuildStatus.FAILURE) or _is_plugin_cause_for_failure(result)

    def previous_action(self, must_be_stable: bool = False) -> AnalysisResult | None:
        """The nearest previous result, or None if there is none."""
        return self.find_result(False, must_be_stable)

    # -- public queries ----------------------------------------------------

    def has_previous_result(self) -> bool:
        return self.previous_action() is not None

    def is_empty(self) -> bool:
        return not self.has_previous_result()

    def previous_result(self) -> AnalysisResult:
        """Return the nearest previous result.

        Raises:
            NoPreviousResultError: If no previous run qualifies. Check
                :meth:`has_previous_result` first.
        """
        result = self.previous_action()
        if result is None:
            raise NoPreviousResultError("No previous result available")
        return result


def _is_plugin_cause_for_failure(result: AnalysisResult | None) -> bool:
    if result is None:
        return False
    return result.plugin_status.is_worse_or_equal_to(BuildStatus.FAILURE)
