"""Reference run selection for trend and regression reports.

The reference is the earlier run a report compares the baseline against.
Two strategies are supported:

``PREVIOUS_BUILD``
    The nearest previous run that qualifies (see :mod:`trendref.history`),
    whatever its analysis reported.

``STABLE_PLUGIN``
    The nearest previous run whose analysis itself reported success. If no
    such run exists, falls back to the nearest qualifying run.

Both can additionally be told to only consider stable (``SUCCESS``) runs.
"""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING

from trendref.history import BuildHistory
from trendref.logging import get_logger
from trendref.model import (
    AnalysisResult,
    IssueContainer,
    ResultSelector,
    Run,
    ToolResultSelector,
)

if TYPE_CHECKING:
    from trendref.config import ReferenceConfig

log = get_logger("reference")


class ReferenceStrategy(enum.Enum):
    """How the reference run is chosen."""

    PREVIOUS_BUILD = "previous_build"
    STABLE_PLUGIN = "stable_plugin"

    @classmethod
    def from_flags(cls, use_previous_build_as_reference: bool) -> ReferenceStrategy:
        if use_previous_build_as_reference:
            return cls.PREVIOUS_BUILD
        return cls.STABLE_PLUGIN


class ReferenceFinder(BuildHistory):
    """Finds the reference run for a baseline.

    Instances answer the same query every time; build a new one per
    baseline.
    """

    def __init__(
        self,
        baseline: Run,
        selector: ResultSelector,
        strategy: ReferenceStrategy = ReferenceStrategy.STABLE_PLUGIN,
        must_be_stable: bool = False,
    ) -> None:
        super().__init__(baseline, selector)
        self._strategy = strategy
        self._must_be_stable = must_be_stable

    def __repr__(self) -> str:
        return (
            f"ReferenceFinder(baseline={self.baseline!r}, "
            f"strategy={self._strategy.value}, must_be_stable={self._must_be_stable})"
        )

    @classmethod
    def from_config(
        cls, run: Run, selector: ResultSelector | str, config: ReferenceConfig
    ) -> ReferenceFinder:
        return create_reference_finder(
            run,
            selector,
            config.use_previous_build_as_reference,
            config.use_stable_build_as_reference,
        )

    @property
    def strategy(self) -> ReferenceStrategy:
        return self._strategy

    @property
    def must_be_stable(self) -> bool:
        return self._must_be_stable

    def reference_action(self) -> AnalysisResult | None:
        """The result the strategy picks as reference, or None."""
        if self._strategy is ReferenceStrategy.PREVIOUS_BUILD:
            return self.find_result(False, self._must_be_stable)

        result = self.find_result(True, self._must_be_stable)
        if result is None:
            log.debug("No successful analysis result found, using previous result")
            return self.previous_action()
        return result

    def reference(self) -> Run | None:
        """The reference run, or None.

        The strategy's pick must also have finished better than
        ``FAILURE`` on its own, even when the strategy already filtered on
        stability.
        """
        result = self.reference_action()
        if result is not None:
            run = result.run
            if self.has_valid_result(run):
                return run
        return None

    def has_reference(self) -> bool:
        return self.reference() is not None

    def issues(self) -> IssueContainer:
        """Issues of the reference result, or an empty container."""
        result = self.reference_action()
        if result is not None:
            return result.issues
        return IssueContainer()


def _as_selector(selector: ResultSelector | str) -> ResultSelector:
    if isinstance(selector, str):
        return ToolResultSelector(selector)
    return selector


def create_history(run: Run, selector: ResultSelector | str) -> BuildHistory:
    """Create a :class:`BuildHistory` starting at *run*.

    *selector* is either a result selector or the name of an analysis tool.
    """
    return BuildHistory(run, _as_selector(selector))


def create_reference_finder(
    run: Run,
    selector: ResultSelector | str,
    use_previous_build_as_reference: bool,
    use_stable_build_as_reference: bool,
) -> ReferenceFinder:
    """Create the :class:`ReferenceFinder` the two flags ask for.

    Args:
        run: The baseline run.
        selector: A result selector, or the name of an analysis tool.
        use_previous_build_as_reference: Use the ``PREVIOUS_BUILD``
            strategy instead of ``STABLE_PLUGIN``.
        use_stable_build_as_reference: Only consider stable runs.
    """
    return ReferenceFinder(
        run,
        _as_selector(selector),
        ReferenceStrategy.from_flags(use_previous_build_as_reference),
        use_stable_build_as_reference,
    )
