"""Command-line interface for trendref.

Provides the main CLI entry point with ``previous``, ``reference`` and
``history`` subcommands, all reading a results directory through
:class:`trendref.store.HistoryStore`.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import click
from click.core import ParameterSource

from trendref import __version__
from trendref.config import config_from_dict, load_config, validate_config
from trendref.formatting import format_delta, format_status, format_table, format_timestamp
from trendref.history import BuildHistory
from trendref.logging import setup_logging
from trendref.model import IssueContainer, Run, ToolResultSelector
from trendref.reference import ReferenceFinder, create_history
from trendref.store import HistoryStore, StoredRun


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """trendref — find previous and reference runs for trend reports."""


def _logging_options(func: Any) -> Any:
    func = click.option(
        "--log-file",
        type=click.Path(path_type=Path),
        default=None,
        help="Also write DEBUG output to this file.",
    )(func)
    func = click.option("-q", "--quiet", is_flag=True, help="Only show errors.")(func)
    func = click.option("-v", "--verbose", is_flag=True, help="Show traversal decisions.")(func)
    return func


def _get_run(store: HistoryStore, run_id: str) -> StoredRun:
    run = store.get(run_id)
    if run is None:
        raise click.ClickException(f"Run not found in {store.results_dir}: {run_id}")
    return run


def _given(name: str, value: Any) -> Any:
    """*value* if the option was given on the command line, else None."""
    source = click.get_current_context().get_parameter_source(name)
    return value if source is ParameterSource.COMMANDLINE else None


def _run_id(run: Run) -> str:
    return str(getattr(run, "run_id", run))


def _describe(run: Run) -> str:
    return f"{_run_id(run)} ({format_status(run.status)}, {format_timestamp(run.timestamp)})"


# ---------------------------------------------------------------------------
# previous
# ---------------------------------------------------------------------------


@main.command()
@click.option("--run", "run_id", default="latest", show_default=True)
@click.option("--tool", required=True, help="Analysis tool whose results to follow.")
@click.option("--stable", is_flag=True, help="Only accept runs that succeeded.")
@click.option(
    "--results-dir",
    type=click.Path(path_type=Path),
    default=Path("results"),
    show_default=True,
)
@_logging_options
def previous(
    run_id: str,
    tool: str,
    stable: bool,
    results_dir: Path,
    verbose: bool,
    quiet: bool,
    log_file: Path | None,
) -> None:
    """Show the run holding the previous result of TOOL."""
    setup_logging(verbose=verbose, quiet=quiet, log_file=log_file)

    run = _get_run(HistoryStore(results_dir), run_id)
    history = create_history(run, tool)

    if stable:
        result = history.previous_action(must_be_stable=True)
    elif history.is_empty():
        result = None
    else:
        result = history.previous_result()

    if result is None:
        raise click.ClickException(f"No previous {tool} result before run {run.run_id}")

    click.echo(f"Baseline: {_describe(run)}")
    click.echo(f"Previous: {_describe(result.run)}")
    click.echo(f"Issues:   {len(result.issues)}")


# ---------------------------------------------------------------------------
# reference
# ---------------------------------------------------------------------------


@main.command()
@click.option("--run", "run_id", default="latest", show_default=True)
@click.option("--tool", default=None, help="Analysis tool whose results to follow.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="YAML file with reference settings.",
)
@click.option(
    "--use-previous/--no-use-previous",
    "use_previous",
    default=False,
    help="Use the previous qualifying run instead of the last successful analysis.",
)
@click.option(
    "--use-stable/--no-use-stable",
    "use_stable",
    default=False,
    help="Only consider runs that succeeded.",
)
@click.option("--results-dir", type=click.Path(path_type=Path), default=None)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["text", "json"]),
    default="text",
    show_default=True,
)
@_logging_options
def reference(
    run_id: str,
    tool: str | None,
    config_path: Path | None,
    use_previous: bool,
    use_stable: bool,
    results_dir: Path | None,
    fmt: str,
    verbose: bool,
    quiet: bool,
    log_file: Path | None,
) -> None:
    """Show the reference run for a baseline run and the issue trend."""
    setup_logging(verbose=verbose, quiet=quiet, log_file=log_file)

    try:
        data = load_config(config_path) if config_path is not None else {}
        config = config_from_dict(
            data,
            cli_overrides={
                "tool": tool,
                "use_previous_build_as_reference": _given("use_previous", use_previous),
                "use_stable_build_as_reference": _given("use_stable", use_stable),
                "results_dir": results_dir,
            },
        )
    except (OSError, ValueError) as exc:
        raise click.UsageError(str(exc)) from exc

    errors = validate_config(config)
    if errors:
        raise click.UsageError("\n".join(f"{e.field}: {e.message}" for e in errors))

    run = _get_run(HistoryStore(config.results_dir), run_id)
    finder = ReferenceFinder.from_config(run, config.tool, config)

    baseline_result = finder.baseline_result()
    current = baseline_result.issues if baseline_result is not None else IssueContainer()
    ref_run = finder.reference()
    ref_issues = finder.issues()
    new = current.new_since(ref_issues)
    fixed = current.fixed_since(ref_issues)

    if fmt == "json":
        payload: dict[str, Any] = {
            "baseline": run.run_id,
            "tool": config.tool,
            "strategy": config.strategy.value,
            "must_be_stable": config.use_stable_build_as_reference,
            "reference": _run_id(ref_run) if ref_run is not None else None,
            "issues": len(current),
            "reference_issues": len(ref_issues),
            "new": len(new),
            "fixed": len(fixed),
        }
        click.echo(json.dumps(payload, indent=2))
        return

    click.echo(f"Baseline:  {_describe(run)}")
    strategy = config.strategy.value
    if config.use_stable_build_as_reference:
        strategy += " (stable only)"
    click.echo(f"Strategy:  {strategy}")
    if ref_run is not None:
        click.echo(f"Reference: {_describe(ref_run)}")
    else:
        click.echo("Reference: none")
    click.echo(
        f"Issues:    {len(current)} ({format_delta(len(current) - len(ref_issues))}"
        f" vs reference)"
    )
    click.echo(f"New:       {len(new)}")
    click.echo(f"Fixed:     {len(fixed)}")


# ---------------------------------------------------------------------------
# history
# ---------------------------------------------------------------------------


@main.command("history")
@click.option("--tool", required=True, help="Analysis tool whose results to show.")
@click.option("--limit", type=int, default=None, help="Show at most this many runs.")
@click.option(
    "--results-dir",
    type=click.Path(path_type=Path),
    default=Path("results"),
    show_default=True,
)
@_logging_options
def history_cmd(
    tool: str,
    limit: int | None,
    results_dir: Path,
    verbose: bool,
    quiet: bool,
    log_file: Path | None,
) -> None:
    """List runs newest first, with the TOOL result of each."""
    setup_logging(verbose=verbose, quiet=quiet, log_file=log_file)

    store = HistoryStore(results_dir)
    runs = store.list_runs()
    if limit is not None:
        if limit < 1:
            raise click.UsageError("--limit must be at least 1")
        runs = runs[:limit]
    if not runs:
        click.echo("No runs found.")
        return

    walker = BuildHistory(runs[0], ToolResultSelector(tool))
    rows: list[list[str]] = []
    for run in runs:
        result = walker.result_for(run)
        valid = walker.has_valid_result(run, False, result)
        rows.append(
            [
                run.run_id,
                format_status(run.status),
                format_status(result.plugin_status) if result is not None else "-",
                str(len(result.issues)) if result is not None else "-",
                "yes" if valid and result is not None else "no",
            ]
        )

    click.echo(
        format_table(
            ["Run", "Status", tool, "Issues", "Eligible"],
            rows,
            right_align={3},
        )
    )
