"""Text formatting helpers for the trendref CLI."""

from __future__ import annotations

from datetime import datetime

from trendref.status import BuildStatus

_STATUS_ICONS: dict[BuildStatus, str] = {
    BuildStatus.SUCCESS: "✓",
    BuildStatus.UNSTABLE: "⚠",
    BuildStatus.FAILURE: "✗",
    BuildStatus.NOT_BUILT: "⊘",
    BuildStatus.ABORTED: "⊘",
}


def format_status(status: BuildStatus | None) -> str:
    """Icon plus upper-case name, e.g. ``'✓ SUCCESS'``.

    A run without a status is still running.
    """
    if status is None:
        return "⏱ RUNNING"
    return f"{_STATUS_ICONS[status]} {status.name}"


def format_delta(delta: int) -> str:
    """Signed count: ``'+3'``, ``'-1'``, ``'0'``."""
    if delta > 0:
        return f"+{delta}"
    return str(delta)


def format_timestamp(ts: datetime) -> str:
    return ts.strftime("%Y-%m-%d %H:%M:%S")


def format_table(
    headers: list[str],
    rows: list[list[str]],
    *,
    right_align: set[int] | None = None,
    indent: int = 2,
) -> str:
    """Format rows as an aligned text table.

    Column widths come from the content. Columns whose index is in
    *right_align* are right-aligned; short rows are padded.
    """
    if not headers:
        return ""

    ncols = len(headers)
    right = right_align or set()
    cells = [list(headers)] + [(list(row) + [""] * ncols)[:ncols] for row in rows]
    widths = [max(len(line[ci]) for line in cells) for ci in range(ncols)]

    prefix = " " * indent
    lines: list[str] = []
    for line in cells:
        parts = [
            line[ci].rjust(widths[ci]) if ci in right else line[ci].ljust(widths[ci])
            for ci in range(ncols)
        ]
        lines.append(prefix + "  ".join(parts).rstrip())
    return "\n".join(lines)
