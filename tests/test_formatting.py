"""Tests for trendref.formatting."""

import unittest
from datetime import datetime, timezone

from trendref.formatting import format_delta, format_status, format_table, format_timestamp
from trendref.status import BuildStatus


class TestFormatStatus(unittest.TestCase):
    def test_success(self) -> None:
        self.assertEqual(format_status(BuildStatus.SUCCESS), "✓ SUCCESS")

    def test_failure(self) -> None:
        self.assertEqual(format_status(BuildStatus.FAILURE), "✗ FAILURE")

    def test_running(self) -> None:
        self.assertEqual(format_status(None), "⏱ RUNNING")

    def test_every_status_has_icon(self) -> None:
        for status in BuildStatus:
            self.assertTrue(format_status(status).endswith(status.name))


class TestFormatDelta(unittest.TestCase):
    def test_signs(self) -> None:
        self.assertEqual(format_delta(3), "+3")
        self.assertEqual(format_delta(-2), "-2")
        self.assertEqual(format_delta(0), "0")


class TestFormatTimestamp(unittest.TestCase):
    def test_format(self) -> None:
        ts = datetime(2026, 10, 17, 9, 5, 3, tzinfo=timezone.utc)
        self.assertEqual(format_timestamp(ts), "2026-10-17 09:05:03")


class TestFormatTable(unittest.TestCase):
    def test_alignment(self) -> None:
        out = format_table(["Run", "Issues"], [["build-1", "7"], ["b2", "12"]], right_align={1})
        self.assertEqual(
            out.splitlines(),
            [
                "  Run      Issues",
                "  build-1       7",
                "  b2           12",
            ],
        )

    def test_short_rows_padded(self) -> None:
        out = format_table(["A", "B"], [["x"]], indent=0)
        self.assertEqual(out.splitlines(), ["A  B", "x"])

    def test_no_headers(self) -> None:
        self.assertEqual(format_table([], [["x"]]), "")


if __name__ == "__main__":
    unittest.main()
