"""Tests for trendref.store — the file-backed run history."""

from __future__ import annotations

import tempfile
import unittest
from datetime import datetime, timezone
from pathlib import Path

from store_test_helpers import make_result, write_run

from trendref.history import BuildHistory
from trendref.model import ToolResultSelector
from trendref.status import BuildStatus
from trendref.store import HistoryStore, RunMeta, parse_timestamp


class StoreTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.results_dir = Path(self._tmp.name) / "results"
        self.results_dir.mkdir()

    def tearDown(self) -> None:
        self._tmp.cleanup()


class TestHistoryStore(StoreTestCase):
    def test_empty_dir(self) -> None:
        store = HistoryStore(self.results_dir)
        self.assertEqual(store.list_runs(), [])
        self.assertIsNone(store.latest())

    def test_missing_dir(self) -> None:
        store = HistoryStore(self.results_dir / "nope")
        self.assertEqual(store.list_runs(), [])

    def test_runs_ordered_by_number(self) -> None:
        write_run(self.results_dir, "build-9", 9)
        write_run(self.results_dir, "build-10", 10)
        write_run(self.results_dir, "build-2", 2)
        store = HistoryStore(self.results_dir)
        self.assertEqual([r.run_id for r in store.list_runs()], ["build-10", "build-9", "build-2"])

    def test_dirs_without_meta_ignored(self) -> None:
        write_run(self.results_dir, "build-1", 1)
        (self.results_dir / "scratch").mkdir()
        store = HistoryStore(self.results_dir)
        self.assertEqual([r.run_id for r in store.list_runs()], ["build-1"])

    def test_get_and_latest(self) -> None:
        write_run(self.results_dir, "build-1", 1)
        write_run(self.results_dir, "build-2", 2)
        store = HistoryStore(self.results_dir)
        self.assertEqual(store.get("latest").run_id, "build-2")  # type: ignore[union-attr]
        self.assertEqual(store.get("build-1").run_id, "build-1")  # type: ignore[union-attr]
        self.assertIsNone(store.get("build-3"))

    def test_previous_links(self) -> None:
        write_run(self.results_dir, "build-1", 1)
        write_run(self.results_dir, "build-2", 2)
        store = HistoryStore(self.results_dir)
        latest = store.latest()
        assert latest is not None
        self.assertEqual(latest.previous.run_id, "build-1")  # type: ignore[union-attr]
        self.assertIsNone(latest.previous.previous)  # type: ignore[union-attr]

    def test_tools(self) -> None:
        write_run(self.results_dir, "build-1", 1, results={"pylint": make_result()})
        write_run(self.results_dir, "build-2", 2, results={"mypy": make_result()})
        store = HistoryStore(self.results_dir)
        self.assertEqual(store.tools(), ["mypy", "pylint"])


class TestStoredRun(StoreTestCase):
    def test_meta(self) -> None:
        write_run(self.results_dir, "build-3", 3, status="UNSTABLE")
        run = HistoryStore(self.results_dir).get("build-3")
        assert run is not None
        self.assertEqual(run.number, 3)
        self.assertIs(run.status, BuildStatus.UNSTABLE)
        self.assertEqual(run.timestamp, datetime(2026, 10, 3, 12, tzinfo=timezone.utc))

    def test_running_status(self) -> None:
        write_run(self.results_dir, "build-1", 1, status=None)
        run = HistoryStore(self.results_dir).get("build-1")
        assert run is not None
        self.assertIsNone(run.status)

    def test_unknown_status_is_treated_as_running(self) -> None:
        write_run(self.results_dir, "build-1", 1, status="exploded")
        with self.assertLogs("trendref.store", level="WARNING"):
            run = HistoryStore(self.results_dir).get("build-1")
        assert run is not None
        self.assertIsNone(run.status)

    def test_result_for(self) -> None:
        write_run(
            self.results_dir,
            "build-1",
            1,
            results={"pylint": make_result("failure", successful=False, issues=["a", "b"])},
        )
        run = HistoryStore(self.results_dir).get("build-1")
        assert run is not None
        result = run.result_for("pylint")
        assert result is not None
        self.assertIs(result.run, run)
        self.assertIs(result.plugin_status, BuildStatus.FAILURE)
        self.assertFalse(result.is_successful)
        self.assertEqual(len(result.issues), 2)
        self.assertIsNone(run.result_for("mypy"))

    def test_result_is_cached(self) -> None:
        write_run(self.results_dir, "build-1", 1, results={"pylint": make_result()})
        run = HistoryStore(self.results_dir).get("build-1")
        assert run is not None
        self.assertIs(run.result_for("pylint"), run.result_for("pylint"))

    def test_unreadable_result(self) -> None:
        run_dir = write_run(self.results_dir, "build-1", 1, results={"pylint": make_result()})
        (run_dir / "analysis" / "pylint.json").write_text("{not json", encoding="utf-8")
        run = HistoryStore(self.results_dir).get("build-1")
        assert run is not None
        with self.assertLogs("trendref.store", level="WARNING"):
            self.assertIsNone(run.result_for("pylint"))

    def test_non_object_result(self) -> None:
        run_dir = write_run(self.results_dir, "build-1", 1, results={"pylint": make_result()})
        (run_dir / "analysis" / "pylint.json").write_text("[1, 2]", encoding="utf-8")
        run = HistoryStore(self.results_dir).get("build-1")
        assert run is not None
        with self.assertLogs("trendref.store", level="WARNING"):
            self.assertIsNone(run.result_for("pylint"))

    def test_corrupt_meta_does_not_break_discovery(self) -> None:
        write_run(self.results_dir, "build-1", 1)
        run_dir = write_run(self.results_dir, "build-2", 2)
        (run_dir / "run_meta.json").write_text("{oops", encoding="utf-8")
        store = HistoryStore(self.results_dir)
        with self.assertLogs("trendref.store", level="WARNING"):
            runs = store.list_runs()
        self.assertEqual([r.run_id for r in runs], ["build-1", "build-2"])
        broken = store.get("build-2")
        assert broken is not None
        self.assertIsNone(broken.number)
        self.assertIsNone(broken.status)

    def test_non_object_meta(self) -> None:
        run_dir = write_run(self.results_dir, "build-1", 1)
        (run_dir / "run_meta.json").write_text("[1]", encoding="utf-8")
        with self.assertLogs("trendref.store", level="WARNING"):
            run = HistoryStore(self.results_dir).get("build-1")
        assert run is not None
        self.assertEqual(run.meta.run_id, "build-1")
        self.assertIsNone(run.status)

    def test_successful_must_be_boolean(self) -> None:
        data = make_result()
        data["successful"] = "false"
        write_run(self.results_dir, "build-1", 1, results={"pylint": data})
        run = HistoryStore(self.results_dir).get("build-1")
        assert run is not None
        with self.assertLogs("trendref.store", level="WARNING") as logs:
            self.assertIsNone(run.result_for("pylint"))
        self.assertIn("successful", logs.output[0])

    def test_successful_false_is_kept(self) -> None:
        write_run(
            self.results_dir, "build-1", 1, results={"pylint": make_result(successful=False)}
        )
        run = HistoryStore(self.results_dir).get("build-1")
        assert run is not None
        result = run.result_for("pylint")
        assert result is not None
        self.assertFalse(result.is_successful)

class TestStoreWithHistory(StoreTestCase):
    def test_walk_over_stored_runs(self) -> None:
        write_run(self.results_dir, "build-1", 1, results={"pylint": make_result()})
        write_run(self.results_dir, "build-2", 2, status="failure")
        write_run(self.results_dir, "build-3", 3, results={"pylint": make_result()})
        store = HistoryStore(self.results_dir)
        history = BuildHistory(store.latest(), ToolResultSelector("pylint"))  # type: ignore[arg-type]
        self.assertEqual(history.previous_result().run.run_id, "build-1")  # type: ignore[attr-defined]


class TestParsing(unittest.TestCase):
    def test_timestamp_zulu(self) -> None:
        self.assertEqual(
            parse_timestamp("2026-10-01T08:30:00Z"),
            datetime(2026, 10, 1, 8, 30, tzinfo=timezone.utc),
        )

    def test_naive_timestamp_is_utc(self) -> None:
        self.assertEqual(parse_timestamp("2026-10-01T08:30:00").tzinfo, timezone.utc)

    def test_missing_timestamp(self) -> None:
        self.assertEqual(parse_timestamp(None).year, 1970)

    def test_bad_timestamp(self) -> None:
        with self.assertLogs("trendref.store", level="WARNING"):
            self.assertEqual(parse_timestamp("yesterday").year, 1970)

    def test_numeric_timestamp(self) -> None:
        with self.assertLogs("trendref.store", level="WARNING"):
            self.assertEqual(parse_timestamp(1696156800).year, 1970)

    def test_numeric_timestamp_in_meta(self) -> None:
        with self.assertLogs("trendref.store", level="WARNING"):
            meta = RunMeta.from_dict({"run_id": "build-1", "timestamp": 1696156800})
        self.assertEqual(meta.timestamp.year, 1970)

    def test_run_meta_defaults(self) -> None:
        meta = RunMeta.from_dict({})
        self.assertEqual(meta.run_id, "")
        self.assertIsNone(meta.number)
        self.assertIsNone(meta.status)


if __name__ == "__main__":
    unittest.main()
