"""Tests for the monitor: registration, matching and failure isolation."""

from __future__ import annotations

import sys
import tempfile
import threading
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from QueryMonitor.core.analysis import StandardAnalyzer
from QueryMonitor.core.documents import DocumentTermExtractor
from QueryMonitor.core.errors import UpdateError
from QueryMonitor.core.models import InputDocument, MonitorQuery
from QueryMonitor.extraction import QueryAnalyzer
from QueryMonitor.matchers import CandidateMatcher, ParallelMatcher, SimpleMatcher
from QueryMonitor.parsing import LuceneQueryParser
from QueryMonitor.presearcher import FieldTermFilteredPresearcher, MatchAllPresearcher
from QueryMonitor.services import Monitor
from QueryMonitor.storage import DatabaseManager, SqliteQueryStore


class _FailingOnMatcher(CandidateMatcher):
    """Raises for one query id, delegates to exact matching otherwise."""

    def __init__(self, failing_id: str) -> None:
        self.failing_id = failing_id
        self._inner = SimpleMatcher()

    def match_query(self, query, document):
        if query.id == self.failing_id:
            raise RuntimeError("boom")
        return self._inner.match_query(query, document)


class _BrokenAnalyzer(QueryAnalyzer):
    def analyze(self, node, weightor=None):
        raise RuntimeError("extraction bug")


def _monitor(**kwargs) -> Monitor:
    parser = LuceneQueryParser(default_field="text", numeric_fields={"age": "int", "somethingelse": "int"})
    return Monitor(parser, kwargs.pop("presearcher", FieldTermFilteredPresearcher()), **kwargs)


class TestMonitorEndToEnd(unittest.TestCase):
    def test_numeric_query_matches_and_reregistration(self) -> None:
        monitor = _monitor()
        doc = InputDocument(id="d1", fields={"age": 1, "somethingelse": 2})

        report = monitor.update(MonitorQuery(id="q1", query="age:1"))
        self.assertEqual(report.succeeded, ("q1",))
        self.assertTrue(report.ok)
        self.assertEqual(monitor.presearcher.select(monitor.document_extractor.analyze(doc).terms), {"q1"})
        matches = monitor.match(doc)
        self.assertIn("q1", matches.matches_for("d1"))
        self.assertEqual(matches.match_count("d1"), 1)

        monitor.update(MonitorQuery(id="q1", query="(age:1 somethingelse:2)"))
        self.assertEqual(monitor.query_count, 1)
        self.assertIn("q1", monitor.match(doc).matches_for("d1"))

    def test_candidates_that_do_not_match_are_rejected(self) -> None:
        monitor = _monitor()
        monitor.update(
            MonitorQuery(id="both", query="+text:quick +text:fox"),
            MonitorQuery(id="phrase", query='"fox quick"'),
            MonitorQuery(id="not_dog", query="-text:dog"),
        )
        result = monitor.match(InputDocument(id="d", fields={"text": "the quick fox jumps"}))
        doc = result.matches_for("d")
        self.assertEqual(set(doc.matches), {"both", "not_dog"})
        self.assertIn("phrase", doc.candidates)
        self.assertEqual(result.queries_run, len(doc.candidates))
        self.assertGreaterEqual(result.presearch_time_ms, 0.0)
        self.assertGreaterEqual(result.match_time_ms, 0.0)

    def test_match_batch(self) -> None:
        monitor = _monitor()
        monitor.update(MonitorQuery(id="q1", query="text:alpha"), MonitorQuery(id="q2", query="text:beta"))
        result = monitor.match_batch(
            [
                InputDocument(id="a", fields={"text": "alpha"}),
                InputDocument(id="b", fields={"text": "beta gamma"}),
                InputDocument(id="c", fields={"text": "gamma"}),
            ]
        )
        self.assertEqual(set(result.matches_for("a").matches), {"q1"})
        self.assertEqual(set(result.matches_for("b").matches), {"q2"})
        self.assertEqual(result.match_count("c"), 0)
        self.assertEqual([doc.document_id for doc in result], ["a", "b", "c"])

    def test_parallel_matcher_agrees_with_simple(self) -> None:
        monitor = _monitor(presearcher=MatchAllPresearcher())
        monitor.update([MonitorQuery(id=f"q{i}", query=f"text:t{i % 5}") for i in range(40)])
        doc = InputDocument(id="d", fields={"text": "t1 t3"})
        simple = monitor.match(doc).matches_for("d")
        parallel = monitor.match(doc, ParallelMatcher.factory(SimpleMatcher, max_workers=3)).matches_for("d")
        self.assertEqual(dict(simple.matches), dict(parallel.matches))
        self.assertEqual(len(simple), 16)


class TestMonitorUpdates(unittest.TestCase):
    def test_partial_batch_failure(self) -> None:
        monitor = _monitor()
        report = monitor.update(
            MonitorQuery(id="good", query="text:ok"),
            MonitorQuery(id="bad", query="text:(unbalanced"),
        )
        self.assertEqual(report.succeeded, ("good",))
        self.assertEqual(set(report.failures), {"bad"})
        self.assertEqual(report.failures["bad"].kind, "parse")
        self.assertFalse(report.ok)
        self.assertEqual(monitor.query_ids(), ["good"])
        with self.assertRaises(UpdateError) as ctx:
            report.raise_for_errors()
        self.assertIn("bad", ctx.exception.failures)

    def test_failed_reregistration_keeps_previous_version(self) -> None:
        monitor = _monitor()
        monitor.update(MonitorQuery(id="q1", query="text:old"))
        report = monitor.update(MonitorQuery(id="q1", query="text:(new"))
        self.assertIn("q1", report.failures)
        self.assertEqual(monitor.get_query("q1").query, "text:old")

    def test_later_duplicate_wins(self) -> None:
        monitor = _monitor()
        report = monitor.update(
            MonitorQuery(id="q1", query="text:first"),
            MonitorQuery(id="q1", query="text:second"),
        )
        self.assertEqual(report.succeeded, ("q1",))
        self.assertEqual(monitor.get_query("q1").query, "text:second")
        self.assertEqual(monitor.match(InputDocument(id="d", fields={"text": "first"})).match_count("d"), 0)

        report = monitor.update(
            MonitorQuery(id="q2", query="text:fine"),
            MonitorQuery(id="q2", query="text:(broken"),
        )
        self.assertEqual(report.succeeded, ())
        self.assertIn("q2", report.failures)
        self.assertIsNone(monitor.get_query("q2"))

    def test_extraction_failure_is_reported(self) -> None:
        monitor = _monitor(analyzer=_BrokenAnalyzer())
        report = monitor.update(MonitorQuery(id="q1", query="text:a"))
        self.assertEqual(report.failures["q1"].kind, "extraction")
        self.assertEqual(monitor.query_count, 0)

    def test_delete_and_clear(self) -> None:
        monitor = _monitor()
        monitor.update(MonitorQuery(id="q1", query="text:a"), MonitorQuery(id="q2", query="text:a"))
        monitor.delete("q1", "unknown")
        self.assertEqual(monitor.query_ids(), ["q2"])
        self.assertEqual(set(monitor.match(InputDocument(id="d", fields={"text": "a"})).matches_for("d").matches), {"q2"})
        monitor.clear()
        self.assertEqual(monitor.query_count, 0)
        self.assertEqual(monitor.match(InputDocument(id="d", fields={"text": "a"})).match_count("d"), 0)

    def test_metadata_is_read_only(self) -> None:
        query = MonitorQuery(id="q1", query="text:a", metadata={"lang": "en"})
        with self.assertRaises(TypeError):
            query.metadata["lang"] = "de"  # type: ignore[index]
        with self.assertRaises(ValueError):
            MonitorQuery(id="", query="text:a")


class TestMonitorFilterField(unittest.TestCase):
    def test_filter_value_is_analyzed_like_the_document(self) -> None:
        analyzer = StandardAnalyzer()
        monitor = Monitor(
            LuceneQueryParser(analyzer=analyzer),
            FieldTermFilteredPresearcher(filter_field="lang"),
            document_extractor=DocumentTermExtractor(analyzer=analyzer),
        )
        monitor.update(
            MonitorQuery(id="british", query="text:hello", metadata={"lang": "en-GB"}),
            MonitorQuery(id="english", query="text:hello", metadata={"lang": "EN"}),
            MonitorQuery(id="everyone", query="text:hello"),
        )

        british = monitor.match(InputDocument(id="d", fields={"text": "hello", "lang": "en-GB"})).matches_for("d")
        self.assertEqual(set(british.matches), {"british", "english", "everyone"})

        english = monitor.match(InputDocument(id="d", fields={"text": "hello", "lang": "en"})).matches_for("d")
        self.assertEqual(set(english.matches), {"english", "everyone"})

        german = monitor.match(InputDocument(id="d", fields={"text": "hello", "lang": "de"})).matches_for("d")
        self.assertEqual(set(german.matches), {"everyone"})
        self.assertEqual(monitor.get_query("british").metadata["lang"], "en-GB")


class TestMonitorMatchFailures(unittest.TestCase):
    def test_match_failure_is_isolated(self) -> None:
        monitor = _monitor()
        monitor.update(MonitorQuery(id="ok", query="text:a"), MonitorQuery(id="broken", query="text:a"))
        result = monitor.match(InputDocument(id="d", fields={"text": "a"}), lambda: _FailingOnMatcher("broken"))
        doc = result.matches_for("d")
        self.assertEqual(set(doc.matches), {"ok"})
        self.assertEqual(set(doc.errors), {"broken"})
        self.assertIsInstance(doc.errors["broken"].error, RuntimeError)
        self.assertEqual(set(result.errors), {("d", "broken")})

    def test_parallel_slice_failure_is_isolated(self) -> None:
        monitor = _monitor()
        monitor.update(MonitorQuery(id="ok", query="text:a"), MonitorQuery(id="broken", query="text:a"))
        factory = ParallelMatcher.factory(lambda: _FailingOnMatcher("broken"), max_workers=2)
        doc = monitor.match(InputDocument(id="d", fields={"text": "a"}), factory).matches_for("d")
        self.assertEqual(set(doc.matches), {"ok"})
        self.assertEqual(set(doc.errors), {"broken"})


class TestMonitorConcurrency(unittest.TestCase):
    def test_readers_see_whole_batches(self) -> None:
        monitor = _monitor()
        doc = InputDocument(id="d", fields={"text": "shared"})
        batch_size = 20
        rounds = 30
        observed: list[int] = []
        done = threading.Event()

        def writer() -> None:
            for round_no in range(rounds):
                monitor.update([MonitorQuery(id=f"r{round_no}_{i}", query="text:shared") for i in range(batch_size)])
            done.set()

        def reader() -> None:
            while not done.is_set():
                observed.append(monitor.match(doc).match_count("d"))

        threads = [threading.Thread(target=writer), threading.Thread(target=reader)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertTrue(all(count % batch_size == 0 for count in observed))
        self.assertEqual(monitor.match(doc).match_count("d"), batch_size * rounds)


class TestMonitorStore(unittest.TestCase):
    def test_write_through_and_load(self) -> None:
        tmp_db = Path(tempfile.mkdtemp()) / "queries.db"
        manager = DatabaseManager(tmp_db)
        try:
            store = SqliteQueryStore(manager)
            monitor = _monitor(store=store)
            monitor.update(
                MonitorQuery(id="q1", query="text:a", metadata={"lang": "en"}),
                MonitorQuery(id="q2", query="text:b"),
                MonitorQuery(id="bad", query="text:(c"),
            )
            monitor.delete("q2")
            self.assertEqual([query.id for query in store.load_all()], ["q1"])

            restored = _monitor(store=store)
            report = restored.load()
            self.assertEqual(report.succeeded, ("q1",))
            self.assertEqual(dict(restored.get_query("q1").metadata), {"lang": "en"})
            self.assertEqual(restored.match(InputDocument(id="d", fields={"text": "a"})).match_count("d"), 1)

            restored.clear()
            self.assertEqual(store.load_all(), [])
        finally:
            manager.close()

    def test_load_without_store_raises(self) -> None:
        with self.assertRaises(RuntimeError):
            _monitor().load()


if __name__ == "__main__":
    unittest.main()
