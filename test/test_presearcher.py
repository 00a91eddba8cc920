"""Tests for presearcher indexing and candidate selection."""

from __future__ import annotations

import sys
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from QueryMonitor.extraction import QueryAnalyzer
from QueryMonitor.parsing import LuceneQueryParser
from QueryMonitor.presearcher import (
    FieldTermFilteredPresearcher,
    MatchAllPresearcher,
    TermFilteredPresearcher,
    build_presearcher,
    supported_presearcher_names,
)

_PARSER = LuceneQueryParser(default_field="f")
_ANALYZER = QueryAnalyzer()


def _extract(query: str):
    return _ANALYZER.analyze(_PARSER.parse(query))


class TestTermPresearchers(unittest.TestCase):
    def test_term_presearcher_ignores_fields(self) -> None:
        presearcher = TermFilteredPresearcher()
        presearcher.index("q1", _extract("f:foo"))
        self.assertEqual(presearcher.select([("g", "foo")]), {"q1"})
        self.assertEqual(presearcher.select([("f", "bar")]), frozenset())

    def test_field_term_presearcher_requires_the_field(self) -> None:
        presearcher = FieldTermFilteredPresearcher()
        presearcher.index("q1", _extract("f:foo"))
        self.assertEqual(presearcher.select([("g", "foo")]), frozenset())
        self.assertEqual(presearcher.select([("f", "foo")]), {"q1"})

    def test_any_queries_are_always_candidates(self) -> None:
        for presearcher in (TermFilteredPresearcher(), FieldTermFilteredPresearcher()):
            with self.subTest(presearcher=presearcher.name):
                presearcher.index("wild", _extract("f:fo*"))
                presearcher.index("neg", _extract("-f:foo"))
                presearcher.index("q1", _extract("f:foo"))
                self.assertEqual(presearcher.select([]), {"wild", "neg"})
                self.assertEqual(presearcher.select([("f", "foo")]), {"wild", "neg", "q1"})

    def test_disjunction_is_found_through_any_alternative(self) -> None:
        presearcher = FieldTermFilteredPresearcher()
        presearcher.index("q1", _extract("f:foo f:bar"))
        self.assertEqual(presearcher.select([("f", "bar")]), {"q1"})

    def test_reindex_replaces_previous_terms(self) -> None:
        presearcher = FieldTermFilteredPresearcher()
        presearcher.index("q1", _extract("f:foo"))
        presearcher.index("q1", _extract("f:bar"))
        self.assertEqual(presearcher.select([("f", "foo")]), frozenset())
        self.assertEqual(presearcher.select([("f", "bar")]), {"q1"})
        self.assertEqual(len(presearcher.snapshot()), 1)

    def test_reindex_is_idempotent(self) -> None:
        presearcher = FieldTermFilteredPresearcher()
        presearcher.index("q1", _extract("f:foo"))
        first = presearcher.snapshot()
        presearcher.index("q1", _extract("f:foo"))
        second = presearcher.snapshot()
        self.assertEqual(dict(first.postings), dict(second.postings))
        self.assertEqual(first.any_ids, second.any_ids)

    def test_remove(self) -> None:
        presearcher = FieldTermFilteredPresearcher()
        presearcher.index("q1", _extract("f:foo"))
        presearcher.index("q2", _extract("f:fo*"))
        presearcher.remove("q1")
        presearcher.remove("q2")
        presearcher.remove("missing")
        self.assertEqual(presearcher.select([("f", "foo")]), frozenset())
        self.assertEqual(dict(presearcher.snapshot().postings), {})

    def test_commit_publishes_one_version_per_batch(self) -> None:
        presearcher = TermFilteredPresearcher()
        before = presearcher.snapshot().version
        snapshot = presearcher.commit({"q1": (_extract("f:a"), None), "q2": (_extract("f:b"), None)})
        self.assertEqual(snapshot.version, before + 1)
        self.assertIn("q1", snapshot)
        self.assertIn("q2", snapshot)

    def test_commit_removes_before_indexing(self) -> None:
        presearcher = TermFilteredPresearcher()
        presearcher.index("q1", _extract("f:a"))
        snapshot = presearcher.commit({"q1": (_extract("f:b"), None)}, removed=["q1"])
        self.assertIn("q1", snapshot)
        self.assertEqual(presearcher.select([("f", "b")]), {"q1"})

    def test_shared_key_postings_after_mixed_commit(self) -> None:
        presearcher = TermFilteredPresearcher()
        presearcher.commit({"q1": (_extract("f:hot"), None), "q2": (_extract("f:hot"), None)})
        snapshot = presearcher.commit(
            {"q3": (_extract("f:hot"), None), "q2": (_extract("f:cold"), None)},
            removed=["q1"],
        )
        self.assertEqual(snapshot.postings["hot"], {"q3"})
        self.assertEqual(snapshot.postings["cold"], {"q2"})
        presearcher.commit({}, removed=["q3"])
        self.assertNotIn("hot", presearcher.snapshot().postings)

    def test_rebuild_matches_incremental_commits(self) -> None:
        queries = {
            "q1": "f:foo",
            "q2": "+f:foo +f:barbaz",
            "q3": "f:x f:y",
            "q4": "-f:foo",
            "q5": "f:[a TO b]",
        }
        incremental = FieldTermFilteredPresearcher()
        for query_id, text in queries.items():
            incremental.index(query_id, _extract(text))
        incremental.index("q6", _extract("f:gone"))
        incremental.remove("q6")

        rebuilt = FieldTermFilteredPresearcher()
        rebuilt.rebuild({query_id: (_extract(text), None) for query_id, text in queries.items()})

        for terms in ([("f", "foo")], [("f", "barbaz")], [("f", "y")], [("f", "gone")], []):
            with self.subTest(terms=terms):
                self.assertEqual(incremental.select(terms), rebuilt.select(terms))

    def test_snapshot_isolation(self) -> None:
        presearcher = FieldTermFilteredPresearcher()
        presearcher.index("q1", _extract("f:foo"))
        snapshot = presearcher.snapshot()
        presearcher.index("q2", _extract("f:foo"))
        self.assertEqual(presearcher.select([("f", "foo")], index=snapshot), {"q1"})
        self.assertEqual(presearcher.select([("f", "foo")]), {"q1", "q2"})

    def test_clear(self) -> None:
        presearcher = TermFilteredPresearcher()
        presearcher.index("q1", _extract("f:foo"))
        presearcher.index("q2", _extract("*:*"))
        presearcher.clear()
        self.assertEqual(len(presearcher.snapshot()), 0)
        self.assertEqual(presearcher.select([("f", "foo")]), frozenset())


class TestFilterField(unittest.TestCase):
    def test_metadata_restricts_candidates(self) -> None:
        presearcher = FieldTermFilteredPresearcher(filter_field="lang")
        presearcher.index("en_only", _extract("f:foo"), {"lang": "en"})
        presearcher.index("all_langs", _extract("f:foo"))
        presearcher.index("any_en", _extract("*:*"), {"lang": "en"})

        self.assertEqual(presearcher.select([("f", "foo"), ("lang", "de")]), {"all_langs"})
        self.assertEqual(
            presearcher.select([("f", "foo"), ("lang", "en")]),
            {"en_only", "all_langs", "any_en"},
        )
        self.assertEqual(presearcher.select([("f", "foo")]), {"all_langs"})

    def test_multi_token_filter_value_needs_every_token(self) -> None:
        presearcher = FieldTermFilteredPresearcher(filter_field="lang")
        presearcher.index("q1", _extract("f:foo"), {"lang": "en gb"})
        self.assertEqual(presearcher.select([("f", "foo"), ("lang", "en"), ("lang", "gb")]), {"q1"})
        self.assertEqual(presearcher.select([("f", "foo"), ("lang", "en")]), frozenset())

    def test_metadata_is_ignored_without_filter_field(self) -> None:
        presearcher = FieldTermFilteredPresearcher()
        presearcher.index("q1", _extract("f:foo"), {"lang": "en"})
        self.assertEqual(presearcher.select([("f", "foo"), ("lang", "de")]), {"q1"})


class TestMatchAllAndRegistry(unittest.TestCase):
    def test_match_all_selects_everything(self) -> None:
        presearcher = MatchAllPresearcher()
        presearcher.index("q1", _extract("f:foo"))
        presearcher.index("q2", _extract("f:bar"))
        self.assertEqual(presearcher.select([]), {"q1", "q2"})

    def test_registry(self) -> None:
        self.assertEqual(supported_presearcher_names(), ("term", "field_term", "match_all"))
        presearcher = build_presearcher("field_term", filter_field="lang")
        self.assertIsInstance(presearcher, FieldTermFilteredPresearcher)
        self.assertEqual(presearcher.filter_field, "lang")
        with self.assertRaises(ValueError):
            build_presearcher("bloom")


if __name__ == "__main__":
    unittest.main()
