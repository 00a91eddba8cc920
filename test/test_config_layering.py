"""Tests for layered config parsing and validation."""

import sys
import tempfile
import unittest
from copy import deepcopy
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from QueryMonitor.config import load_config, load_config_with_defaults, merge_config_dicts, parse_config_dict
from QueryMonitor.extraction import FieldWeightNorm, TokenLengthNorm, create_weightor
from QueryMonitor.matchers import ParallelMatcher, SimpleMatcher, create_matcher_factory
from QueryMonitor.presearcher import TermFilteredPresearcher
from QueryMonitor.services import create_monitor


def _base_raw_config() -> dict:
    return {
        "log": {"level": "info", "file": None},
        "parser": {
            "default_field": "body",
            "analyzer": "standard",
            "lowercase": False,
            "numeric_fields": {"age": "int"},
        },
        "presearcher": {"type": "field_term", "filter_field": None},
        "weighting": {
            "combine": "sum",
            "token_length": {"enabled": True, "a": 3.0, "k": 0.3},
            "field_weights": {"title": 2},
            "term_weights": {},
        },
        "matcher": {"type": "simple", "max_workers": 4},
        "storage": {"enabled": False, "db_path": "database/queries.db"},
        "queries": [
            {"id": "q1", "query": "body:python", "metadata": {"lang": "en"}},
            {"id": 2, "query": "age:3"},
        ],
    }


class TestConfigLayering(unittest.TestCase):
    def test_parse_success_nested_access(self) -> None:
        cfg = parse_config_dict(_base_raw_config())
        self.assertEqual(cfg.log.level, "INFO")
        self.assertEqual(cfg.parser.default_field, "body")
        self.assertEqual(dict(cfg.parser.numeric_fields), {"age": "int"})
        self.assertEqual(cfg.presearcher.type, "field_term")
        self.assertIsNone(cfg.presearcher.filter_field)
        self.assertEqual(dict(cfg.weighting.field_weights), {"title": 2.0})
        self.assertEqual(cfg.matcher.max_workers, 4)
        self.assertEqual([query.id for query in cfg.queries], ["q1", "2"])
        self.assertEqual(dict(cfg.queries[0].metadata), {"lang": "en"})

    def test_optional_sections(self) -> None:
        raw = _base_raw_config()
        del raw["weighting"]
        del raw["queries"]
        cfg = parse_config_dict(raw)
        self.assertEqual(cfg.weighting.combine, "sum")
        self.assertTrue(cfg.weighting.token_length_enabled)
        self.assertEqual(cfg.queries, ())

    def test_missing_required_key_error_contains_path(self) -> None:
        raw = _base_raw_config()
        del raw["matcher"]["type"]
        with self.assertRaisesRegex(ValueError, "matcher.type"):
            parse_config_dict(raw)
        raw = _base_raw_config()
        del raw["storage"]
        with self.assertRaisesRegex(ValueError, "storage"):
            parse_config_dict(raw)

    def test_type_errors_contain_path(self) -> None:
        cases = [
            (("log", "file"), 7, "log.file"),
            (("matcher", "max_workers"), "4", "matcher.max_workers"),
            (("parser", "numeric_fields"), ["age"], "parser.numeric_fields"),
            (("weighting", "field_weights"), {"title": "heavy"}, "weighting.field_weights.title"),
        ]
        for (section, key), value, path in cases:
            with self.subTest(path=path):
                raw = _base_raw_config()
                raw[section][key] = value
                with self.assertRaisesRegex(TypeError, path):
                    parse_config_dict(raw)

    def test_value_errors(self) -> None:
        cases = [
            (("log", "level"), "LOUD", "log.level"),
            (("parser", "analyzer"), "snowball", "parser.analyzer"),
            (("parser", "numeric_fields"), {"age": "decimal"}, "parser.numeric_fields.age"),
            (("presearcher", "type"), "bloom", "presearcher.type"),
            (("weighting", "combine"), "median", "weighting.combine"),
            (("matcher", "type"), "gpu", "matcher.type"),
            (("matcher", "max_workers"), 0, "matcher.max_workers"),
            (("storage", "db_path"), "  ", "storage.db_path"),
        ]
        for (section, key), value, path in cases:
            with self.subTest(path=path):
                raw = _base_raw_config()
                raw[section][key] = value
                with self.assertRaisesRegex(ValueError, path):
                    parse_config_dict(raw)

    def test_duplicate_query_ids_rejected(self) -> None:
        raw = _base_raw_config()
        raw["queries"].append({"id": "q1", "query": "body:again"})
        with self.assertRaisesRegex(ValueError, "duplicate id: q1"):
            parse_config_dict(raw)

    def test_filter_field_cannot_be_numeric(self) -> None:
        raw = _base_raw_config()
        raw["presearcher"]["filter_field"] = "age"
        with self.assertRaisesRegex(ValueError, "filter_field"):
            parse_config_dict(raw)

    def test_merge_is_deep(self) -> None:
        base = _base_raw_config()
        merged = merge_config_dicts(base, {"matcher": {"type": "parallel"}, "queries": []})
        self.assertEqual(merged["matcher"], {"type": "parallel", "max_workers": 4})
        self.assertEqual(merged["queries"], [])
        self.assertEqual(base["matcher"]["type"], "simple")

    def test_load_with_defaults_merges_override(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            default_path = Path(tmpdir) / "default.yml"
            override_path = Path(tmpdir) / "custom.yml"
            default_path.write_text((REPO_ROOT / "config" / "default.yml").read_text(encoding="utf-8"), encoding="utf-8")
            override_path.write_text("presearcher:\n  type: term\nmatcher:\n  type: parallel\n", encoding="utf-8")

            cfg = load_config_with_defaults(override_path, default_path=default_path)
            self.assertEqual(cfg.presearcher.type, "term")
            self.assertEqual(cfg.matcher.type, "parallel")
            self.assertEqual(cfg.parser.analyzer, "standard")

            self.assertEqual(load_config(default_path).presearcher.type, "field_term")

    def test_shipped_default_config_is_valid(self) -> None:
        cfg = load_config(REPO_ROOT / "config" / "default.yml")
        self.assertFalse(cfg.storage.enabled)


class TestFactoriesFromConfig(unittest.TestCase):
    def test_weightor_from_config(self) -> None:
        raw = _base_raw_config()
        raw["weighting"]["term_weights"] = {"the": 0.1}
        weightor = create_weightor(parse_config_dict(raw).weighting)
        self.assertIsInstance(weightor.norms[0], TokenLengthNorm)
        self.assertIsInstance(weightor.norms[1], FieldWeightNorm)
        self.assertEqual(len(weightor.norms), 3)

    def test_matcher_factory_from_config(self) -> None:
        raw = _base_raw_config()
        self.assertIs(create_matcher_factory(parse_config_dict(raw).matcher), SimpleMatcher)
        raw = deepcopy(raw)
        raw["matcher"]["type"] = "parallel"
        self.assertIsInstance(create_matcher_factory(parse_config_dict(raw).matcher)(), ParallelMatcher)

    def test_monitor_from_config(self) -> None:
        raw = _base_raw_config()
        raw["presearcher"]["type"] = "term"
        cfg = parse_config_dict(raw)
        monitor = create_monitor(cfg)
        self.assertIsInstance(monitor.presearcher, TermFilteredPresearcher)
        report = monitor.update(cfg.queries)
        self.assertTrue(report.ok)
        self.assertEqual(monitor.parser.parse("Python"), monitor.parser.parse("body:python"))


if __name__ == "__main__":
    unittest.main()
