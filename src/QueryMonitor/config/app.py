"""Application config orchestration and YAML loading entrypoints."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from QueryMonitor.config.matcher import MatcherConfig, check_matcher, load_matcher
from QueryMonitor.config.parser import ParserConfig, check_parser, load_parser
from QueryMonitor.config.presearcher import PresearcherConfig, check_presearcher, load_presearcher
from QueryMonitor.config.queries import check_queries, load_queries
from QueryMonitor.config.log import LogConfig, check_log, load_log
from QueryMonitor.config.storage import StorageConfig, check_storage, load_storage
from QueryMonitor.config.weighting import WeightingConfig, check_weighting, load_weighting
from QueryMonitor.core.models import MonitorQuery


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application root configuration."""

    log: LogConfig
    parser: ParserConfig
    presearcher: PresearcherConfig
    weighting: WeightingConfig
    matcher: MatcherConfig
    storage: StorageConfig
    queries: tuple[MonitorQuery, ...] = ()


def parse_config_dict(raw: Mapping[str, Any]) -> AppConfig:
    """Parse normalized mapping into AppConfig."""
    log = load_log(raw)
    parser = load_parser(raw)
    presearcher = load_presearcher(raw)
    weighting = load_weighting(raw)
    matcher = load_matcher(raw)
    storage = load_storage(raw)
    queries = load_queries(raw)

    check_log(log)
    check_parser(parser)
    check_presearcher(presearcher)
    check_weighting(weighting)
    check_matcher(matcher)
    check_storage(storage)
    check_queries(queries)

    config = AppConfig(
        log=log,
        parser=parser,
        presearcher=presearcher,
        weighting=weighting,
        matcher=matcher,
        storage=storage,
        queries=queries,
    )
    check_cross_domain(config)
    return config


def load_config(path: Path) -> AppConfig:
    """Load YAML config file without default merge."""
    return load_config_with_defaults(path, default_path=path)


def load_config_with_defaults(
    config_path: Path, default_path: Path = Path("config/default.yml")
) -> AppConfig:
    """Load config by merging defaults and optional override."""
    base = parse_yaml(default_path.read_text(encoding="utf-8"))
    if config_path == default_path:
        return parse_config_dict(base)
    override = parse_yaml(config_path.read_text(encoding="utf-8"))
    merged = merge_config_dicts(base, override)
    return parse_config_dict(merged)


def check_cross_domain(config: AppConfig) -> None:
    """Validate cross-domain constraints."""
    filter_field = config.presearcher.filter_field
    if filter_field is not None and filter_field in config.parser.numeric_fields:
        raise ValueError("presearcher.filter_field must not be a numeric field")


def parse_yaml(text: str) -> dict[str, Any]:
    """Parse raw YAML text into a mapping."""
    data = yaml.safe_load(text) or {}
    if not isinstance(data, Mapping):
        raise ValueError("Config root must be a mapping/object")
    return dict(data)


def merge_config_dicts(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Deep-merge two config mappings; lists and scalars are replaced."""
    merged: dict[str, Any] = dict(base)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], Mapping) and isinstance(value, Mapping):
            merged[key] = merge_config_dicts(merged[key], value)
        else:
            merged[key] = value
    return merged
