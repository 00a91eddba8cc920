"""Public configuration API for QueryMonitor."""

from __future__ import annotations

from QueryMonitor.config.app import (
    AppConfig,
    check_cross_domain,
    load_config,
    load_config_with_defaults,
    merge_config_dicts,
    parse_config_dict,
)
from QueryMonitor.config.log import LogConfig
from QueryMonitor.config.matcher import MatcherConfig
from QueryMonitor.config.parser import ParserConfig
from QueryMonitor.config.presearcher import PresearcherConfig
from QueryMonitor.config.storage import StorageConfig
from QueryMonitor.config.weighting import WeightingConfig

__all__ = [
    "LogConfig",
    "ParserConfig",
    "PresearcherConfig",
    "WeightingConfig",
    "MatcherConfig",
    "StorageConfig",
    "AppConfig",
    "load_config",
    "load_config_with_defaults",
    "merge_config_dicts",
    "parse_config_dict",
    "check_cross_domain",
]
