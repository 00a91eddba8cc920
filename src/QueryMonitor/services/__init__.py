"""Monitor service layer for QueryMonitor.

Provides the `Monitor` and a factory wiring it from configuration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from QueryMonitor.core.analysis import NumericFieldConfig, create_analyzer
from QueryMonitor.core.documents import DocumentTermExtractor
from QueryMonitor.extraction import create_weightor
from QueryMonitor.parsing import LuceneQueryParser
from QueryMonitor.presearcher import build_presearcher
from QueryMonitor.services.monitor import Monitor

if TYPE_CHECKING:
    from QueryMonitor.config import AppConfig
    from QueryMonitor.storage.queries import QueryStore


def create_monitor(config: AppConfig, store: QueryStore | None = None) -> Monitor:
    """Create a monitor with the configured parser, presearcher and weighting.

    The parser and the document extractor share one analyzer and one numeric
    field configuration.

    Args:
        config: Application configuration.
        store: Optional query store for write-through persistence.

    Returns:
        Configured Monitor instance with no queries registered.
    """
    analyzer = create_analyzer(config.parser.analyzer, lowercase=config.parser.lowercase)
    numeric_fields = NumericFieldConfig(config.parser.numeric_fields)
    parser = LuceneQueryParser(
        default_field=config.parser.default_field,
        analyzer=analyzer,
        numeric_fields=numeric_fields,
    )
    return Monitor(
        parser,
        build_presearcher(config.presearcher.type, filter_field=config.presearcher.filter_field),
        weightor=create_weightor(config.weighting),
        document_extractor=DocumentTermExtractor(analyzer=analyzer, numeric_fields=numeric_fields),
        store=store,
    )


__all__ = ["Monitor", "create_monitor"]
