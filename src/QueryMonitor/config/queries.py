"""Queries registered at start-up."""

from __future__ import annotations

from typing import Any, Mapping

from QueryMonitor.config.common import expect_str, expect_str_mapping, get_required_value
from QueryMonitor.core.models import MonitorQuery


def load_queries(raw: Mapping[str, Any]) -> tuple[MonitorQuery, ...]:
    """Load the optional `queries` list.

    Each item is an object with `id`, `query` and optional `metadata`.

    Raises:
        TypeError: If the list or an item has the wrong shape.
        ValueError: If an item misses a required key.
    """
    items = raw.get("queries")
    if items is None:
        return ()
    if not isinstance(items, list):
        raise TypeError("queries must be a list")

    out: list[MonitorQuery] = []
    for idx, item in enumerate(items):
        key = f"queries[{idx}]"
        if not isinstance(item, Mapping):
            raise TypeError(f"{key} must be an object")
        query_id = get_required_value(item, "id", f"{key}.id")
        if isinstance(query_id, (int, float)) and not isinstance(query_id, bool):
            query_id = str(query_id)
        out.append(
            MonitorQuery(
                id=expect_str(query_id, f"{key}.id"),
                query=expect_str(get_required_value(item, "query", f"{key}.query"), f"{key}.query"),
                metadata=expect_str_mapping(item.get("metadata"), f"{key}.metadata"),
            )
        )
    return tuple(out)


def check_queries(queries: tuple[MonitorQuery, ...]) -> None:
    """Reject duplicate ids within the configured list."""
    seen: set[str] = set()
    for query in queries:
        if query.id in seen:
            raise ValueError(f"queries contains duplicate id: {query.id}")
        seen.add(query.id)
