"""JSON output renderers.

Renders `Matches` into JSON-serializable objects and provides the
JsonFileWriter implementation for command output. Also reads input
documents from JSON files.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any

from QueryMonitor.core.models import InputDocument
from QueryMonitor.core.results import Matches
from QueryMonitor.renderers.base import OutputWriter
from QueryMonitor.utils.log import log


def render_json(matches: Matches) -> dict[str, Any]:
    """Render match results into JSON-serializable Python objects.

    Payloads that are not JSON types are rendered with `str`.
    """
    return {
        "queries_run": matches.queries_run,
        "presearch_time_ms": round(matches.presearch_time_ms, 3),
        "match_time_ms": round(matches.match_time_ms, 3),
        "documents": [
            {
                "id": doc.document_id,
                "candidates": sorted(doc.candidates),
                "matches": {query_id: _payload(doc.matches[query_id]) for query_id in sorted(doc.matches)},
                "errors": {query_id: str(doc.errors[query_id].error) for query_id in sorted(doc.errors)},
                "error": None if doc.error is None else str(doc.error),
            }
            for doc in matches
        ],
    }


def _payload(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str, list, dict)):
        return value
    return str(value)


class JsonFileWriter(OutputWriter):
    """Accumulate results and write to JSON file on finalize."""

    def __init__(self, base_dir: str | Path) -> None:
        """Initialize JSON writer.

        Args:
            base_dir: Base output directory.
        """
        self.output_dir = Path(base_dir) / "json"
        self.all_results: list[dict[str, Any]] = []

    def write_matches(self, matches: Matches) -> None:
        self.all_results.append(render_json(matches))

    def finalize(self, action: str) -> None:
        """Write accumulated results to `<base_dir>/json/<action>_<timestamp>.json`."""
        payload = json.dumps(self.all_results, ensure_ascii=False, indent=2)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        output_path = self.output_dir / f"{action}_{timestamp}.json"
        output_path.write_text(payload, encoding="utf-8")
        log.info("JSON saved to %s", output_path)


def load_document(json_data: dict[str, Any], index: int = 0) -> InputDocument:
    """Load one document from a JSON object.

    The object either has `id` and `fields`, or is a flat field mapping with
    an optional `id`. Documents without an id are numbered by position.
    """
    if not isinstance(json_data, dict):
        raise ValueError(f"Document {index} must be a JSON object")
    if "fields" in json_data:
        fields = json_data["fields"]
        if not isinstance(fields, dict):
            raise ValueError(f"Document {index} fields must be a JSON object")
    else:
        fields = {key: value for key, value in json_data.items() if key != "id"}
    doc_id = str(json_data.get("id", index))
    return InputDocument(id=doc_id, fields=fields)


def load_documents_file(filepath: str | Path) -> list[InputDocument]:
    """Load documents from a JSON file holding one object or a list of them."""
    data = json.loads(Path(filepath).read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise ValueError("Documents file must contain a JSON object or a list of objects")
    return [load_document(item, index) for index, item in enumerate(data)]
