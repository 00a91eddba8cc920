"""Output renderers for command results.

Provides the OutputWriter abstraction, console and JSON implementations,
and a factory selecting a writer by format name.
"""

from __future__ import annotations

from pathlib import Path

from QueryMonitor.renderers.base import OutputWriter
from QueryMonitor.renderers.console import ConsoleOutputWriter, render_extraction_text, render_text
from QueryMonitor.renderers.json import JsonFileWriter, load_documents_file, render_json


def create_output_writer(output_format: str, output_dir: str | Path = "output") -> OutputWriter:
    """Create output writer for a format name.

    Raises:
        ValueError: If the format is unknown.
    """
    if output_format == "console":
        return ConsoleOutputWriter()
    if output_format == "json":
        return JsonFileWriter(output_dir)
    raise ValueError(f"Unsupported output format: {output_format}")


__all__ = [
    "OutputWriter",
    "ConsoleOutputWriter",
    "JsonFileWriter",
    "create_output_writer",
    "load_documents_file",
    "render_extraction_text",
    "render_json",
    "render_text",
]
