"""The `QueryMonitor` logger and its set-up.

Library code only logs through `log`; handlers are installed by the CLI
through `configure_logging`. Records look like::

    03-14 09:26:53 [WARN] Query rejected: id=q7 error=Unbalanced ')'
"""

from __future__ import annotations

import logging
from pathlib import Path

log = logging.getLogger("QueryMonitor")

_SHORT_LEVELS = {"DEBUG": "DEBG", "WARNING": "WARN", "ERROR": "ERRO", "CRITICAL": "ERRO"}


class _ShortLevelFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        record.short_level = _SHORT_LEVELS.get(record.levelname, record.levelname[:4])
        return super().format(record)


def configure_logging(*, level: str = "INFO", log_file: str | Path | None = None) -> None:
    """Install console (and optional file) handlers on the `QueryMonitor` logger.

    Calling it again replaces the handlers of the previous call.

    Args:
        level: Console level name; unknown names fall back to INFO.
        log_file: File appended with every record at DEBUG level.
    """
    console_level = logging.getLevelName((level or "INFO").upper())
    if not isinstance(console_level, int):
        console_level = logging.INFO
    formatter = _ShortLevelFormatter("%(asctime)s [%(short_level)s] %(message)s", datefmt="%m-%d %H:%M:%S")

    for handler in list(log.handlers):
        log.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(console_level)
    console.setFormatter(formatter)
    log.addHandler(console)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        log.addHandler(file_handler)

    log.setLevel(logging.DEBUG if log_file else console_level)
    log.propagate = False
