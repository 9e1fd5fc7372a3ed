"""
Logging setup for Labwise.

The library only creates module loggers; the CLI and the web server call
``setup_logging`` once at start-up. Console output is a compact colored
line on stderr, so ``--format json`` on stdout stays clean. The optional
log file gets one JSON object per record for later grepping.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone

LEVEL_COLORS = {
    "DEBUG": "\033[2m",
    "INFO": "\033[36m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[1;31m",
}
RESET = "\033[0m"

# Third-party loggers that are chatty at INFO
QUIET_LOGGERS = {
    "httpx": "WARNING",
    "anthropic": "WARNING",
    "uvicorn.access": "WARNING",
}


def _level(name: str, default: int = logging.INFO) -> int:
    value = logging.getLevelName(name.upper())
    return value if isinstance(value, int) else default


class ConsoleFormatter(logging.Formatter):
    """``HH:MM:SS LEVEL logger: message``, colored when writing to a terminal."""

    def __init__(self, color: bool = True):
        super().__init__()
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        # labwise.engines.catalog -> engines.catalog
        name = record.name.removeprefix("labwise.")
        line = f"{stamp} {record.levelname:<7} {name}: {record.getMessage()}"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)

        if not self.color:
            return line
        return f"{LEVEL_COLORS.get(record.levelname, '')}{line}{RESET}"


class JSONLinesFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def parse_module_levels(raw: str | None) -> dict[str, str]:
    """
    Parse ``"labwise.llm=DEBUG,httpx=INFO"`` into a logger -> level mapping.

    Malformed pairs are ignored.
    """
    levels: dict[str, str] = {}
    for pair in (raw or "").split(","):
        name, sep, level = pair.partition("=")
        if sep and name.strip() and level.strip():
            levels[name.strip()] = level.strip().upper()
    return levels


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    module_levels: dict[str, str] | None = None,
) -> None:
    """
    Configure the root logger.

    Args:
        level: Root level name; unknown names fall back to INFO
        log_file: Optional path that receives JSON-lines records
        module_levels: Per-logger overrides, applied after the defaults
            in ``QUIET_LOGGERS``
    """
    root = logging.getLogger()
    root.setLevel(_level(level))
    root.handlers.clear()

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(ConsoleFormatter(color=sys.stderr.isatty()))
    root.addHandler(console)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(JSONLinesFormatter())
        root.addHandler(file_handler)

    for name, name_level in {**QUIET_LOGGERS, **(module_levels or {})}.items():
        logging.getLogger(name).setLevel(_level(name_level, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    """Module logger, normally ``get_logger(__name__)``."""
    return logging.getLogger(name)
