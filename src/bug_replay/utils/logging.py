"""
Logging utilities for bug-replay.

Console output goes through rich on stderr; an optional log file receives
plain lines or one JSON object per record.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

PLAIN_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Libraries that log every request or protocol message at INFO/DEBUG
NOISY_LOGGERS = ("httpx", "httpcore", "asyncio")


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record, with the traceback under ``exc``."""
    
    def format(self, record: logging.LogRecord) -> str:
        line = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            line["exc"] = self.formatException(record.exc_info)
        return json.dumps(line, ensure_ascii=False)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    json_format: bool = False,
    file_format: str = PLAIN_FORMAT,
) -> None:
    """
    Install the rich console handler and, if requested, a file handler.
    
    Existing root handlers are replaced, so calling this twice is safe.
    
    Args:
        level: Log level name; unknown names fall back to INFO
        log_file: Path of a log file; parent directories are created
        json_format: Write JSON lines to the log file
        file_format: Line format for a plain log file
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    
    root = logging.getLogger()
    root.setLevel(log_level)
    root.handlers.clear()
    
    # stderr keeps stdout free for command output
    root.addHandler(RichHandler(
        console=Console(stderr=True),
        level=log_level,
        show_path=False,
        rich_tracebacks=True,
    ))
    
    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(JsonLineFormatter() if json_format else logging.Formatter(file_format))
        root.addHandler(file_handler)
    
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a module (pass ``__name__``)."""
    return logging.getLogger(name)
