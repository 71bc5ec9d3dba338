"""Logging setup and small filesystem helpers for the CLI."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable


LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Chatty at DEBUG; kept at WARNING even with --verbose.
_NOISY_LOGGERS = ("matplotlib", "PIL", "fiona", "pyogrio", "pyproj", "shapely")


def setup_logging(log_file: Path | None = None, verbose: bool = False) -> None:
    """Send eumaps logs to stderr and, when given, to `log_file`.

    Calling it again replaces the handlers installed by the previous call.
    """
    formatter = logging.Formatter(LOG_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def ensure_directories(paths: Iterable[Path]) -> None:
    for path in paths:
        path.mkdir(parents=True, exist_ok=True)


def write_json(path: Path, payload: Any) -> None:
    """Write `payload` as indented UTF-8 JSON; dates and paths become strings."""
    path.parent.mkdir(parents=True, exist_ok=True)
    text = json.dumps(payload, indent=2, ensure_ascii=False, default=str)
    path.write_text(text + "\n", encoding="utf-8")
