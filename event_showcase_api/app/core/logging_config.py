"""
Logging for the Event Showcase API.

Work that runs after a response has been sent (image promotion, owner
notification) has no client to report to, so its failures show up only
in these logs.  ``setup_logging`` is idempotent: the first application
built in a process installs the handlers and later calls leave them
alone.
"""

import logging
import sys
from pathlib import Path
from typing import List

from .config import Settings


LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


def _level(name: str) -> int:
    level = getattr(logging, name.upper(), None)
    return level if isinstance(level, int) else logging.INFO


def _handlers(settings: Settings) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if settings.log_file:
        path = Path(settings.log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))
    return handlers


def setup_logging(settings: Settings) -> None:
    """Send records from every logger to stderr and ``settings.log_file``."""
    root = logging.getLogger()
    if root.handlers:
        return
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in _handlers(settings):
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(_level(settings.log_level))
