"""Shared logging for nudgebox.

Everything goes to /tmp/nudgebox.log, never to the terminal (the TUI owns it).
Each module asks for a child logger, so lines can be filtered by component:

    grep 'nudgebox.stream' /tmp/nudgebox.log
"""

import logging
from pathlib import Path

LOG_PATH = Path("/tmp/nudgebox.log")

_FORMAT = "%(asctime)s %(levelname).1s %(name)s %(message)s"

_root = logging.getLogger("nudgebox")
_root.setLevel(logging.INFO)
_root.propagate = False
if not _root.handlers:
    _handler = logging.FileHandler(LOG_PATH)
    _handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%H:%M:%S"))
    _root.addHandler(_handler)


def get_logger(name: str) -> logging.Logger:
    """Logger for one component, e.g. ``get_logger("dispatcher")``."""
    return _root.getChild(name)


def set_verbose(verbose: bool) -> None:
    """DEBUG when ``verbose_logging`` is on, INFO otherwise."""
    _root.setLevel(logging.DEBUG if verbose else logging.INFO)
