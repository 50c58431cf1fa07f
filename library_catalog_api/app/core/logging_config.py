"""
Logging setup for the API server.

The root logger gets a console handler and, optionally, a file
handler.  Handlers are attached once per process, no matter how many
applications ``create_app`` builds.
"""

import logging
from pathlib import Path
from typing import Optional


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def resolve_level(level: str, debug: bool = False) -> int:
    """Map a level name to its number; ``debug`` forces ``DEBUG``.

    Unknown names fall back to ``INFO``.
    """
    if debug:
        return logging.DEBUG
    numeric_level = logging.getLevelName(level.upper())
    return numeric_level if isinstance(numeric_level, int) else logging.INFO


def setup_logging(level: str = "INFO", logfile: Optional[str] = None, *, debug: bool = False) -> None:
    """Configure the root logger for the API server.

    Does nothing if the root logger already has handlers, so test
    runners and repeated ``create_app`` calls keep their setup.

    Parameters
    ----------
    level : str
        Logging level name (e.g. ``"DEBUG"``, ``"INFO"``), case
        insensitive.
    logfile : Optional[str]
        Extra file to write the log to.  Relative paths are resolved
        against the current working directory and missing parent
        directories are created.
    debug : bool
        The ``DEBUG`` setting.  It only raises verbosity here.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    root.setLevel(resolve_level(level, debug))
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    handlers = [logging.StreamHandler()]
    if logfile:
        log_path = Path(logfile).resolve()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
