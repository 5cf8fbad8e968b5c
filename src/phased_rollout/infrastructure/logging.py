"""Run-log handler producing ``[timestamp] [LEVEL] message`` lines.

Modules log through ``logging.getLogger(__name__)`` beneath the
``phased_rollout`` namespace.  :func:`configure_run_log` attaches one
handler to that namespace for the duration of a run; the log path is an
explicit argument, never module state.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

ROOT_LOGGER = "phased_rollout"
LINE_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class RunLogFormatter(logging.Formatter):
    """Formatter emitting ``[YYYY-MM-DD HH:MM:SS] [LEVEL] message``."""

    def __init__(self) -> None:
        super().__init__(fmt=LINE_FORMAT, datefmt=DATE_FORMAT)


def configure_run_log(
    path: str | Path | None = None,
    level: int = logging.INFO,
    logger_name: str = ROOT_LOGGER,
) -> logging.Handler:
    """Attach a run-log handler and return it.

    Parameters
    ----------
    path:
        File to append to.  ``None`` writes to ``stderr``.
    level:
        Minimum level for both the handler and the namespace logger.
    logger_name:
        Logger to attach to.  Defaults to the package namespace.

    Returns
    -------
    logging.Handler
        Pass it to :func:`detach_run_log` when the run is over.
    """
    handler: logging.Handler
    if path is not None:
        log_file = Path(path)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_file, encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(RunLogFormatter())
    handler.setLevel(level)

    logger = logging.getLogger(logger_name)
    logger.addHandler(handler)
    if logger.level == logging.NOTSET or logger.level > level:
        logger.setLevel(level)
    return handler


def detach_run_log(handler: logging.Handler, logger_name: str = ROOT_LOGGER) -> None:
    """Remove and close a handler returned by :func:`configure_run_log`."""
    logging.getLogger(logger_name).removeHandler(handler)
    handler.close()
