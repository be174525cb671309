"""Logging configuration using Loguru.

Two sinks are installed by ``setup_logging()``:

- stderr, compact and colorized, for CLI visibility
- a daily log file under ~/.local/share/greetmotion/logs/, either plain
  text or one JSON record per line (``json_file=True``)

Library modules only ever call ``get_logger()``; nothing is printed until
the CLI (or an embedding application) calls ``setup_logging()``.
"""

from __future__ import annotations

import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from loguru import logger

from .constants import DEFAULT_LOG_DIR, ENV_LOG_LEVEL, LOG_DATE_FORMAT, LOG_RETENTION

# Library default: silent until setup_logging() is called
logger.remove()

_handler_ids: list[int] = []


def _stderr_format(record) -> str:
    context = "".join(f"[{key}={{extra[{key}]}}]" for key in record["extra"] if key != "name")
    prefix = "<level>{level: <8}</level> | <cyan>{extra[name]}</cyan>"
    if context:
        prefix += f" {context}"
    return prefix + " - <level>{message}</level>\n{exception}"


def _ours(record) -> bool:
    return "name" in record["extra"]


def setup_logging(
    verbose: bool = False,
    log_dir: Optional[Path] = None,
    json_file: bool = False,
) -> Path:
    """Configure Loguru sinks, replacing any installed by a previous call.

    The stderr level is DEBUG with ``verbose``, else ``$GREETMOTION_LOG_LEVEL``
    or INFO. The file sink always records DEBUG.

    Args:
        verbose: Show DEBUG messages on stderr
        log_dir: Override log directory (default: ~/.local/share/greetmotion/logs/)
        json_file: Write the log file as JSON lines instead of text

    Returns:
        Path of today's log file
    """
    for handler_id in _handler_ids:
        logger.remove(handler_id)
    _handler_ids.clear()

    level = "DEBUG" if verbose else os.environ.get(ENV_LOG_LEVEL, "INFO").upper()
    log_path = log_dir or DEFAULT_LOG_DIR
    log_path.mkdir(parents=True, exist_ok=True)
    log_file = log_path / f"{datetime.now().strftime(LOG_DATE_FORMAT)}.{'jsonl' if json_file else 'log'}"

    _handler_ids.append(logger.add(sys.stderr, level=level, format=_stderr_format, colorize=True, filter=_ours))
    _handler_ids.append(
        logger.add(
            log_file,
            level="DEBUG",
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[name]} - {message}",
            serialize=json_file,
            rotation="00:00",
            retention=LOG_RETENTION,
            filter=_ours,
        )
    )

    get_logger("logging").debug(f"Logging to {log_file} (stderr level {level})")
    return log_file


def get_logger(name: str, **context):
    """Get a logger bound to a component name.

    Extra keyword arguments are attached to every record and shown on stderr
    as ``[key=value]`` pairs, e.g. ``get_logger(__name__, overlay=2)``.
    """
    return logger.bind(name=name, **context)
