"""Terminal and log file logging configuration.

Two independent knobs:

- ``-v`` / ``--verbose`` on the CLI controls **terminal** verbosity
  (stderr handler level).  Default: WARNING.
- ``FORMPULSE_LOG_LEVEL`` env var controls **log file** verbosity.
  Default: INFO.  The log file is only written when ``FORMPULSE_LOG_DIR``
  names a directory.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

_LOG_FILENAME = "formpulse.log"

# Max log file size before rotation (5 MB)
_MAX_BYTES = 5 * 1024 * 1024

_BACKUP_COUNT = 2

# Third-party loggers that are always suppressed
_NOISY_LOGGERS = ("httpx", "httpcore", "websockets", "uvicorn.access")


def _parse_log_level(level_str: str) -> int:
    """Parse a log level name case-insensitively, falling back to INFO."""
    numeric = getattr(logging, level_str.upper(), None)
    if isinstance(numeric, int):
        return numeric
    return logging.INFO


def setup_logging(
    *,
    log_dir: Path | None = None,
    verbose: bool = False,
) -> None:
    """Configure the two-handler logging system.

    Args:
        log_dir: When provided, a rotating log file is created at
            ``<log_dir>/formpulse.log``.  When ``None``, only the terminal
            handler is configured.
        verbose: If True, the terminal handler shows DEBUG-level messages.
            Otherwise only WARNING and above reach the terminal.
    """
    root = logging.getLogger()

    # setup_logging may run more than once in a process (tests, serve reload)
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()

    # The root logger must accept everything; handlers filter independently
    root.setLevel(logging.DEBUG)

    # ── Terminal handler (stderr) ──────────────────────────────────
    terminal = logging.StreamHandler()
    terminal.setLevel(logging.DEBUG if verbose else logging.WARNING)
    terminal.setFormatter(logging.Formatter("%(levelname)s | %(name)s | %(message)s"))
    root.addHandler(terminal)

    # ── Log file handler ───────────────────────────────────────────
    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)

        from logging.handlers import RotatingFileHandler

        file_level = _parse_log_level(os.environ.get("FORMPULSE_LOG_LEVEL", "INFO"))
        file_handler = RotatingFileHandler(
            log_dir / _LOG_FILENAME,
            maxBytes=_MAX_BYTES,
            backupCount=_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setLevel(file_level)
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        root.addHandler(file_handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
