"""Logging for push-to-file.

Everything goes to a rotating log file. The terminal gets warnings and
errors; with ``debug`` it also gets the coded operator events from
:mod:`push_to_file.messages` (``CSPFK019I`` file written, ``CSPFK018I``
unchanged, ...), but never the free-form debug chatter.
"""

from __future__ import annotations

import logging
import logging.handlers
import re
import sys
from pathlib import Path

_PACKAGE = "push_to_file"
_LOG_BYTES = 1 * 1024 * 1024  # 1 MiB per file
_LOG_BACKUPS = 3

_CODE_RE = re.compile(r"^CSPFK\d{3}[IWE]\b")


class MessageCodeFilter(logging.Filter):
    """Pass WARNING and above, plus records whose message carries a CSPFK code."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.levelno >= logging.WARNING:
            return True
        return bool(_CODE_RE.match(str(record.msg)))


def _file_handler(log_file: Path) -> logging.Handler | None:
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=_LOG_BYTES,
            backupCount=_LOG_BACKUPS,
            encoding="utf-8",
        )
    except OSError as exc:
        print(f"push-to-file: WARNING: could not open log file {log_file}: {exc}", file=sys.stderr)
        return None
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(
        logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
    )
    return handler


def _stderr_handler(debug: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.INFO if debug else logging.WARNING)
    handler.addFilter(MessageCodeFilter())
    handler.setFormatter(logging.Formatter("push-to-file: %(message)s"))
    return handler


def configure(log_file: Path, *, debug: bool = False, reconfigure: bool = False) -> None:
    """Attach file and stderr handlers to the package logger.

    Idempotent unless *reconfigure* is True, which closes and replaces the
    existing handlers.
    """
    pkg_logger = logging.getLogger(_PACKAGE)
    if pkg_logger.handlers and not reconfigure:
        return
    for handler in list(pkg_logger.handlers):
        pkg_logger.removeHandler(handler)
        handler.close()

    pkg_logger.setLevel(logging.DEBUG if debug else logging.INFO)
    fh = _file_handler(log_file)
    if fh is not None:
        pkg_logger.addHandler(fh)
    pkg_logger.addHandler(_stderr_handler(debug))
    pkg_logger.propagate = False
