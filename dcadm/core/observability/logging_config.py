"""
Logging configuration — central setup for the dcadm CLI.

Called once at startup by ``dcadm.main``.  Every module that does
``logger = logging.getLogger(__name__)`` picks up these handlers.

Console level, highest precedence first:
    --debug  >  --verbose  >  --quiet  >  DCADM_LOG_LEVEL  >  WARNING

A second, file-backed handler is added when DCADM_LOG_FILE is set; its
level comes from DCADM_LOG_FILE_LEVEL (default: the console level).

Operator progress lines do not go through logging (see progress.py).
Log records go to stderr so they never interleave with piped output.
"""

from __future__ import annotations

import logging
import os
import sys

ENV_LEVEL = "DCADM_LOG_LEVEL"
ENV_FILE = "DCADM_LOG_FILE"
ENV_FILE_LEVEL = "DCADM_LOG_FILE_LEVEL"

# ── Formats ─────────────────────────────────────────────────────

_DETAILED = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"
_CONSOLE_FORMATS = (
    # (max level, format, datefmt), first match wins
    (logging.DEBUG, _DETAILED, "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
)
_MINIMAL = "%(levelname)s: %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Library loggers kept at WARNING unless --debug
_QUIETED = ("asyncio", "urllib3", "charset_normalizer")


def resolve_level(
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
) -> str:
    """Pick the console level from CLI flags, falling back to the env."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return os.environ.get(ENV_LEVEL, "WARNING")


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Install the console handler, plus a file handler if asked.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Path of a log file to append to.
        log_file_level: Level for the file; defaults to ``level``.
    """
    console_level = _parse_level(level)
    handlers = [_console_handler(console_level)]

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        handlers.append(_file_handler(log_file, file_level))

    root = logging.getLogger()
    for old in list(root.handlers):
        root.removeHandler(old)
    for handler in handlers:
        root.addHandler(handler)
    # Root passes everything the most verbose handler wants
    root.setLevel(min(h.level for h in handlers))

    if console_level > logging.DEBUG:
        for name in _QUIETED:
            logging.getLogger(name).setLevel(logging.WARNING)

    # A closed stream (e.g. after the CLI exits under a test runner) must not raise
    logging.raiseExceptions = False


def _console_handler(level: int) -> logging.Handler:
    fmt, datefmt = _MINIMAL, None
    for threshold, candidate, candidate_datefmt in _CONSOLE_FORMATS:
        if level <= threshold:
            fmt, datefmt = candidate, candidate_datefmt
            break

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    return handler


def _file_handler(path: str, level: int) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_DETAILED, datefmt=_FILE_DATEFMT))
    return handler


def _parse_level(level: str | None) -> int:
    """Level name to its numeric value; unknown names mean WARNING."""
    value = getattr(logging, (level or "").upper(), None)
    return value if isinstance(value, int) else logging.WARNING
