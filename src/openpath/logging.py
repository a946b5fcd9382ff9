"""Logging configuration and block-decision audit logging."""

import json
import logging
import sys
from datetime import datetime, timezone

from . import config

# Module-level state (initialized by init_logging)
logger: logging.Logger = None
_decisions_file = None


def init_logging(verbose: bool | None = None) -> logging.Logger:
    """Initialize logging. Returns the main logger."""
    global logger, _decisions_file

    if verbose is None:
        verbose = config.VERBOSE

    # Operational logger (human-readable)
    logger = logging.getLogger("openpath")
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False
    logger.handlers.clear()
    if config.LOG_FILE:
        handler = logging.FileHandler(config.LOG_FILE)
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s %(message)s"))
    logger.addHandler(handler)

    # Decision audit file (JSONL format, line-buffered)
    if config.DECISIONS_FILE and _decisions_file is None:
        _decisions_file = open(config.DECISIONS_FILE, "a", buffering=1)

    return logger


def close_logging():
    """Close logging resources."""
    global _decisions_file
    if _decisions_file:
        _decisions_file.close()
        _decisions_file = None


def log_decision(**kwargs) -> None:
    """Log a block-check decision as JSONL (host and verdict first for readability)."""
    if not _decisions_file:
        return
    event = {"ts": datetime.now(timezone.utc).isoformat(timespec="milliseconds")}
    for key in ("host", "blocked"):
        if key in kwargs:
            event[key] = kwargs.pop(key)
    event.update(kwargs)
    _decisions_file.write(json.dumps(event, separators=(",", ":")) + "\n")
