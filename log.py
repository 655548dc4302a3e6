"""Structured logging for LangStudy.

Outputs JSON-lines format for easy parsing and debugging.
Set LANGSTUDY_LOG_LEVEL env var to control verbosity (DEBUG/INFO/WARNING/ERROR).
Set LANGSTUDY_LOG_FORMAT=text for human-readable output instead of JSON.
Use `timed()` around collaborator calls (model, store) to log their latency.
"""
import logging
import json
import os
import sys
import time
from contextlib import contextmanager
from typing import Any

EXTRA_FIELDS = (
    "component", "article_id", "duration_ms", "endpoint", "status_code",
    "error_kind", "lang", "detail", "count",
)


class JSONFormatter(logging.Formatter):
    """Formats log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1]:
            entry["error"] = str(record.exc_info[1])
            entry["error_type"] = type(record.exc_info[1]).__name__
        for key in EXTRA_FIELDS:
            val = getattr(record, key, None)
            if val is not None:
                entry[key] = val
        return json.dumps(entry, ensure_ascii=False, default=str)


def get_logger(name: str = "langstudy") -> logging.Logger:
    """Get or create a structured logger.

    Usage:
        from log import get_logger
        logger = get_logger("langstudy.articles")
        logger.info("Article saved", extra={"component": "store", "article_id": "abc"})
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        level = os.environ.get("LANGSTUDY_LOG_LEVEL", "INFO").upper()
        logger.setLevel(getattr(logging, level, logging.INFO))

        handler = logging.StreamHandler(sys.stderr)
        fmt = os.environ.get("LANGSTUDY_LOG_FORMAT", "json")
        if fmt == "text":
            handler.setFormatter(logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%H:%M:%S",
            ))
        else:
            handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
        logger.propagate = False
    return logger


@contextmanager
def timed(logger: logging.Logger, msg: str, **extra: Any):
    """Log `msg` with `duration_ms` once the block finishes.

    A failing block is logged at WARNING with its `error_kind` and re-raised.
    """
    started = time.perf_counter()
    try:
        yield
    except Exception as e:
        extra["duration_ms"] = round((time.perf_counter() - started) * 1000)
        extra["error_kind"] = getattr(e, "kind", type(e).__name__)
        logger.warning(f"{msg} failed", extra=extra)
        raise
    extra["duration_ms"] = round((time.perf_counter() - started) * 1000)
    logger.info(msg, extra=extra)
