"""
Structured JSON logging shared by the scanner and the API.

Every line carries the id of the scan (or HTTP request) that produced it,
so a single scan can be pulled out of a busy log file.
"""
import datetime
import json
import logging
import os
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator, Optional, Union

NO_SCAN = "GLOBAL"

_scan_id: ContextVar[Optional[str]] = ContextVar("scan_id", default=None)

# (output key, LogRecord attribute)
_RECORD_FIELDS = (
    ("level", "levelname"),
    ("logger", "name"),
    ("module", "module"),
    ("function", "funcName"),
    ("line", "lineno"),
)

# Keyword arguments Logger.log consumes itself; anything else is context
_LOGGER_KWARGS = frozenset({'exc_info', 'stack_info', 'stacklevel', 'extra'})


class JSONFormatter(logging.Formatter):
    """One JSON object per line, with extra_fields merged at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.datetime.fromtimestamp(record.created, datetime.timezone.utc).isoformat(),
            "message": record.getMessage(),
            "scan_id": current_scan_id() or NO_SCAN,
        }
        payload.update((key, getattr(record, attr)) for key, attr in _RECORD_FIELDS)

        context = getattr(record, "extra_fields", None)
        if isinstance(context, dict):
            payload.update(context)

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def _with_json(handler: logging.Handler) -> logging.Handler:
    handler.setFormatter(JSONFormatter())
    return handler


def setup_logging(log_level: Union[int, str] = logging.INFO, log_file: Optional[str] = "logs/scanner.log"):
    """
    Send the root logger to stderr, and to log_file when one is given.
    Handlers installed by an earlier call are replaced.
    """
    if isinstance(log_level, str):
        log_level = logging.getLevelName(log_level.upper())

    handlers = [_with_json(logging.StreamHandler())]
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(_with_json(logging.FileHandler(log_file, encoding='utf-8')))

    root = logging.getLogger()
    root.handlers[:] = handlers
    root.setLevel(log_level)

    get_logger(__name__).info("Logging configured", log_level=logging.getLevelName(log_level), log_file=log_file)


def current_scan_id() -> Optional[str]:
    return _scan_id.get()


@contextmanager
def scan_context(scan_id: Optional[str] = None) -> Iterator[str]:
    """
    Tag log lines with a scan id while the block runs.

    Without an explicit id the enclosing one is reused (a scan inside an
    HTTP request shares the request's id), otherwise a new one is made.
    The enclosing id is restored on exit.
    """
    active = scan_id or current_scan_id() or str(uuid.uuid4())
    token = _scan_id.set(active)
    try:
        yield active
    finally:
        _scan_id.reset(token)


class ContextLoggerAdapter(logging.LoggerAdapter):
    """
    Accepts context as plain keyword arguments:

        logger.info("Batch parsed", parsed=3, dropped=1)
    """
    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        passthrough = {k: v for k, v in kwargs.items() if k in _LOGGER_KWARGS}
        context = {k: v for k, v in kwargs.items() if k not in _LOGGER_KWARGS}

        extra = dict(passthrough.get("extra") or {})
        extra["extra_fields"] = {**extra.get("extra_fields", {}), **context}
        passthrough["extra"] = extra
        return msg, passthrough


def get_logger(name: str) -> ContextLoggerAdapter:
    return ContextLoggerAdapter(logging.getLogger(name), {})
