"""qrstyle structured logging: audit events and render-step tracing."""

import functools
import json
import logging
import sys
import time
import traceback
from datetime import datetime, timezone

# Custom AUDIT level (between WARNING=30 and ERROR=40)
AUDIT = 35
logging.addLevelName(AUDIT, "AUDIT")

ROOT_LOGGER = "qrstyle"


def _truncate(value: object, max_len: int = 80) -> str:
    s = str(value)
    if len(s) > max_len:
        return s[:max_len] + "..."
    return s


def _timestamp(record: logging.LogRecord, fmt: str) -> str:
    return datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(fmt)[:-3]


class JsonFormatter(logging.Formatter):
    """One JSON object per line, for log shippers."""

    def format(self, record):
        entry = {
            "ts": _timestamp(record, "%Y-%m-%dT%H:%M:%S.%f") + "Z",
            "level": record.levelname,
            "src": record.name,
        }
        if hasattr(record, "event"):
            entry["event"] = record.event
        if hasattr(record, "duration_ms"):
            entry["duration_ms"] = round(record.duration_ms, 2)
        if hasattr(record, "ctx"):
            entry["ctx"] = record.ctx
        if record.getMessage() and not hasattr(record, "event"):
            entry["msg"] = record.getMessage()
        if record.exc_info and record.exc_info[1]:
            entry["traceback"] = traceback.format_exception(*record.exc_info)
        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable colored console output."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "AUDIT": "\033[35m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
    }
    RESET = "\033[0m"

    def format(self, record):
        color = self.COLORS.get(record.levelname, "")
        parts = [
            _timestamp(record, "%H:%M:%S.%f"),
            f"{color}{record.levelname:5s}{self.RESET}",
            f"[{record.name}]",
        ]

        if hasattr(record, "event"):
            parts.append(record.event)

        if hasattr(record, "duration_ms"):
            parts.append(f"({record.duration_ms:.1f}ms)")

        if getattr(record, "ctx", None):
            parts.append(" ".join(f"{k}={_truncate(v)}" for k, v in record.ctx.items()))
        elif record.getMessage() and not hasattr(record, "event"):
            parts.append(record.getMessage())

        if record.exc_info and record.exc_info[1]:
            parts.append(f"\n{''.join(traceback.format_exception(*record.exc_info))}")

        return " ".join(parts)


def setup_logging(level: str = "INFO", log_file: str | None = None, json_format: bool = False):
    """Configure the ``qrstyle`` logger tree.

    Args:
        level: Log level name (DEBUG, INFO, AUDIT, WARNING, ERROR).
        log_file: If set, JSON lines are also written to this path.
        json_format: Use JSON on the console too.
    """
    root = logging.getLogger(ROOT_LOGGER)
    level_no = logging.getLevelName(level.upper())
    root.setLevel(level_no if isinstance(level_no, int) else logging.INFO)
    root.handlers.clear()

    console = logging.StreamHandler()
    console.setFormatter(JsonFormatter() if json_format else ConsoleFormatter())
    root.addHandler(console)

    if log_file:
        fh = logging.FileHandler(log_file)
        fh.setFormatter(JsonFormatter())
        root.addHandler(fh)


def get_logger(module_name: str) -> logging.Logger:
    """Get a logger scoped under the qrstyle namespace."""
    return logging.getLogger(f"{ROOT_LOGGER}.{module_name}")


def _emit(log: logging.Logger, level: int, event: str, exc_info=None,
          duration_ms: float | None = None, **context):
    record = log.makeRecord(
        name=log.name, level=level, fn="", lno=0,
        msg="", args=(), exc_info=exc_info,
    )
    record.event = event
    record.ctx = context
    if duration_ms is not None:
        record.duration_ms = duration_ms
    log.handle(record)


def audit(event: str, logger: logging.Logger | None = None, **context):
    """Emit an AUDIT-level structured log entry.

    Args:
        event: Machine-readable event tag (e.g. "cache.hit").
        logger: Logger to use. Defaults to the qrstyle root.
        **context: Key-value pairs for the event context.
    """
    log = logger or logging.getLogger(ROOT_LOGGER)
    if log.isEnabledFor(AUDIT):
        _emit(log, AUDIT, event, **context)


def _summarize(value: object) -> str:
    if isinstance(value, (str, int, float, bool)):
        return _truncate(repr(value), 80)
    if isinstance(value, (list, tuple)):
        return f"{type(value).__name__}[{len(value)}]"
    if isinstance(value, dict):
        return f"dict[{len(value)} keys]"
    return type(value).__name__


def trace(func=None, *, logger_name: str | None = None):
    """Decorator that logs function entry/exit with timing.

    - DEBUG on entry with arguments
    - INFO on exit with duration
    - ERROR on exception with traceback and duration
    """
    def decorator(fn):
        log = get_logger(logger_name or fn.__module__.replace(f"{ROOT_LOGGER}.", ""))

        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            fn_name = fn.__name__

            if log.isEnabledFor(logging.DEBUG):
                safe_args = []
                for a in args:
                    s = repr(a)
                    if len(s) > 100 or "Image" in type(a).__name__:
                        safe_args.append(f"<{type(a).__name__}>")
                    else:
                        safe_args.append(_truncate(s, 80))
                safe_kwargs = {k: _truncate(repr(v), 80) for k, v in kwargs.items()}
                _emit(log, logging.DEBUG, f"{fn_name}.enter", args=safe_args, kwargs=safe_kwargs)

            start = time.perf_counter()
            try:
                result = fn(*args, **kwargs)
            except Exception:
                elapsed = (time.perf_counter() - start) * 1000
                _emit(log, logging.ERROR, f"{fn_name}.error", exc_info=sys.exc_info(),
                      duration_ms=elapsed, function=fn_name)
                raise

            if log.isEnabledFor(logging.INFO):
                elapsed = (time.perf_counter() - start) * 1000
                _emit(log, logging.INFO, f"{fn_name}.done", duration_ms=elapsed,
                      result=_summarize(result))
            return result

        return wrapper

    if func is not None:
        return decorator(func)
    return decorator
