"""
optipod-oracle: structured logging.

Purpose
- JSON-lines logging for oracle runs, one file per run under ``<log_dir>/<run_id>/``.

What should be included in this file
- Queue-backed handler so generators and validators never block on file I/O.
- Correlation fields (``run_id``, ``batch``, ``generator``, ``scenario``) bound through
  ``contextvars`` and written as top-level keys; ``extra=`` values go under ``fields``.
- JSON normalization for oracle values: quantities, canonical models, fractions, durations.

Functional requirements
- No import-time side effects; nothing is configured until ``setup_logging`` is called.
"""

from __future__ import annotations

import atexit
import contextvars
import json
import logging
import logging.handlers
import math
import queue
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import Enum
from fractions import Fraction
from pathlib import Path
from typing import Final

from optipod_oracle.domain.models import CanonicalModel
from optipod_oracle.domain.quantity import CpuQuantity, MemoryQuantity, format_quantity

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]

_DEFAULT_LOGGER_NAME: Final[str] = "optipod_oracle"
_DEFAULT_LOG_FILENAME: Final[str] = "oracle.jsonl"

# Attributes every LogRecord carries; anything else on a record came from ``extra=``.
_RECORD_ATTRIBUTES: Final[frozenset[str]] = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime", "correlation"}

_Correlation = tuple[tuple[str, str], ...]
_CORRELATION: contextvars.ContextVar[_Correlation] = contextvars.ContextVar(
    "optipod_oracle_correlation", default=()
)

_ACTIVE_LOCK = threading.Lock()
_ACTIVE: StructuredLoggingHandle | None = None
_ATEXIT_REGISTERED = False


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    run_id: str
    base_log_dir: Path | str = Path("logs")
    logger_name: str = _DEFAULT_LOGGER_NAME
    level: int | str = "INFO"
    log_filename: str = _DEFAULT_LOG_FILENAME
    log_to_stdout: bool = False


@dataclass(slots=True)
class StructuredLoggingHandle:
    """An active logging setup. ``shutdown`` drains the queue and closes every sink."""

    logger: logging.Logger
    run_id: str
    run_log_dir: Path
    log_path: Path
    _queue_handler: logging.Handler
    _listener: logging.handlers.QueueListener
    _sinks: tuple[logging.Handler, ...]
    _lock: threading.Lock = field(default_factory=threading.Lock)
    _closed: bool = False

    @property
    def is_shutdown(self) -> bool:
        return self._closed

    def flush(self) -> None:
        """Block until every queued record reached the sinks."""
        if self._closed:
            return
        self._listener.queue.join()  # type: ignore[attr-defined]
        for sink in self._sinks:
            sink.flush()

    def shutdown(self) -> None:
        with self._lock:
            if self._closed:
                return
            self.logger.removeHandler(self._queue_handler)
            self._listener.stop()
            self._queue_handler.close()
            for sink in self._sinks:
                sink.flush()
                sink.close()
            self._closed = True


class _ContextQueueHandler(logging.handlers.QueueHandler):
    """Stamps the caller's correlation context on the record before it changes threads.

    ``prepare`` also folds any traceback into the message text.
    """

    def prepare(self, record: logging.LogRecord) -> logging.LogRecord:
        record.correlation = dict(_CORRELATION.get())
        return super().prepare(record)


class _JsonLineFormatter(logging.Formatter):
    def __init__(self, run_id: str) -> None:
        super().__init__()
        self._run_id = run_id

    def format(self, record: logging.LogRecord) -> str:
        event: dict[str, JSONValue] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "run_id": self._run_id,
        }
        event.update(getattr(record, "correlation", {}))

        extras = {
            key: to_json_value(value)
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRIBUTES and not key.startswith("_")
        }
        if extras:
            event["fields"] = extras
        return json.dumps(event, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def setup_logging(
    observability_config: Mapping[str, object] | None = None,
    *,
    run_id: str,
    log_dir: Path | str | None = None,
    logger_name: str = _DEFAULT_LOGGER_NAME,
) -> logging.Logger:
    """Configure logging from an ``[observability]`` config section and return the logger.

    ``log_dir`` overrides the section's ``log_dir``.
    """

    section = dict(observability_config or {})
    base_log_dir = log_dir if log_dir is not None else section.get("log_dir", "logs")
    if not isinstance(base_log_dir, (str, Path)):
        raise ValueError(f"log_dir must be a path, got {type(base_log_dir).__name__}")
    level = section.get("log_level", "INFO")
    if not isinstance(level, (int, str)):
        raise ValueError(f"log_level must be int or str, got {type(level).__name__}")

    handle = setup_structured_logging(
        LoggingConfig(
            run_id=run_id,
            base_log_dir=base_log_dir,
            logger_name=logger_name,
            level=level,
            log_to_stdout=bool(section.get("log_to_stdout", False)),
        )
    )
    return handle.logger


def setup_structured_logging(config: LoggingConfig) -> StructuredLoggingHandle:
    """Route ``config.logger_name`` through a queue into JSON-line sinks.

    Replaces any handle set up earlier in the process.
    """

    run_id = _require_text(config.run_id, "run_id")
    logger_name = _require_text(config.logger_name, "logger_name")
    filename = _require_text(config.log_filename, "log_filename")
    if Path(filename).name != filename:
        raise ValueError("log_filename must not include path separators")
    level = _resolve_level(config.level)

    shutdown_logging()

    run_log_dir = Path(config.base_log_dir) / run_id
    run_log_dir.mkdir(parents=True, exist_ok=True)
    log_path = run_log_dir / filename

    formatter = _JsonLineFormatter(run_id)
    sinks: list[logging.Handler] = [logging.FileHandler(log_path, encoding="utf-8")]
    if config.log_to_stdout:
        sinks.append(logging.StreamHandler())
    for sink in sinks:
        sink.setFormatter(formatter)

    records: queue.Queue[logging.LogRecord] = queue.Queue()
    queue_handler = _ContextQueueHandler(records)
    listener = logging.handlers.QueueListener(records, *sinks)

    logger = logging.getLogger(logger_name)
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
        existing.close()
    logger.setLevel(level)
    logger.propagate = False
    logger.addHandler(queue_handler)
    listener.start()

    handle = StructuredLoggingHandle(
        logger=logger,
        run_id=run_id,
        run_log_dir=run_log_dir,
        log_path=log_path,
        _queue_handler=queue_handler,
        _listener=listener,
        _sinks=tuple(sinks),
    )
    global _ACTIVE, _ATEXIT_REGISTERED
    with _ACTIVE_LOCK:
        _ACTIVE = handle
        if not _ATEXIT_REGISTERED:
            atexit.register(shutdown_logging)
            _ATEXIT_REGISTERED = True
    return handle


def get_active_logging_handle() -> StructuredLoggingHandle | None:
    with _ACTIVE_LOCK:
        return _ACTIVE


def flush_logging(handle: StructuredLoggingHandle | None = None) -> None:
    resolved = handle or get_active_logging_handle()
    if resolved is not None:
        resolved.flush()


def shutdown_logging(handle: StructuredLoggingHandle | None = None) -> None:
    """Shut down ``handle`` (default: the active one). Safe to call repeatedly."""

    global _ACTIVE
    resolved = handle or get_active_logging_handle()
    if resolved is None:
        return
    resolved.shutdown()
    with _ACTIVE_LOCK:
        if _ACTIVE is resolved:
            _ACTIVE = None


def get_correlation_context() -> dict[str, str]:
    return dict(_CORRELATION.get())


def set_correlation_fields(**fields: str | None) -> contextvars.Token[_Correlation]:
    """Bind correlation fields for the current context; ``None`` unbinds a field."""

    bound = get_correlation_context()
    for key, value in fields.items():
        if value is None:
            bound.pop(key, None)
        else:
            bound[key] = _require_text(value, f"correlation field {key!r}")
    return _CORRELATION.set(tuple(bound.items()))


def reset_correlation_fields(token: contextvars.Token[_Correlation]) -> None:
    _CORRELATION.reset(token)


@contextmanager
def correlation_scope(**fields: str | None) -> Iterator[None]:
    token = set_correlation_fields(**fields)
    try:
        yield
    finally:
        reset_correlation_fields(token)


def to_json_value(value: object) -> JSONValue:
    """Convert a log field to plain JSON; unknown objects fall back to ``repr``."""

    if isinstance(value, Enum):
        return to_json_value(value.value)
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else repr(value)
    if isinstance(value, Fraction):
        return float(value)
    if isinstance(value, (CpuQuantity, MemoryQuantity)):
        return format_quantity(value)
    if isinstance(value, CanonicalModel):
        return value.to_dict()
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, Path):
        return value.as_posix()
    if isinstance(value, Mapping):
        return {str(key): to_json_value(item) for key, item in value.items()}
    if isinstance(value, (set, frozenset)):
        return sorted((to_json_value(item) for item in value), key=repr)
    if isinstance(value, (list, tuple)):
        return [to_json_value(item) for item in value]
    return repr(value)


def _require_text(value: object, name: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{name} must be a string, got {type(value).__name__}")
    text = value.strip()
    if not text:
        raise ValueError(f"{name} must not be empty")
    return text


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"unsupported logging level {level!r}")
    return resolved


__all__ = [
    "JSONScalar",
    "JSONValue",
    "LoggingConfig",
    "StructuredLoggingHandle",
    "correlation_scope",
    "flush_logging",
    "get_active_logging_handle",
    "get_correlation_context",
    "reset_correlation_fields",
    "set_correlation_fields",
    "setup_logging",
    "setup_structured_logging",
    "shutdown_logging",
    "to_json_value",
]
