import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from time import perf_counter
from typing import Any

import structlog
from structlog.types import EventDict, WrappedLogger

# Keys that stay at the top level of every record; everything else moves to "extra".
STANDARD_FIELDS = ("timestamp", "level", "logger", "message", "context")

DEFAULT_CONTEXT = "dossier"
DEFAULT_LOG_LEVEL = "INFO"
MAX_VALUE_LENGTH = 60
CORRELATION_ID_DISPLAY_LENGTH = 8


def _restructure_event(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    """Rename ``event`` to ``message`` and fold custom fields into ``extra``."""
    event_dict["message"] = event_dict.pop("event", "")
    event_dict["context"] = str(structlog.contextvars.get_contextvars().get("context", DEFAULT_CONTEXT))

    extra = {key: event_dict.pop(key) for key in list(event_dict) if key not in STANDARD_FIELDS}
    if extra:
        event_dict["extra"] = extra
    return event_dict


def _short_logger_name(name: str) -> str:
    if name.startswith("dossier."):
        return name[len("dossier.") :]
    return name


def _short_value(value: Any) -> str:
    text = str(value)
    if len(text) > MAX_VALUE_LENGTH:
        return f"{text[: MAX_VALUE_LENGTH - 3]}..."
    return text


def _render_console(_: WrappedLogger, __: str, event_dict: EventDict) -> str:
    """Render one line: HH:MM:SS [LEVEL] logger: message [k=v, ...] [id:abcd1234]"""
    timestamp = event_dict.get("timestamp", "")
    try:
        time_str = datetime.fromisoformat(timestamp.replace("Z", "+00:00")).strftime("%H:%M:%S")
    except (ValueError, AttributeError):
        time_str = ""

    extra = dict(event_dict.get("extra", {}))
    correlation_id = str(extra.pop("correlation_id", ""))

    line = (
        f"{time_str} [{event_dict.get('level', 'info').upper()}] "
        f"{_short_logger_name(event_dict.get('logger', ''))}: {event_dict.get('message', '')}"
    )
    if extra:
        line += " [" + ", ".join(f"{key}={_short_value(value)}" for key, value in extra.items()) + "]"
    if correlation_id:
        line += f" [id:{correlation_id[:CORRELATION_ID_DISPLAY_LENGTH]}]"
    return line


def configure_structlog(console: bool | None = None) -> None:
    """Configure structlog for JSON lines, or one-line console output.

    ``console`` defaults to ``LOG_FORMAT=console`` in the environment.
    """
    if console is None:
        console = os.environ.get("LOG_FORMAT", "json").lower() == "console"

    level_name = os.environ.get("LOGGING_LEVEL", DEFAULT_LOG_LEVEL).upper()
    level = getattr(logging, level_name, logging.INFO)

    logging.basicConfig(format="%(message)s", level=level, stream=sys.stdout)
    logging.getLogger().setLevel(level)

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.contextvars.merge_contextvars,
            _restructure_event,
            structlog.processors.TimeStamper(fmt="iso"),
            _render_console if console else structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )


def bind_context_vars(**kwargs: Any) -> None:
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context_fields() -> None:
    structlog.contextvars.clear_contextvars()


def get_logger(name: str = "") -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name or __name__)  # type: ignore


class PhaseTimer:
    """Elapsed wall time of one pipeline phase."""

    def __init__(self) -> None:
        self._start = perf_counter()
        self.duration_ms = 0

    def stop(self) -> int:
        self.duration_ms = int((perf_counter() - self._start) * 1000)
        return self.duration_ms


@contextmanager
def log_phase(log: structlog.stdlib.BoundLogger, phase: str, **fields: Any) -> Iterator[dict[str, Any]]:
    """Log ``workflow.<phase>.completed`` with its duration when the block exits cleanly.

    The yielded dict collects extra fields for the completion record. Failures are
    left to propagate; the caller's error handler logs them.
    """
    timer = PhaseTimer()
    summary: dict[str, Any] = dict(fields)
    yield summary
    log.info(f"workflow.{phase}.completed", duration_ms=timer.stop(), **summary)
