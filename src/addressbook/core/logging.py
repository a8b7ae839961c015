"""Structured logging for address book operations.

All call sites keep using ``logging.getLogger(__name__)``; records are
rendered through structlog's ``ProcessorFormatter`` as coloured text or
JSON lines.

Each record carries the operation it was emitted under (``create``,
``merge``, ``remove``...) together with a short run id, so the
interleaved logs of concurrent merges and imports can be told apart.
Records emitted inside an OpenTelemetry span also carry its trace and
span ids.  With ``log_root`` set, a rotating JSON copy is kept in
``{log_root}/addressbook.log``.
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
import uuid
from contextvars import ContextVar, Token
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from opentelemetry import trace

if TYPE_CHECKING:
    from addressbook.config import LoggingConfig

LOG_FILENAME = "addressbook.log"
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 3

# Transport chatter from the store client stays at WARNING.
_NOISE_LOGGERS = ("httpx", "httpcore")


@dataclass(frozen=True)
class OperationContext:
    name: str
    run_id: str


_operation_context: ContextVar[OperationContext | None] = ContextVar(
    "contact_operation", default=None
)


def set_operation_context(name: str) -> Token:
    """Enter operation *name* with a fresh run id; return the token to reset it."""
    return _operation_context.set(OperationContext(name=name, run_id=uuid.uuid4().hex[:12]))


def reset_operation_context(token: Token) -> None:
    _operation_context.reset(token)


def get_operation_context() -> str | None:
    current = _operation_context.get()
    return current.name if current is not None else None


def get_operation_run_id() -> str | None:
    current = _operation_context.get()
    return current.run_id if current is not None else None


def add_operation_context(
    logger: logging.Logger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: dict,
) -> dict:
    """Inject ``operation`` and, inside an operation, ``operation_run``."""
    current = _operation_context.get()
    event_dict["operation"] = current.name if current is not None else None
    if current is not None:
        event_dict["operation_run"] = current.run_id
    return event_dict


def add_trace_context(
    logger: logging.Logger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: dict,
) -> dict:
    """Inject ``trace_id`` / ``span_id`` when a recording span is active."""
    ctx = trace.get_current_span().get_span_context()
    if ctx.is_valid:
        event_dict["trace_id"] = format(ctx.trace_id, "032x")
        event_dict["span_id"] = format(ctx.span_id, "016x")
    return event_dict


def _shared_processors(timestamp: str) -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt=timestamp),
        add_operation_context,
        add_trace_context,
        structlog.stdlib.ExtraAdder(),
    ]


def _formatter(renderer: structlog.types.Processor, timestamp: str) -> logging.Formatter:
    return structlog.stdlib.ProcessorFormatter(
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        foreign_pre_chain=_shared_processors(timestamp),
    )


def configure_logging(
    level: str = "INFO",
    fmt: str = "text",
    log_root: Path | str | None = None,
) -> None:
    """Configure structured logging for the process.

    *fmt* is ``"text"`` (coloured console, ``HH:MM:SS`` stamps) or
    ``"json"`` (ISO stamps).  The file copy is always JSON.  Calling this
    again replaces the previous handlers.
    """
    if fmt == "json":
        timestamp = "iso"
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    elif fmt == "text":
        timestamp = "%H:%M:%S"
        renderer = structlog.dev.ConsoleRenderer()
    else:
        raise ValueError(f"Unknown log format {fmt!r}; expected 'text' or 'json'")

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(_formatter(renderer, timestamp))

    root = logging.getLogger()
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()
    root.addHandler(console)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in _NOISE_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if log_root is not None:
        directory = Path(log_root)
        directory.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            directory / LOG_FILENAME,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
        )
        file_handler.setFormatter(_formatter(structlog.processors.JSONRenderer(), "iso"))
        file_handler.setLevel(logging.DEBUG)
        root.addHandler(file_handler)

    structlog.configure(
        processors=[
            *_shared_processors(timestamp),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def configure_logging_from_config(config: LoggingConfig) -> None:
    """Apply the ``[logging]`` section of ``addressbook.toml``."""
    configure_logging(level=config.level, fmt=config.format, log_root=config.log_root)
