"""Structured logging for the calendar engine.

All modules log through ``logging.getLogger(__name__)``; structlog's
ProcessorFormatter renders those stdlib records.  The console gets either a
colored ``text`` rendering or ``json`` lines, and an optional log file always
gets JSON.

Every record is stamped with the hotel (property) the engine serves, taken
from ``[calendar] property`` in the config, and with the OpenTelemetry ids of
the span it was logged in, so aggregation passes can be correlated.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from contextvars import ContextVar
from pathlib import Path
from typing import Any

import structlog
from opentelemetry import trace

_property_context: ContextVar[str | None] = ContextVar("property_name", default=None)

_ZERO_TRACE_ID = "0" * 32
_ZERO_SPAN_ID = "0" * 16

_RENDERERS: dict[str, Callable[[], Any]] = {
    "text": structlog.dev.ConsoleRenderer,
    "json": structlog.processors.JSONRenderer,
}
_TIMESTAMPS = {"text": "%H:%M:%S", "json": "iso"}
_LEVELS = {
    name: getattr(logging, name) for name in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
}


def set_property_context(name: str | None) -> None:
    _property_context.set(name)


def get_property_context() -> str | None:
    return _property_context.get()


def add_property_context(
    logger: logging.Logger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: dict,
) -> dict:
    """Stamp the served property on the record."""
    event_dict["property"] = _property_context.get()
    return event_dict


def add_otel_context(
    logger: logging.Logger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: dict,
) -> dict:
    """Stamp ``trace_id``/``span_id`` of the current span, zeros outside one."""
    span_context = trace.get_current_span().get_span_context()
    if span_context.is_valid:
        event_dict["trace_id"] = trace.format_trace_id(span_context.trace_id)
        event_dict["span_id"] = trace.format_span_id(span_context.span_id)
    else:
        event_dict["trace_id"] = _ZERO_TRACE_ID
        event_dict["span_id"] = _ZERO_SPAN_ID
    return event_dict


def shared_processors(timestamp_fmt: str = "iso") -> list[structlog.types.Processor]:
    """Enrichment applied to every record before rendering."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt=timestamp_fmt),
        add_property_context,
        add_otel_context,
        structlog.stdlib.ExtraAdder(),
    ]


def _handler(
    handler: logging.Handler,
    renderer: Any,
    pre_chain: list[structlog.types.Processor],
) -> logging.Handler:
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
            foreign_pre_chain=pre_chain,
        )
    )
    return handler


def configure_logging(
    level: str = "INFO",
    fmt: str = "text",
    log_file: Path | None = None,
    property_name: str | None = None,
) -> None:
    """Install console (and optional file) handlers on the root logger.

    Calling it again replaces the previous handlers.  Unknown formats fall
    back to ``text`` and unknown levels to ``INFO``.
    """
    set_property_context(property_name)
    fmt = fmt if fmt in _RENDERERS else "text"
    console_chain = shared_processors(_TIMESTAMPS[fmt])

    handlers = [_handler(logging.StreamHandler(sys.stderr), _RENDERERS[fmt](), console_chain)]
    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            _handler(
                logging.FileHandler(log_path),
                structlog.processors.JSONRenderer(),
                shared_processors(),
            )
        )

    root = logging.getLogger()
    for old in root.handlers[:]:
        root.removeHandler(old)
        old.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(_LEVELS.get(level.upper(), logging.INFO))

    structlog.configure(
        processors=[*console_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
