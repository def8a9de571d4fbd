"""
Logging setup shared by the API server and the CLI.

structlog renders through stdlib logging, so dateparser and uvicorn
records come out in the same format as ours: JSON lines in production,
colored console lines otherwise. The request (or CLI run) correlation id
and the schema being filled ride along on every entry via context vars.
"""

from __future__ import annotations

import logging
import sys
import uuid
from contextvars import ContextVar
from typing import Any

import structlog

from voiceform.config import get_settings

# Set by RequestIdMiddleware per request and by scripts/fill_form.py per run
trace_id_var: ContextVar[str] = ContextVar("trace_id", default="")
form_id_var: ContextVar[str] = ContextVar("form_id", default="")


def _inject_context_vars(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Copy the non-empty correlation ids onto the entry."""
    trace_id = trace_id_var.get("")
    if trace_id:
        event_dict["trace_id"] = trace_id

    form_id = form_id_var.get("")
    if form_id:
        event_dict["form_id"] = form_id

    return event_dict


def generate_trace_id() -> str:
    """Short random id used when the caller sent no X-Request-ID."""
    return uuid.uuid4().hex[:12]


def setup_logging() -> None:
    """Install the stderr handler and structlog processors; safe to call twice."""
    settings = get_settings()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        _inject_context_vars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.is_production:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Foreign stdlib records (uvicorn, dateparser) share the renderer
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    # stderr keeps stdout clean for the CLI's JSON output
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(settings.log_level.upper())

    # dateparser and tzlocal log every language/locale lookup at DEBUG
    for noisy in ("dateparser", "tzlocal", "uvicorn.access", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
