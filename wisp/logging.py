"""Structured logging for Wisp.

structlog renders through stdlib logging so uvicorn's records and ours share
one handler. Two formats:
- console: human-readable for development (default)
- json: one object per line for production

Request-scoped fields (``request_id``, ``path``) are bound once by the
admission middleware with ``request_context`` and merged into every event
logged while that request is handled.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from collections.abc import Iterator

_configured = False

_UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def configure_logging(
    log_format: str | None = None,
    level: str | None = None,
) -> None:
    """Configure structured logging for the process.

    Only the first call takes effect.

    Args:
        log_format: "json" or "console". Default via WISP_LOG_FORMAT env or "console".
        level: DEBUG, INFO, WARNING or ERROR. Default via WISP_LOG_LEVEL env or "INFO".
    """
    global _configured
    if _configured:
        return

    resolved_format = (log_format or os.environ.get("WISP_LOG_FORMAT", "console")).lower()
    resolved_level = getattr(
        logging, (level or os.environ.get("WISP_LOG_LEVEL", "INFO")).upper(), logging.INFO
    )

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    renderer: structlog.types.Processor
    if resolved_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *pre_chain,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # foreign_pre_chain gives uvicorn's plain records the same timestamp and level.
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=pre_chain,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(resolved_level)

    for name in _UVICORN_LOGGERS:
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True

    _configured = True


def get_logger(component: str) -> structlog.stdlib.BoundLogger:
    """Return a logger with component context.

    Args:
        component: Component name (e.g., "pipeline.engine", "server.admission").

    Returns:
        BoundLogger with the component field bound.
    """
    configure_logging()
    return structlog.get_logger().bind(component=component)  # type: ignore[no-any-return]


@contextmanager
def request_context(**fields: Any) -> Iterator[None]:
    """Bind *fields* to every log event emitted inside the block.

    Bindings live in context variables, so concurrent requests never see
    each other's fields.
    """
    with structlog.contextvars.bound_contextvars(**fields):
        yield
