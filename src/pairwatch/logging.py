"""Structured logging via structlog, routed through stdlib handlers.

Every event emitted while a polling loop is ticking carries ``loop=<name>``
and ``tick=<n>``, added by the ``add_loop_context`` processor from a context
variable, so jobs never thread the logger or the tick through their calls.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

import structlog
from structlog.types import EventDict, WrappedLogger

_current_tick: ContextVar[tuple[str, int] | None] = ContextVar(
    "pairwatch_loop_tick", default=None
)

# Noisy per-request loggers from the HTTP and server stacks.
_QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def add_loop_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Stamp the active polling loop and tick onto the event, if any."""
    current = _current_tick.get()
    if current is not None:
        loop_name, tick = current
        event_dict.setdefault("loop", loop_name)
        event_dict.setdefault("tick", tick)
    return event_dict


def setup_logging(log_level: str = "INFO", log_format: str = "console") -> None:
    """Configure structlog and the root stdlib logger.

    Args:
        log_level: Root level name ("DEBUG", "INFO", ...).
        log_format: "json" for machine-readable output, anything else for the
            human-readable console renderer.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        add_loop_context,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if log_format.lower() == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Records from plain stdlib loggers (uvicorn, aiosqlite) get the same
    # timestamp and loop stamping before rendering.
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
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
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


@contextmanager
def loop_context(loop_name: str, tick: int) -> Iterator[None]:
    """Mark the enclosed block as tick ``tick`` of polling loop ``loop_name``."""
    token = _current_tick.set((loop_name, tick))
    try:
        yield
    finally:
        _current_tick.reset(token)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger with the given name."""
    return structlog.get_logger(name)
