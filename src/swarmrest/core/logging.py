# src/swarmrest/core/logging.py
"""Structured logging for swarm-rest.

structlog is the front end; stdlib logging is the single sink. structlog
events are wrapped for ProcessorFormatter, and records from uvicorn and
starlette take the same pre-chain, so a server log is uniformly JSON or
uniformly console text.

Per-request fields (method, path, username) are bound as context
variables by the request handler. Every event logged while the request is
in flight carries them, including those from the orchestrator.

Usage:
    configure_logging(json_output=True, level="DEBUG")
    logger = get_logger(__name__)

    with request_context(method="GET", path="/Mouse#A"):
        logger.info("request_handled", entries=1)
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from structlog.stdlib import ProcessorFormatter

# Capped at WARNING (or the root level, if stricter)
_NOISY_LOGGERS: tuple[str, ...] = (
    "uvicorn.access",
    "httpx",
    "httpcore",
    "asyncio",
)


def _drop_formatter_bookkeeping(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Strip the ``_record`` and ``_from_structlog`` keys ProcessorFormatter injects."""
    del event_dict["_record"]
    del event_dict["_from_structlog"]
    return event_dict


def _pre_chain() -> list[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
    ]


def _renderers(json_output: bool) -> list[Any]:
    if json_output:
        return [
            _drop_formatter_bookkeeping,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    return [
        _drop_formatter_bookkeeping,
        structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()),
    ]


def configure_logging(
    *,
    json_output: bool = False,
    level: str = "INFO",
) -> None:
    """Route structlog and stdlib logging to stdout in one format.

    Safe to call repeatedly; each call replaces the root handlers.

    Args:
        json_output: JSON lines if True, console text otherwise.
        level: Root level name (DEBUG, INFO, WARNING, ERROR).
    """
    root_level = logging.getLevelName(level.upper())
    if not isinstance(root_level, int):
        raise ValueError(f"Unknown log level: {level!r}")

    pre_chain = _pre_chain()
    structlog.configure(
        processors=[*pre_chain, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Module-level loggers must follow reconfiguration (tests, CLI)
        cache_logger_on_first_use=False,
    )

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(
        ProcessorFormatter(
            processors=_renderers(json_output),
            foreign_pre_chain=pre_chain,
        )
    )
    root = logging.getLogger()
    root.handlers = [stdout_handler]
    root.setLevel(root_level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(root_level, logging.WARNING))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Module logger (pass ``__name__``)."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger


@contextmanager
def request_context(**fields: Any) -> Iterator[None]:
    """Bind fields to every event logged inside the block.

    Bindings are context-local, so concurrent requests on one event loop
    never see each other's fields. Previous values are restored on exit.
    """
    with structlog.contextvars.bound_contextvars(**fields):
        yield
