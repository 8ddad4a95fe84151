"""Structured logging for find-reviewer."""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator

import structlog

# Correlation ids copied into every event that does not set them itself
_CONTEXT: dict[str, ContextVar[str | None]] = {
    "run_id": ContextVar("run_id", default=None),
    "request_id": ContextVar("request_id", default=None),
    "identity": ContextVar("identity", default=None),
}


def set_run_id(run_id: str) -> None:
    """Tag all subsequent log events with the process run id."""
    _CONTEXT["run_id"].set(run_id)


def set_request_id(request_id: str | None) -> None:
    _CONTEXT["request_id"].set(request_id)


@contextmanager
def identity_context(identity: str) -> Iterator[None]:
    """Tag events logged inside the block with the acting identity."""
    token = _CONTEXT["identity"].set(identity)
    try:
        yield
    finally:
        _CONTEXT["identity"].reset(token)


def add_context_ids(
    logger: structlog.types.WrappedLogger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Processor adding the bound correlation ids."""
    for key, var in _CONTEXT.items():
        value = var.get()
        if value:
            event_dict.setdefault(key, value)
    return event_dict


def setup_logging(
    level: str = "INFO",
    json_output: bool = True,
    log_file: str | None = None,
) -> None:
    """
    Configure structlog on top of the stdlib root logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: One JSON object per line; otherwise console output
        log_file: Also append every line to this file
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper()),
        handlers=handlers,
        force=True,
    )

    processors: list[structlog.types.Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
        add_context_ids,
        structlog.processors.StackInfoRenderer(),
    ]
    if json_output:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.EventRenamer("message"),
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_component_logger(component: str) -> structlog.stdlib.BoundLogger:
    """
    Get a logger bound to a specific component.

    The logger is lazy: module-level loggers pick up whatever
    ``setup_logging`` configures later.

    Args:
        component: Component name (e.g., "matching_engine", "dispatcher")
    """
    return structlog.get_logger(component=component)


class Loggers:
    """Pre-configured loggers for main components."""

    @staticmethod
    def matching_engine() -> structlog.stdlib.BoundLogger:
        return get_component_logger("matching_engine")

    @staticmethod
    def authentication() -> structlog.stdlib.BoundLogger:
        return get_component_logger("authentication")

    @staticmethod
    def dispatcher() -> structlog.stdlib.BoundLogger:
        return get_component_logger("dispatcher")

    @staticmethod
    def sweeper() -> structlog.stdlib.BoundLogger:
        return get_component_logger("sweeper")

    @staticmethod
    def api() -> structlog.stdlib.BoundLogger:
        return get_component_logger("api")

    @staticmethod
    def settings() -> structlog.stdlib.BoundLogger:
        return get_component_logger("settings")

    @staticmethod
    def main() -> structlog.stdlib.BoundLogger:
        return get_component_logger("main")
