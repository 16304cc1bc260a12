"""
structlog setup for the analytics core.

The library never configures logging on import. A host application calls
configure_logging() once; until then structlog's defaults apply. Facade
calls bind the active selection label into the context so every event an
engine component emits during that call carries it.
"""

import logging
import sys
from contextlib import contextmanager
from typing import Any, Iterator, Optional

import structlog
from structlog.types import EventDict, Processor

from orderlens.config import get_settings

COMPONENT = "orderlens"


def add_component(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Tag events so host applications can route analytics logs."""
    event_dict.setdefault("component", COMPONENT)
    return event_dict


def add_severity(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict["severity"] = method_name.upper()
    return event_dict


def build_processors(log_format: str, dev_mode: bool) -> list[Processor]:
    """Processor chain ending in a JSON renderer outside dev mode, console otherwise."""
    if log_format == "json" and not dev_mode:
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=dev_mode)

    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        add_component,
        add_severity,
        renderer,
    ]


def configure_logging(level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """
    Route orderlens events through the stdlib root logger.

    Args:
        level: Log level name; defaults to ORDERLENS_LOG_LEVEL
        log_format: "json" or "console"; defaults to ORDERLENS_LOG_FORMAT
    """
    settings = get_settings()
    level = (level or settings.log_level).upper()
    log_format = (log_format or settings.log_format).lower()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level, logging.INFO),
    )
    structlog.configure(
        processors=build_processors(log_format, settings.dev_mode),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


@contextmanager
def bind_selection(label: str) -> Iterator[None]:
    """Attach the selection label to every event logged inside the block."""
    with structlog.contextvars.bound_contextvars(selection=label):
        yield


def get_logger(name: str = __name__) -> structlog.BoundLogger:
    return structlog.get_logger(name)
