"""Structured logging for storedb.

storedb is an embedded library, so it never touches the root logger or the
global structlog configuration. Module loggers are structlog loggers
wrapped around stdlib loggers under ``storedb``: every event becomes a
plain ``logging`` record whose message is the event name and whose bound
keys travel as record attributes. Hosts that configure ``logging`` get the
events through their own handlers and levels; without any configuration
nothing is printed. ``setup_logging`` installs a structlog renderer on the
``storedb`` logger for applications that want one.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from storedb.infrastructure.config import ObservabilityConfig

LIBRARY_LOGGER = "storedb"

# Events are handed to stdlib logging as (msg=event, extra=bound keys)
_EMIT_PROCESSORS: list[Processor] = [
    structlog.stdlib.filter_by_level,
    structlog.stdlib.render_to_log_kwargs,
]

logging.getLogger(LIBRARY_LOGGER).addHandler(logging.NullHandler())


def add_library_name(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Tag every entry with the emitting library."""
    event_dict.setdefault("library", LIBRARY_LOGGER)
    return event_dict


def setup_logging(config: ObservabilityConfig | None = None) -> logging.Logger:
    """
    Render storedb events with structlog.

    Args:
        config: Observability settings; defaults are used when omitted.

    Returns:
        The configured stdlib ``storedb`` logger.
    """
    config = config or ObservabilityConfig()

    pre_chain: list[Processor] = [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.ExtraAdder(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        add_library_name,
    ]

    if config.log_format == "json":
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=pre_chain,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    library_logger = logging.getLogger(LIBRARY_LOGGER)
    library_logger.handlers.clear()
    library_logger.addHandler(handler)
    library_logger.setLevel(config.log_level)
    library_logger.propagate = False
    return library_logger


def get_logger(name: str | None = None, **initial_context: Any) -> Any:
    """
    Get a bound logger for a storedb module.

    Args:
        name: Module name; nested under the ``storedb`` stdlib logger.
        **initial_context: Key/values bound to every event.

    Returns:
        A structlog stdlib ``BoundLogger``.
    """
    logger = structlog.wrap_logger(
        logging.getLogger(name or LIBRARY_LOGGER),
        processors=_EMIT_PROCESSORS,
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger
