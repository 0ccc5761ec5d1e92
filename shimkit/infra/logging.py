"""structlog setup for processes that embed shimkit.

shimkit never configures logging on import. Its modules hold
``structlog.get_logger()`` proxies and emit snake_case events
(``shim_started``, ``adapter_synthesized``, ...) through whatever
configuration the host process has installed. Hosts without their own
structlog setup can call setup_logging() or setup_logging_from_settings()
once during bootstrap, before shimkit.start().
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from shimkit.config.settings import ShimSettings


def _processors(json_output: bool) -> list[structlog.types.Processor]:
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_output:
        processors += [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    else:
        # ConsoleRenderer formats exc_info itself.
        processors.append(structlog.dev.ConsoleRenderer())
    return processors


def setup_logging(
    *,
    json_output: bool = False,
    log_level: str = "INFO",
) -> None:
    """Install a structlog configuration that renders shimkit's events.

    Args:
        json_output: Render one JSON object per event instead of console lines.
        log_level: Lowest level emitted. Mirror-target and contract-name drops
            are logged at DEBUG, registrations and synthesis at INFO.
    """
    structlog.configure(
        processors=_processors(json_output),
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(log_level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        # Module-level proxies must pick up a later reconfiguration by the host.
        cache_logger_on_first_use=False,
    )


def setup_logging_from_settings(settings: ShimSettings) -> None:
    """setup_logging() driven by SHIMKIT_LOG_LEVEL and SHIMKIT_JSON_LOGS."""
    setup_logging(json_output=settings.json_logs, log_level=settings.log_level)
