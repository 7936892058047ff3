"""Structured logging configuration for piazza-client.

Sets up structlog with:
  - JSON rendering for production log ingestion
  - Pretty console rendering for local development
  - Standard fields: timestamp, level, logger, service, env, version

Usage
-----
Call ``configure_logging()`` once at application startup:

    from piazza_client.logging_setup import configure_logging
    configure_logging()

All library modules then just use:

    import structlog
    log = structlog.get_logger(__name__)
    log.info("job_poll_succeeded", job_id="...", polls=4)
"""
from __future__ import annotations

import logging
import sys
from typing import Any, MutableMapping

import structlog

from piazza_client import __version__
from piazza_client.config import settings

_LOCAL_ENVIRONMENTS = ("development", "local", "test")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def configure_logging(level: str | None = None, pretty: bool | None = None) -> None:
    """Configure structlog for structured logging.

    Args:
        level: Log level string (``"DEBUG"``, ``"INFO"``, etc.).
               Defaults to the ``LOG_LEVEL`` setting.
        pretty: Force console (True) or JSON (False) rendering. Defaults to
                console rendering when ``ENVIRONMENT`` is a local one.
    """
    log_level_str = (level or settings.LOG_LEVEL).upper()
    log_level = getattr(logging, log_level_str, logging.INFO)

    _configure_stdlib_logging(log_level)

    if pretty is None:
        pretty = settings.ENVIRONMENT.lower() in _LOCAL_ENVIRONMENTS

    structlog.configure(
        processors=build_processors(pretty=pretty),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    structlog.get_logger(__name__).debug(
        "logging_configured",
        level=log_level_str,
        pretty=pretty,
    )


# ---------------------------------------------------------------------------
# Processor chains
# ---------------------------------------------------------------------------


def build_processors(pretty: bool) -> list:
    shared: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_service_context,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if pretty:
        shared.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        shared.append(structlog.processors.JSONRenderer())

    return shared


# ---------------------------------------------------------------------------
# Custom processors
# ---------------------------------------------------------------------------


def add_service_context(
    logger: Any,
    method: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Inject service/env/version fields into every log event."""
    event_dict.setdefault("service", settings.PZ_SERVICE)
    event_dict.setdefault("env", settings.ENVIRONMENT)
    event_dict.setdefault("version", __version__)
    return event_dict


# ---------------------------------------------------------------------------
# stdlib logging setup
# ---------------------------------------------------------------------------


def _configure_stdlib_logging(level: int) -> None:
    """Route stdlib logging to stdout at the configured level."""
    root = logging.getLogger()
    root.setLevel(level)

    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)
        root.addHandler(handler)

    # Quieten noisy third-party loggers
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
