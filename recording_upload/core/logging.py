"""Structured logging configuration using structlog.

Production emits one JSON object per line; every other environment gets
console lines. Upload code binds ``upload_id`` through
``bind_upload_context`` so all attempts of one upload share it, and the
``redact_secrets`` processor masks credential-like fields before rendering.
"""

import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from recording_upload.core.config import get_config

# Event keys whose values must never reach a log sink
SENSITIVE_KEYS = frozenset(
    {
        "access_token",
        "authorization",
        "client_secret",
        "refresh_token",
        "upload_url",
    }
)

REDACTED = "***"


def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add app name and environment to every event."""
    config = get_config()
    event_dict["app"] = config.app_name
    event_dict["env"] = config.app_env
    return event_dict


def redact_secrets(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Mask values of sensitive keys.

    Session URLs are included: a resumable session URL alone is enough to
    write to the upload.
    """
    for key in SENSITIVE_KEYS.intersection(event_dict):
        if event_dict[key]:
            event_dict[key] = REDACTED
    return event_dict


def _renderer_chain(production: bool) -> list[Processor]:
    if production:
        return [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    return [
        structlog.processors.format_exc_info,
        structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()),
    ]


def setup_logging() -> None:
    """Configure stdlib logging and structlog from the application config.

    Example:
        >>> setup_logging()
        >>> logger = get_logger(__name__)
        >>> logger.info("Upload started", size=614400)
    """
    config = get_config()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, config.log_level),
    )

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        add_app_context,
        redact_secrets,
    ]

    if config.debug:
        processors.append(
            structlog.processors.CallsiteParameterAdder(
                parameters=[
                    structlog.processors.CallsiteParameter.MODULE,
                    structlog.processors.CallsiteParameter.LINENO,
                ]
            )
        )

    processors.extend(_renderer_chain(config.is_production))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger, usually with ``__name__``."""
    return structlog.get_logger(name)


@contextmanager
def bind_upload_context(upload_id: str | None = None, **values: Any) -> Iterator[str]:
    """Bind an upload id (and extra values) to every log event in the block.

    Args:
        upload_id: Correlation id; generated when omitted
        **values: Additional context, e.g. ``size``

    Yields:
        The upload id in effect
    """
    upload_id = upload_id or uuid.uuid4().hex[:12]
    with structlog.contextvars.bound_contextvars(upload_id=upload_id, **values):
        yield upload_id


__all__ = [
    "REDACTED",
    "SENSITIVE_KEYS",
    "add_app_context",
    "bind_upload_context",
    "get_logger",
    "redact_secrets",
    "setup_logging",
]
