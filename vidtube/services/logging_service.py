"""structlog setup for VidTube: JSON lines in deployed environments, a
colored console renderer for local development, and a redaction step that
keeps credentials and tokens out of both."""

import logging
import sys
from typing import Any, Dict

import structlog

REDACTED = "REDACTED"

# Substrings; a key containing any of these is masked
SENSITIVE_MARKERS = (
    "password",
    "secret",
    "token",
    "api_key",
    "authorization",
    "cookie",
)


def _is_sensitive(key: str) -> bool:
    lowered = key.lower()
    return any(marker in lowered for marker in SENSITIVE_MARKERS)


def _scrub(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            k: REDACTED if isinstance(k, str) and _is_sensitive(k) else _scrub(v)
            for k, v in value.items()
        }
    return value


def redact_sensitive(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """Mask credential-like fields, including inside nested dicts such as
    request headers. The ``event`` name itself is left alone."""
    for key, value in event_dict.items():
        if key == "event":
            continue
        event_dict[key] = REDACTED if _is_sensitive(key) else _scrub(value)
    return event_dict


def configure_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    """Install the structlog pipeline.

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR; unknown names fall back to INFO
        log_format: "json" for one object per line, "console" for humans
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    # Third-party libraries (uvicorn, httpx) log through the stdlib
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    if log_format == "console":
        renderer: Any = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            redact_sensitive,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """structlog logger, tagged with ``logger_name`` when a name is given."""
    logger = structlog.get_logger()
    return logger.bind(logger_name=name) if name else logger
