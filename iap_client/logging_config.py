"""Structured logging for the purchase client and the stub payment API.

Events are snake_case names with keyword fields. A purchase attempt binds
purchase_id and product_id; the stub API binds request_id. Payment tokens
and receipts are shortened before rendering.
"""

import logging
import os
import sys
from typing import Any, Optional

import structlog
from structlog.typing import EventDict, Processor

APP_NAME = "iap-purchase-client"
SECRET_FIELDS = ("jwt", "receipt")


def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Tag every event with the application name."""
    event_dict["app"] = APP_NAME
    return event_dict


def shorten_secrets(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Truncate JWTs and receipts so full tokens never reach the logs."""
    for field in SECRET_FIELDS:
        value = event_dict.get(field)
        if isinstance(value, str):
            event_dict[field] = truncate(value)
    return event_dict


def configure_logging(log_level: Optional[str] = None, json_format: Optional[bool] = None) -> None:
    """Configure structlog on top of the standard logging module.

    Args:
        log_level: Level name; defaults to the LOG_LEVEL env var, then INFO
        json_format: JSON lines if True, colored console output if False;
            defaults to LOG_FORMAT env var ("json" or "console"), then JSON
    """
    if log_level is None:
        log_level = os.getenv("LOG_LEVEL", "INFO")
    if json_format is None:
        json_format = os.getenv("LOG_FORMAT", "json").lower() == "json"

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        add_app_context,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        shorten_secrets,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(exception_formatter=structlog.dev.plain_traceback)
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind values into every subsequent event of the current context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


def truncate(value: Optional[str], length: int = 20) -> Optional[str]:
    """Shorten a token for display."""
    if value is None:
        return None
    return value[:length] + "..." if len(value) > length else value


def log_deprecation(msg: str, version_deprecated: str) -> None:
    """Log a deprecation warning with the version it was deprecated in."""
    get_logger("iap_client.deprecation").warning(
        "deprecated_usage",
        message=msg,
        version_deprecated=version_deprecated,
    )
