"""Structured logging for the gateway (structlog over stdlib logging).

Every entry logged while a request is in flight carries that request's
context (request_id, method, path). Stdlib records from uvicorn and boto3 go
through the same processor chain, so all output shares one format.

Telegram download and API URLs embed the bot token. A redaction processor
masks it in every string field before rendering.

Usage:
    from filegate.logging import get_logger

    logger = get_logger(__name__)
    logger.info("file_resolved", kv_key="img:abc.png")
"""

import logging
import re
import sys
from contextvars import ContextVar

import structlog

_request_context: ContextVar[dict[str, str] | None] = ContextVar(
    "request_context", default=None
)

BOT_TOKEN_PATTERN = re.compile(r"/bot\d+:[A-Za-z0-9_-]+")
REDACTED_BOT_PATH = "/bot<redacted>"


def add_request_context(logger: logging.Logger, method_name: str, event_dict: dict) -> dict:
    """Merge the current request's context into the event, without overriding fields."""
    context = _request_context.get()
    if context:
        for key, value in context.items():
            event_dict.setdefault(key, value)
    return event_dict


def redact_bot_tokens(logger: logging.Logger, method_name: str, event_dict: dict) -> dict:
    """Mask /bot<token> path segments in string fields."""
    for key, value in event_dict.items():
        if isinstance(value, str) and "/bot" in value:
            event_dict[key] = BOT_TOKEN_PATTERN.sub(REDACTED_BOT_PATH, value)
    return event_dict


def configure_logging(json_format: bool = True) -> None:
    """Configure structlog and the root stdlib logger.

    Args:
        json_format: JSON lines when True, console-friendly output otherwise.
    """
    shared_processors = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        add_request_context,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        redact_bot_tokens,
    ]

    renderer = (
        structlog.processors.JSONRenderer() if json_format else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.INFO)

    for noisy in ("httpx", "httpcore", "botocore", "boto3", "urllib3", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger, typically for __name__."""
    return structlog.get_logger(name)


def set_request_context(
    request_id: str, *, path: str | None = None, method: str | None = None
) -> None:
    """Bind request fields to every log entry in the current context.

    path is the raw request path and never includes the query string.
    """
    context = {"request_id": request_id}
    if path is not None:
        context["path"] = path
    if method is not None:
        context["method"] = method
    _request_context.set(context)


def clear_request_context() -> None:
    _request_context.set(None)


def get_request_id() -> str | None:
    """Get the current request ID from context."""
    context = _request_context.get()
    return context.get("request_id") if context else None
