"""Logfire setup plus the small helpers services use for structured logs.

Modules log through ``logging.getLogger(__name__)``; Logfire picks the records up.
OAuth secrets are scrubbed from span attributes, and services refer to tokens by
fingerprint only:

    log_with_user_context(logger, "info", "Google tokens stored", user_id="u1",
                          token=token_fingerprint(access_token))
"""

import hashlib
import logging

import logfire
from fastapi import FastAPI

from tasukun.core.config import settings


SCRUBBED_ATTRIBUTE_PATTERNS = ["access_token", "refresh_token", "client_secret", "authorization_code"]


def configure_logfire() -> None:
    """Configure Pydantic Logfire; nothing leaves the process without a token."""
    logfire.configure(
        token=settings.logfire_token,
        service_name="tasukun",
        service_version="0.1.0",
        environment="production" if settings.is_production else "development",
        send_to_logfire="if-token-present",
        scrubbing=logfire.ScrubbingOptions(extra_patterns=SCRUBBED_ATTRIBUTE_PATTERNS),
    )
    logging.getLogger(__name__).info("Logfire configured (remote export: %s)", bool(settings.logfire_token))


def instrument_fastapi(app: FastAPI) -> None:
    """Trace every request handled by the app."""
    logfire.instrument_fastapi(app)


def span(name: str) -> logfire.LogfireSpan:
    """Span around a service call, named ``module.function``."""
    return logfire.span(name)


def token_fingerprint(token: str | None) -> str | None:
    """Short stable digest that identifies a token in logs without revealing it."""
    if not token:
        return None
    return hashlib.sha256(token.encode()).hexdigest()[:12]


def log_with_user_context(
    logger: logging.Logger,
    level: str,
    message: str,
    user_id: str | None = None,
    **extra: object,
) -> None:
    """Log a message with the acting user attached as structured context.

    Args:
        logger: Logger instance to use
        level: Log level ("debug", "info", "warning", "error", "critical")
        message: Log message
        user_id: Acting user, omitted from the context when unknown
        **extra: Additional context fields (task_id, event_id, ...)
    """
    context = {"user_id": user_id, **extra} if user_id else extra
    getattr(logger, level.lower())(message, extra=context)
