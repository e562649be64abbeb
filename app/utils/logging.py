"""Error logging helpers that attach request context."""

import logging
import traceback
from os import getenv
from typing import Any, Optional

DEBUG = getenv("APP_DEBUG", "false").lower() == "true"

logger = logging.getLogger("AISolutions")


def debug_log(message: str, *args, **kwargs) -> None:
    """Log at DEBUG (or ``level=``) only when APP_DEBUG is on."""
    if DEBUG:
        level = kwargs.pop("level", logging.DEBUG)
        logger.log(level, message, *args, **kwargs)


def error_log(
    message: str,
    exc: Optional[Exception] = None,
    context: Optional[dict] = None,
) -> None:
    """
    Log an error with optional context and exception details.

    Args:
        message: Error message
        exc: Optional exception object
        context: Optional dictionary with additional context (path, ids, etc.)
    """
    parts = [message]

    if context:
        context_str = ", ".join(f"{k}={v}" for k, v in context.items())
        parts.append(f"Context: {context_str}")

    if exc:
        parts.append(f"Exception: {type(exc).__name__}: {exc}")
        if DEBUG:
            parts.append(f"Traceback:\n{''.join(traceback.format_exception(type(exc), exc, exc.__traceback__))}")

    full_message = " | ".join(parts)

    if exc:
        logger.error(full_message, exc_info=exc)
    else:
        logger.error(full_message)


def log_request_error(
    request: Any,
    exc: Exception,
    message: Optional[str] = None,
) -> None:
    """
    Log an exception with the request's method, path and user agent.

    Args:
        request: Request object (should have url, method, headers)
        exc: The exception
        message: Optional custom message
    """
    context = {}

    try:
        context["path"] = str(request.url.path)
        context["method"] = request.method
        context["user_agent"] = request.headers.get("user-agent", "unknown")
    except AttributeError:
        pass

    error_log(message or f"Unhandled exception: {type(exc).__name__}", exc=exc, context=context)
