"""
Logging utilities for safe structured logging.

Renders arbitrary context values into short, log-safe strings so that
vectors and long chunk texts never flood the log.

Dependencies: logging (stdlib)
System role: Logging helper functions
"""

import logging
from typing import Any


def safe_log_value(value: Any, max_length: int = 120) -> str:
    """
    Safely convert any value to a string for logging.

    Handles lists, dicts, floats, None, and other types safely.

    Args:
        value: Value to convert
        max_length: Maximum length before truncating

    Returns:
        str: Safe string representation
    """
    try:
        if value is None:
            return "None"
        if isinstance(value, float):
            val_str = f"{value:.3f}"
        elif isinstance(value, str):
            val_str = value
        elif isinstance(value, (list, tuple)):
            val_str = f"{type(value).__name__}({len(value)} items)"
        elif isinstance(value, dict):
            val_str = f"dict({len(value)} keys)"
        else:
            val_str = str(value)

        if len(val_str) > max_length:
            return val_str[:max_length] + f"... ({len(val_str)} chars)"
        return val_str
    except Exception as e:
        return f"<unable to log: {type(e).__name__}>"


def format_context(context: dict[str, Any]) -> str:
    """
    Render context as space separated key=value pairs.

    Args:
        context: Arbitrary key-value pairs

    Returns:
        str: Rendered context, empty when there is none
    """
    return " ".join(f"{key}={safe_log_value(val)}" for key, val in context.items())


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    **context,
) -> None:
    """
    Log a message with structured context, safely converting all values.

    The context is appended to the message and also attached as record
    attributes under a ``context`` key for structured handlers.

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, etc.)
        message: Log message
        **context: Context dict with arbitrary key-value pairs
    """
    rendered = format_context(context)
    text = f"{message} | {rendered}" if rendered else message
    logger.log(level, text, extra={"context": {k: safe_log_value(v) for k, v in context.items()}})
