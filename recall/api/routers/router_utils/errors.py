"""
Domain exception to HTTP status mapping.

Dependencies: fastapi, recall.core.exceptions
System role: Keeps status-code policy in one place for all routers
"""

import logging

from fastapi import HTTPException

from recall.core.exceptions import (
    ConfigurationError,
    RecallException,
    StorageError,
    TransientProviderError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_TYPE: tuple[tuple[type[RecallException], int], ...] = (
    (ValidationError, 400),
    (ConfigurationError, 503),
    (TransientProviderError, 502),
    (StorageError, 500),
)


def to_http_exception(error: RecallException) -> HTTPException:
    """
    Convert a domain exception to an HTTPException.

    Args:
        error: Raised domain exception

    Returns:
        HTTPException: 400 validation, 503 configuration, 502 provider,
        500 storage or anything else
    """
    status_code = 500
    for error_type, code in _STATUS_BY_TYPE:
        if isinstance(error, error_type):
            status_code = code
            break

    if status_code >= 500:
        logger.error(f"{__name__}:to_http_exception - {type(error).__name__}: {error}")
    return HTTPException(status_code=status_code, detail=error.message)
