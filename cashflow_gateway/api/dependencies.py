"""Dependency injection and error mapping for FastAPI endpoints"""

import logging

from fastapi import HTTPException, Request

from cashflow_gateway.domain.exceptions import (
    DomainException,
    InvalidDateRangeError,
    SourceNotFoundError,
)

logger = logging.getLogger(__name__)


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def domain_error_to_http(exc: DomainException, request_id: str) -> HTTPException:
    """
    Map a domain error to an HTTP error.

    - SourceNotFoundError → 404
    - InvalidDateRangeError → 400
    - any other DomainException (bad ids, invalid rule config) → 422
    """
    if isinstance(exc, SourceNotFoundError):
        status_code = 404
    elif isinstance(exc, InvalidDateRangeError):
        status_code = 400
    else:
        status_code = 422

    logger.warning(
        f"{type(exc).__name__}: {exc}",
        extra={"request_id": request_id, "status_code": status_code},
    )
    return HTTPException(status_code=status_code, detail=str(exc))
