"""
HTTP error rendering.

Every error leaves the service as `{"success": false, "message": ...}`.
"""

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from internal.domain.errors import (
    CartNotFoundError,
    DomainError,
    DomainValidationError,
    InvalidQuantityError,
    InvalidQueryError,
    LineNotFoundError,
    ProductNotFoundError,
)
from pkg.logger.logger import get_logger


logger = get_logger(__name__)


_STATUS_BY_ERROR = (
    (ProductNotFoundError, status.HTTP_404_NOT_FOUND),
    (CartNotFoundError, status.HTTP_404_NOT_FOUND),
    (LineNotFoundError, status.HTTP_404_NOT_FOUND),
    (InvalidQueryError, status.HTTP_400_BAD_REQUEST),
    (InvalidQuantityError, status.HTTP_400_BAD_REQUEST),
    (DomainValidationError, status.HTTP_400_BAD_REQUEST),
)


def to_http_exception(error: DomainError) -> HTTPException:
    """
    Translate a domain error into an HTTPException.

    Args:
        error: Raised domain error.

    Returns:
        HTTPException carrying the error message.
    """
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            break
    else:
        status_code = status.HTTP_400_BAD_REQUEST

    logger.warning(
        "Request rejected",
        error=type(error).__name__,
        message=error.message,
        status_code=status_code,
    )
    return HTTPException(status_code=status_code, detail=error.message)


def _error_body(message: str) -> dict:
    return {"success": False, "message": message}


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body("; ".join(messages) or "Invalid request"),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Install the error envelope handlers on an application."""
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
