"""Application error taxonomy and FastAPI exception handlers."""

import structlog
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from askinbio.core.observability import get_request_id

logger = structlog.get_logger()


class AskInBioError(Exception):
    """Base class for application errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"
    default_message: str = "An unexpected error occurred"

    def __init__(self, message: str | None = None, code: str | None = None) -> None:
        self.message = message or self.default_message
        if code is not None:
            self.code = code
        super().__init__(self.message)


class Unauthorized(AskInBioError):
    """No session, or an invalid one, on a protected operation."""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHORIZED"
    default_message = "Not authenticated"


class Forbidden(AskInBioError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"
    default_message = "You do not have permission to access this resource"


class NotFound(AskInBioError):
    """A referenced entity does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    default_message = "Resource not found"


class Conflict(AskInBioError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"
    default_message = "Resource already exists"


class RecordError(AskInBioError):
    """A click event could not be persisted.

    Click tracking is best-effort, so this error is absorbed by the
    tracking action and never reaches an HTTP handler.
    """

    code = "RECORD_ERROR"
    default_message = "Failed to track click"


class UpstreamError(AskInBioError):
    """The identity provider or the datastore is unreachable or failing."""

    status_code = status.HTTP_502_BAD_GATEWAY
    code = "UPSTREAM_ERROR"
    default_message = "Service temporarily unavailable"


class AuthProviderError(AskInBioError):
    """The identity provider rejected a request (4xx)."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "AUTH_ERROR"
    default_message = "Authentication request was rejected"

    def __init__(
        self,
        message: str | None = None,
        code: str | None = None,
        provider_status: int | None = None,
    ) -> None:
        super().__init__(message, code)
        self.provider_status = provider_status


async def _app_error_handler(request: Request, exc: AskInBioError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Request failed", code=exc.code, error=exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


async def _datastore_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    # Datastore details are logged, never returned
    logger.error("Datastore error", error=str(exc), exc_type=type(exc).__name__)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error",
            "code": "INTERNAL_ERROR",
            "request_id": get_request_id(),
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach handlers mapping the error taxonomy to JSON responses."""
    app.add_exception_handler(AskInBioError, _app_error_handler)
    app.add_exception_handler(SQLAlchemyError, _datastore_error_handler)
