"""Error taxonomy and the FastAPI handlers that render it.

Learn: Services raise AppError subclasses; they never build HTTP
responses themselves. The handlers registered here turn every error
into a JSON body of the shape {"error": "<human readable message>"}.

Storage-layer failures (SQLAlchemyError) and anything unexpected are
logged with full detail and surfaced as a generic 500 — raw database
error text never reaches the caller.
"""

from http import HTTPStatus
from typing import Any, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = structlog.get_logger()


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR
    default_message: str = "Server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message}


class ValidationError(AppError):
    """Missing or malformed input."""

    status_code = HTTPStatus.BAD_REQUEST
    default_message = "Missing fields"


class Unauthenticated(AppError):
    """Missing, invalid or expired bearer token. Terminal for the request."""

    status_code = HTTPStatus.UNAUTHORIZED
    default_message = "Access denied. Please log in."


class MalformedPrincipal(Unauthenticated):
    """Token verified but its payload does not carry a usable user id."""

    default_message = "Invalid token payload."


class InvalidCredentials(AppError):
    """Login failure. Deliberately silent about which half was wrong."""

    status_code = HTTPStatus.BAD_REQUEST
    default_message = "Invalid credentials"


class InvalidReference(AppError):
    """A referenced row does not exist or belongs to another user."""

    status_code = HTTPStatus.BAD_REQUEST
    default_message = "Invalid contact"


class Conflict(AppError):
    """Unique-constraint violation."""

    status_code = HTTPStatus.CONFLICT
    default_message = "Conflict"


class DuplicateIdentity(Conflict):
    default_message = "Email or phone already used"


class NotFound(AppError):
    """Row absent or not owned by the caller — the two are indistinguishable."""

    status_code = HTTPStatus.NOT_FOUND
    default_message = "Not found"


class ServerError(AppError):
    pass


# ─── Handlers ────────────────────────────────────────────


def _json(status_code: int, content: dict, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(status_code=int(status_code), content=content, headers=headers)


async def _handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    headers = None
    if isinstance(exc, Unauthenticated):
        headers = {"WWW-Authenticate": "Bearer"}
    if exc.status_code >= 500:
        logger.error("request.server_error", path=request.url.path, error=exc.message)
    return _json(exc.status_code, exc.to_dict(), headers)


async def _handle_request_validation(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    fields = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        fields.append(".".join(loc) or "body")
    message = "Missing or invalid fields"
    if fields:
        message = f"Missing or invalid fields: {', '.join(fields)}"
    return _json(HTTPStatus.BAD_REQUEST, {"error": message, "fields": fields})


async def _handle_http_exception(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return _json(exc.status_code, {"error": str(exc.detail)}, getattr(exc, "headers", None))


async def _handle_database_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("request.database_error", path=request.url.path, method=request.method)
    return _json(HTTPStatus.INTERNAL_SERVER_ERROR, {"error": "Server error"})


async def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("request.unhandled_error", path=request.url.path, method=request.method)
    # Runs outside the middleware stack, so the request id is copied by hand.
    headers = None
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        headers = {"X-Request-ID": request_id}
    return _json(HTTPStatus.INTERNAL_SERVER_ERROR, {"error": "Server error"}, headers)


def register_error_handlers(app: FastAPI) -> None:
    """Install the JSON error handlers on an app."""
    app.add_exception_handler(AppError, _handle_app_error)
    app.add_exception_handler(RequestValidationError, _handle_request_validation)
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)
    app.add_exception_handler(SQLAlchemyError, _handle_database_error)
    app.add_exception_handler(Exception, _handle_unexpected)
