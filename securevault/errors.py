import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from securevault.config import settings

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base for every error the API reports on purpose.

    Subclasses fix the HTTP status and a machine readable ``code``; the
    message is what the client sees.
    """

    status_code = 500
    code = "internal_error"
    message = "Internal server error"

    def __init__(self, message: str | None = None, *, details=None):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.details = details


class ValidationError(AppError):
    status_code = 400
    code = "validation_error"
    message = "Validation error"


class AuthError(AppError):
    status_code = 401
    code = "auth_error"
    message = "Authentication required"


class InvalidCredentialsError(AuthError):
    code = "invalid_credentials"
    message = "Invalid email or password"


class InactiveAccountError(AuthError):
    code = "account_inactive"
    message = "Account is deactivated. Please contact support."


class InvalidTokenError(AuthError):
    code = "invalid_token"
    message = "Invalid token."


class TokenExpiredError(AuthError):
    code = "token_expired"
    message = "Token expired. Please login again."


class AuthorizationError(AppError):
    status_code = 403
    code = "forbidden"
    message = "Access denied. You can only access your own resources."


class NotFoundError(AppError):
    status_code = 404
    code = "not_found"
    message = "Resource not found."


class ConflictError(AppError):
    status_code = 409
    code = "conflict"
    message = "Resource already exists"


class DependencyError(AppError):
    """A backing store (database or object storage) failed.

    ``details`` is logged; clients only see it in development.
    """

    status_code = 500
    code = "dependency_error"
    message = "A backing service is unavailable"


class StoreUnavailable(DependencyError):
    code = "storage_unavailable"
    message = "Object storage is unavailable"


class MetadataWriteError(DependencyError):
    code = "metadata_write_failed"
    message = "File was stored but its document record could not be saved"


def _error_body(exc: AppError) -> dict:
    body = {"error": exc.message, "code": exc.code}
    if isinstance(exc, DependencyError):
        if settings.is_development and exc.details is not None:
            body["details"] = str(exc.details)
    elif exc.details is not None:
        body["details"] = exc.details
    return body


async def app_error_handler(request: Request, exc: AppError):
    if isinstance(exc, DependencyError):
        logger.error(
            "%s on %s %s: %s (%s)",
            type(exc).__name__, request.method, request.url.path, exc.message, exc.details,
        )
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc))


async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path", "form")]
        details.append({"field": ".".join(loc) or None, "message": err.get("msg", "Invalid value")})
    return JSONResponse(
        status_code=400,
        content={"error": "Validation error", "code": ValidationError.code, "details": details},
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    if exc.status_code == 404 and detail == "Not Found":
        detail = "Route not found"
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": detail},
        headers=getattr(exc, "headers", None),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
