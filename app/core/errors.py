# Application error taxonomy
# Every error raised by services and dependencies derives from AppError and
# carries the HTTP status, a stable machine-readable code and a message that
# is safe to show to the client. app.main maps them to JSON responses.

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger("app")


class AppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "unexpected"
    message: str = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.message
        super().__init__(self.message)


class AuthError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "auth_error"
    message = "Authentication failed"


class Unauthenticated(AuthError):
    code = "unauthenticated"
    message = "Not authenticated: session token not found"


class InvalidSession(AuthError):
    code = "invalid_session"
    message = "Invalid or expired session"


class SessionExpired(AuthError):
    code = "session_expired"
    message = "Session expired"


class InvalidCredentials(AuthError):
    code = "invalid_credentials"
    message = "Invalid email or password"


class AccountInactive(AuthError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "account_inactive"
    message = "Account inactive or suspended. Contact the administrator."


class InsufficientPermission(AuthError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "insufficient_permission"
    message = "Permission denied"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    message = "Resource not found"


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"
    message = "Invalid request"


class ServiceUnavailable(AppError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "service_unavailable"
    message = "Service temporarily unavailable"


def error_body(error: AppError) -> dict:
    return {"success": False, "error": error.message, "code": error.code}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN):
        logger.warning(f"Auth error: {exc.code} on {request.method} {request.url.path}")
    return JSONResponse(status_code=exc.status_code, content=error_body(exc))


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(AppError()),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
