"""Failure taxonomy shared by the stores, the verifiers and the HTTP layer.

Nothing below the routers writes to the transport; they raise one of these
and the handlers registered in ``install_error_handlers`` turn it into JSON.
"""
import logging
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "Internal"
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "Unauthorized"
    default_message = "Not authenticated"


class InvalidCredentials(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "InvalidCredentials"
    default_message = "Invalid email or password"

    def __init__(self):
        # Always the same text: the caller must not learn which half was wrong.
        super().__init__()


class DuplicateEmail(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "DuplicateEmail"
    default_message = "Email already registered"


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "ValidationError"
    default_message = "Invalid request data"


class InvalidToken(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "InvalidToken"
    default_message = "External identity verification failed"


class NotFoundOrNotOwned(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NotFoundOrNotOwned"
    default_message = "Task not found"


class MalformedHash(AppError):
    default_message = "Stored password hash is malformed"


class Internal(AppError):
    pass


def _error_body(code: str, message: str, **extra: Any) -> dict:
    body = {"error": code, "message": message}
    body.update(extra)
    return body


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
            # Internal detail stays in the log.
            body = _error_body(Internal.code, Internal.default_message)
        else:
            body = _error_body(exc.code, exc.message)
        response = JSONResponse(status_code=exc.status_code, content=body)
        if isinstance(exc, Unauthorized):
            cookie_name = request.app.state.settings.session_cookie_name
            if cookie_name in request.cookies:
                response.delete_cookie(key=cookie_name, path="/")
        return response

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        details = [
            {"field": ".".join(str(part) for part in err.get("loc", ())[1:]), "message": err.get("msg", "")}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=ValidationError.status_code,
            content=_error_body(ValidationError.code, ValidationError.default_message, details=details),
        )

    # Unhandled errors end here, logged once, and never reach the server middleware.
    @app.middleware("http")
    async def catch_unexpected(request: Request, call_next):
        try:
            return await call_next(request)
        except Exception:
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            return JSONResponse(
                status_code=Internal.status_code,
                content=_error_body(Internal.code, Internal.default_message),
            )
