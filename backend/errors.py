"""
Error taxonomy of the booking API.

Every failure leaves the service as a BookingError subclass and is rendered
into the same envelope: {"success": false, "error": "<message>"}.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

MSG_INTERNAL = "Ka ndodhur një gabim i brendshëm."
MSG_BAD_REQUEST = "Kërkesa nuk është e vlefshme."
MSG_NOT_FOUND = "Faqja nuk u gjet."
MSG_METHOD_NOT_ALLOWED = "Metoda nuk lejohet."


class BookingError(Exception):
    status_code = 500

    def __init__(self, message: str = MSG_INTERNAL):
        super().__init__(message)
        self.message = message


class ValidationError(BookingError):
    status_code = 400


class AuthError(BookingError):
    status_code = 401


class NotFoundError(BookingError):
    status_code = 404


class ConflictError(BookingError):
    status_code = 409


class ExpiredError(BookingError):
    status_code = 410


class InternalError(BookingError):
    status_code = 500


def error_response(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message}, headers=headers)


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(BookingError)
    async def booking_error_handler(request: Request, exc: BookingError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.debug("Rejected body on %s: %s", request.url.path, exc.errors())
        return error_response(400, MSG_BAD_REQUEST)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        # unknown routes and wrong methods never reach a route handler
        if exc.status_code == 404:
            message = MSG_NOT_FOUND
        elif exc.status_code == 405:
            message = MSG_METHOD_NOT_ALLOWED
        else:
            message = str(exc.detail)
        return error_response(exc.status_code, message, getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return error_response(500, MSG_INTERNAL)
