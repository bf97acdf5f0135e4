"""Exception handlers mapping domain errors onto the API error envelope.

Every failure leaves the API as::

    {"success": false, "message": "...", "code": "...", "details": ...}
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError

from ordering.domain import logger
from ordering.errors import OrderingError, TransactionAborted

STATUS_BY_CODE = {
    "PRODUCT_NOT_FOUND": 404,
    "VARIANT_NOT_FOUND": 404,
    "NOT_FOUND": 404,
    "INSUFFICIENT_STOCK": 409,
    "ADDRESS_REQUIRED": 400,
    "INVALID_TRANSITION": 409,
    "CANCELLATION_NOT_ALLOWED": 400,
}


class ApiError(Exception):
    """An error raised by the HTTP layer itself (auth, unsupported options)."""

    def __init__(self, status_code: int, code: str, message: str, details=None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details


def error_response(status_code: int, code: str, message: str, details=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "code": code, "details": details},
    )


async def handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
    return error_response(exc.status_code, exc.code, exc.message, exc.details)


async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    if isinstance(exc, OrderingError):
        return error_response(STATUS_BY_CODE.get(exc.code, 400), exc.code, exc.message, exc.details or None)
    return error_response(400, "VALIDATION_ERROR", "Validation failed", exc.messages)


async def handle_not_found(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    if isinstance(exc, OrderingError):
        return error_response(STATUS_BY_CODE.get(exc.code, 404), exc.code, exc.message, exc.details or None)
    return error_response(404, "NOT_FOUND", "Resource not found")


async def handle_transaction_aborted(request: Request, exc: TransactionAborted) -> JSONResponse:
    logger.error("request_aborted", path=request.url.path, attempts=exc.attempts)
    response = error_response(503, exc.code, exc.message, {"retryable": exc.retryable})
    response.headers["Retry-After"] = "1"
    return response


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, handle_api_error)
    app.add_exception_handler(ValidationError, handle_validation_error)
    app.add_exception_handler(ObjectNotFoundError, handle_not_found)
    app.add_exception_handler(TransactionAborted, handle_transaction_aborted)
