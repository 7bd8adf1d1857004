# File: common/exceptions/exception_handlers.py

from fastapi import FastAPI, Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_500_INTERNAL_SERVER_ERROR

from common.exceptions.base_exception import AppHTTPException
from common.logging.logger import log_error, log_warning
from common.schemas.standard_response import ErrorResponse
from common.translations.messages import get_message


def build_error_response(exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse.from_exception(exc).model_dump(),
        headers=getattr(exc, "headers", None),
    )


class _ValidationFailed(AppHTTPException):
    error_code = "VALIDATION_ERROR"

    def __init__(self, detail: str):
        super().__init__(HTTP_400_BAD_REQUEST, detail)


class UnhandledError(AppHTTPException):
    error_code = "INTERNAL_ERROR"

    def __init__(self):
        super().__init__(HTTP_500_INTERNAL_SERVER_ERROR, get_message("server.error"))


def register_exception_handlers(app: FastAPI):
    """
    Register global exception handlers for all expected error types.
    """

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """
        Handles Pydantic validation errors (e.g., missing fields, wrong types, etc.)
        """
        details = []
        for err in exc.errors():
            loc = err.get("loc", [])
            msg = err.get("msg", "Invalid input.")
            field = loc[-1] if loc else "field"
            details.append(f"{field}: {msg}")

        error_message = "; ".join(details)

        log_warning("Validation error", extra={
            "path": request.url.path,
            "method": request.method,
            "errors": error_message
        })

        return build_error_response(_ValidationFailed(error_message))

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        """
        Handles all HTTP exceptions (including custom ones).
        """
        log = log_error if exc.status_code >= 500 else log_warning
        log("HTTPException caught", extra={
            "path": request.url.path,
            "method": request.method,
            "status_code": exc.status_code,
            "error_code": getattr(exc, "error_code", None),
            "detail": str(exc.detail),
        })
        return build_error_response(exc)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        log_error("Unhandled exception", extra={
            "path": request.url.path,
            "method": request.method,
            "error": str(exc),
        }, exc_info=True)
        return build_error_response(UnhandledError())
