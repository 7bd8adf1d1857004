# File: src/api/middleware/error_middleware.py

import sentry_sdk
from fastapi.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from common.exceptions.exception_handlers import UnhandledError, build_error_response
from common.logging.logger import log_error


class ErrorLoggingMiddleware(BaseHTTPMiddleware):
    """Last line for errors raised outside route handlers; reports them to Sentry tagged with the route."""

    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            return await call_next(request)
        except HTTPException:
            raise
        except Exception as exc:
            log_error("Unhandled error in middleware", extra={
                "path": request.url.path,
                "method": request.method,
                "error": str(exc),
            }, exc_info=True)
            with sentry_sdk.new_scope() as scope:
                scope.set_tag("route", request.url.path)
                sentry_sdk.capture_exception(exc)
            return build_error_response(UnhandledError())
