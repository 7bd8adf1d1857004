# File: common/exceptions/base_exception.py

from typing import Dict, Optional

from fastapi import HTTPException, status


class AppHTTPException(HTTPException):
    error_code: str = "APP_ERROR"
    retryable: bool = False

    def __init__(self, status_code: int, detail: str, headers: Optional[Dict[str, str]] = None):
        super().__init__(status_code=status_code, detail=detail, headers=headers)


# Specific custom exceptions using AppHTTPException
class UnauthorizedException(AppHTTPException):
    error_code = "AUTH_UNAUTHENTICATED"

    def __init__(self, detail: str = "Authentication required."):
        super().__init__(status.HTTP_401_UNAUTHORIZED, detail, headers={"WWW-Authenticate": "Bearer"})

class ForbiddenException(AppHTTPException):
    error_code = "AUTH_FORBIDDEN"

    def __init__(self, detail: str = "You do not have permission to access this resource."):
        super().__init__(status.HTTP_403_FORBIDDEN, detail)

class NotFoundException(AppHTTPException):
    error_code = "NOT_FOUND"

    def __init__(self, detail: str = "Resource not found."):
        super().__init__(status.HTTP_404_NOT_FOUND, detail)

class BadRequestException(AppHTTPException):
    error_code = "BAD_REQUEST"

    def __init__(self, detail: str = "Invalid request parameters."):
        super().__init__(status.HTTP_400_BAD_REQUEST, detail)

class InvalidOperationException(BadRequestException):
    error_code = "INVALID_OPERATION"

    def __init__(self, detail: str = "This operation is not allowed."):
        super().__init__(detail)

class ConflictException(AppHTTPException):
    error_code = "CONFLICT"

    def __init__(self, detail: str = "Resource conflict detected."):
        super().__init__(status.HTTP_409_CONFLICT, detail)

class TransactionConflictException(AppHTTPException):
    error_code = "TRANSACTION_CONFLICT"
    retryable = True

    def __init__(self, detail: str = "The request collided with another update. Please try again."):
        super().__init__(status.HTTP_409_CONFLICT, detail, headers={"Retry-After": "1"})

class ServiceUnavailableException(AppHTTPException):
    error_code = "STORE_UNAVAILABLE"
    retryable = True

    def __init__(self, detail: str = "Service temporarily unavailable. Please try again later."):
        super().__init__(status.HTTP_503_SERVICE_UNAVAILABLE, detail)
