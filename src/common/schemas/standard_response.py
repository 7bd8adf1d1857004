# File: common/schemas/standard_response.py

from typing import Any, Optional, Literal

from fastapi import HTTPException
from pydantic import BaseModel, Field


class Meta(BaseModel):
    message: str = Field(..., description="Localised message for the response.")
    status: Literal["success", "error"] = Field(..., examples=["success", "error"])
    code: int = Field(..., description="HTTP status code (e.g., 200, 201)")


class StandardResponse(BaseModel):
    data: Optional[Any] = Field(None, description="Payload or result")
    meta: Meta = Field(..., description="Standard metadata with status, message, and code")

    @staticmethod
    def success(data: Any = None, message: str = "Success", code: int = 200):
        return StandardResponse(data=data, meta=Meta(message=message, status="success", code=code))


class ErrorResponse(BaseModel):
    """Error body; ``retryable`` tells clients a 409/503 may succeed if the same request is sent again."""

    detail: str = Field(..., examples=["Cannot follow yourself."])
    message: Optional[str] = Field(default=None)
    error_code: Optional[str] = Field(None, examples=["INVALID_OPERATION", "TRANSACTION_CONFLICT"])
    retryable: bool = Field(False, description="Whether retrying the same request may succeed")
    status: Literal["error"] = "error"

    @staticmethod
    def from_exception(exc: HTTPException, message: Optional[str] = None) -> "ErrorResponse":
        detail = str(exc.detail)
        return ErrorResponse(
            detail=detail,
            message=message or detail,
            error_code=getattr(exc, "error_code", None),
            retryable=getattr(exc, "retryable", False),
        )
