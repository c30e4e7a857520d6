"""Uniform response envelope."""

from typing import Any

from pydantic import Field

from vidtube.models.base import ApiModel


class ApiResponse(ApiModel):
    """Envelope wrapping every API response.

    Attributes:
        status_code: HTTP status mirrored in the body
        data: Payload (None or {} when there is nothing to return)
        message: Human-readable outcome
        success: True for status codes below 400
    """

    status_code: int = Field(ge=100, le=599)
    data: Any = None
    message: str = "Success"
    success: bool = True

    @classmethod
    def ok(cls, data: Any = None, message: str = "Success", status_code: int = 200) -> "ApiResponse":
        return cls(status_code=status_code, data=data, message=message, success=status_code < 400)

    @classmethod
    def error(cls, status_code: int, message: str) -> "ApiResponse":
        return cls(status_code=status_code, data=None, message=message, success=False)
