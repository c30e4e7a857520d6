"""Envelope and cookie helpers shared by the routers."""

from typing import Any, Optional

from fastapi import UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from vidtube.api.dependencies import ACCESS_COOKIE, REFRESH_COOKIE
from vidtube.config import get_settings
from vidtube.models.media import FilePayload
from vidtube.models.response import ApiResponse


def envelope(data: Any = None, message: str = "Success", status_code: int = 200) -> JSONResponse:
    """Wrap a payload in the uniform response envelope."""
    body = ApiResponse.ok(data=jsonable_encoder(data), message=message, status_code=status_code)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", by_alias=True),
    )


def error_envelope(status_code: int, message: str, headers: Optional[dict] = None) -> JSONResponse:
    body = ApiResponse.error(status_code=status_code, message=message)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", by_alias=True),
        headers=headers,
    )


def set_auth_cookies(response: JSONResponse, access_token: str, refresh_token: str) -> JSONResponse:
    secure = get_settings().is_production
    response.set_cookie(ACCESS_COOKIE, access_token, httponly=True, secure=secure)
    response.set_cookie(REFRESH_COOKIE, refresh_token, httponly=True, secure=secure)
    return response


def clear_auth_cookies(response: JSONResponse) -> JSONResponse:
    secure = get_settings().is_production
    response.delete_cookie(ACCESS_COOKIE, httponly=True, secure=secure)
    response.delete_cookie(REFRESH_COOKIE, httponly=True, secure=secure)
    return response


async def read_upload(file: Optional[UploadFile]) -> Optional[FilePayload]:
    """Read an optional multipart file into memory; None when absent or empty."""
    if file is None or not file.filename:
        return None

    content = await file.read()
    if not content:
        return None

    return FilePayload(filename=file.filename, content=content, content_type=file.content_type)
