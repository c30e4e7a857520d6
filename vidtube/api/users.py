"""User account and session endpoints."""

from typing import Optional

import structlog
from fastapi import APIRouter, Cookie, Depends, File, Form, UploadFile, status

from vidtube.api.dependencies import (
    REFRESH_COOKIE,
    get_current_user,
    get_media_service,
    get_session_service,
    get_user_service,
)
from vidtube.api.responses import (
    clear_auth_cookies,
    envelope,
    read_upload,
    set_auth_cookies,
)
from vidtube.exceptions import BadRequestError, NotFoundError
from vidtube.models.auth import (
    ChangePasswordRequest,
    LoginRequest,
    RefreshRequest,
    UpdateAccountRequest,
)
from vidtube.models.user import NAME_MAX_LENGTH, USERNAME_MAX_LENGTH, User
from vidtube.services.media_service import MediaService
from vidtube.services.session_service import SessionService
from vidtube.services.user_service import UserService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    full_name: str = Form("", alias="fullName", max_length=NAME_MAX_LENGTH),
    email: str = Form("", max_length=NAME_MAX_LENGTH),
    username: str = Form("", max_length=USERNAME_MAX_LENGTH),
    password: str = Form(""),
    avatar: Optional[UploadFile] = File(None),
    cover_image: Optional[UploadFile] = File(None, alias="coverImage"),
    sessions: SessionService = Depends(get_session_service),
):
    """Register a new account (multipart form with avatar and optional cover image).

    Raises:
        BadRequestError 400: Missing field or avatar
        ConflictError 409: Username or email taken
    """
    user = await sessions.register(
        username=username,
        email=email,
        full_name=full_name,
        password=password,
        avatar=await read_upload(avatar),
        cover_image=await read_upload(cover_image),
    )
    return envelope(user, "User registered successfully", status.HTTP_201_CREATED)


@router.post("/login")
async def login(
    request: LoginRequest,
    sessions: SessionService = Depends(get_session_service),
):
    """Login with username or email and password.

    Tokens are returned in the body and set as httpOnly cookies.
    """
    result = await sessions.login(
        password=request.password,
        username=request.username,
        email=request.email,
    )
    response = envelope(result, "User logged in successfully")
    return set_auth_cookies(response, result.access_token, result.refresh_token)


@router.post("/logout")
async def logout(
    current_user: User = Depends(get_current_user),
    sessions: SessionService = Depends(get_session_service),
):
    await sessions.logout(current_user.id)
    return clear_auth_cookies(envelope({}, "User logged out"))


@router.post("/refresh-token")
async def refresh_token(
    body: Optional[RefreshRequest] = None,
    cookie_token: Optional[str] = Cookie(None, alias=REFRESH_COOKIE),
    sessions: SessionService = Depends(get_session_service),
):
    """Exchange a refresh token (cookie first, then body) for a new pair.

    The presented refresh token is rotated out and can no longer be used.
    """
    presented = cookie_token or (body.refresh_token if body else None)
    pair = await sessions.refresh(presented)
    response = envelope(pair, "Access token refreshed")
    return set_auth_cookies(response, pair.access_token, pair.refresh_token)


@router.post("/change-password")
async def change_password(
    request: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    sessions: SessionService = Depends(get_session_service),
):
    await sessions.change_password(current_user.id, request.old_password, request.new_password)
    return envelope({}, "Password changed successfully")


@router.get("/current-user")
async def read_current_user(current_user: User = Depends(get_current_user)):
    return envelope(current_user, "Current user fetched successfully")


@router.patch("/update-account")
async def update_account(
    request: UpdateAccountRequest,
    current_user: User = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    if not request.full_name.strip() or not request.email.strip():
        raise BadRequestError("All fields are required")

    user = await users.update_account(
        current_user.id, request.full_name.strip(), request.email.strip()
    )
    if user is None:
        raise NotFoundError("User not found")
    return envelope(user, "Account details updated successfully")


@router.patch("/avatar")
async def update_avatar(
    avatar: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
    media: MediaService = Depends(get_media_service),
):
    payload = await read_upload(avatar)
    if payload is None:
        raise BadRequestError("Avatar file is missing")

    asset = await media.upload(payload.content, payload.filename)
    user = await users.update_avatar(current_user.id, asset.url)
    if user is None:
        raise NotFoundError("User not found")
    return envelope(user, "Avatar image updated successfully")


@router.patch("/cover-image")
async def update_cover_image(
    cover_image: Optional[UploadFile] = File(None, alias="coverImage"),
    current_user: User = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
    media: MediaService = Depends(get_media_service),
):
    payload = await read_upload(cover_image)
    if payload is None:
        raise BadRequestError("Cover image file is missing")

    asset = await media.upload(payload.content, payload.filename)
    user = await users.update_cover_image(current_user.id, asset.url)
    if user is None:
        raise NotFoundError("User not found")
    return envelope(user, "Cover image updated successfully")


@router.get("/c/{username}")
async def channel_profile(
    username: str,
    current_user: User = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    """Channel page with subscriber counts and whether the caller is subscribed."""
    if not username.strip():
        raise BadRequestError("Username is missing")

    channel = await users.get_channel_profile(username.strip(), viewer_id=current_user.id)
    if channel is None:
        raise NotFoundError("Channel does not exist")
    return envelope(channel, "User channel fetched successfully")


@router.get("/history")
async def watch_history(
    current_user: User = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    history = await users.get_watch_history(current_user.id)
    return envelope(history, "Watch history fetched successfully")
