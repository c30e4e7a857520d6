"""Session lifecycle: register, login, logout, refresh, change password."""

import secrets
from typing import Optional
from uuid import UUID

import structlog

from vidtube.exceptions import (
    BadRequestError,
    ConflictError,
    InvalidTokenError,
    NotFoundError,
    UnauthorizedError,
)
from vidtube.models.auth import LoginResult, TokenPair
from vidtube.models.media import FilePayload
from vidtube.models.user import User
from vidtube.services.media_service import MediaService
from vidtube.services.token_service import TokenService
from vidtube.services.user_service import MAX_PASSWORD_BYTES, UserService, password_too_long

logger = structlog.get_logger(__name__)

STALE_REFRESH_TOKEN = "Refresh token is expired or used"
PASSWORD_TOO_LONG = f"Password must be at most {MAX_PASSWORD_BYTES} bytes"


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class SessionService:
    """Coordinates the user store, token service and media provider.

    A session moves Anonymous -> Authenticated (login) -> Authenticated
    (each refresh rotates the refresh token) -> LoggedOut (logout).
    """

    def __init__(self, users: UserService, tokens: TokenService, media: MediaService):
        self.users = users
        self.tokens = tokens
        self.media = media

    async def register(
        self,
        username: str,
        email: str,
        full_name: str,
        password: str,
        avatar: Optional[FilePayload],
        cover_image: Optional[FilePayload] = None,
    ) -> User:
        """Create an account once its avatar is hosted by the media provider.

        Raises:
            BadRequestError: Missing field, over-long password or missing avatar
            ConflictError: Username or email already taken
            UpstreamError: Avatar or cover image upload failed
        """
        if any(_blank(v) for v in (full_name, email, username, password)):
            raise BadRequestError("All fields are required")
        if password_too_long(password):
            raise BadRequestError(PASSWORD_TOO_LONG)

        username = username.strip().lower()
        email = email.strip()
        full_name = full_name.strip()

        if await self.users.exists(username, email):
            raise ConflictError("User with email or username already exists")

        if avatar is None or not avatar.content:
            raise BadRequestError("Avatar image is required")

        avatar_asset = await self.media.upload(avatar.content, avatar.filename)

        cover_url = ""
        if cover_image is not None and cover_image.content:
            cover_url = (await self.media.upload(cover_image.content, cover_image.filename)).url

        try:
            user = await self.users.create_user(
                username=username,
                email=email,
                full_name=full_name,
                password=password,
                avatar=avatar_asset.url,
                cover_image=cover_url,
            )
        except ConflictError:
            # Lost a race with a concurrent registration; uploads stay behind.
            logger.warning(
                "registration_conflict_after_upload",
                username=username,
                avatar_url=avatar_asset.url,
            )
            raise

        logger.info("user_registered", user_id=str(user.id), username=user.username)
        return user

    async def login(
        self,
        password: str,
        username: Optional[str] = None,
        email: Optional[str] = None,
    ) -> LoginResult:
        """Verify credentials and start a session.

        Raises:
            BadRequestError: Neither username nor email given
            NotFoundError: No matching account
            UnauthorizedError: Wrong password
        """
        if _blank(username) and _blank(email):
            raise BadRequestError("username or email is required")

        user = await self.users.find_by_login(
            username=None if _blank(username) else username.strip(),
            email=None if _blank(email) else email.strip(),
        )
        if user is None:
            raise NotFoundError("User does not exist")

        if not await self.users.verify_password(user.id, password):
            logger.warning("login_failed", user_id=str(user.id), reason="invalid_password")
            raise UnauthorizedError("Invalid user credentials")

        pair = self.tokens.issue_token_pair(user)
        await self.users.set_refresh_token(user.id, pair.refresh_token)

        logger.info("user_logged_in", user_id=str(user.id), username=user.username)
        return LoginResult(
            user=user,
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
        )

    async def logout(self, user_id: UUID) -> None:
        """End the session by clearing the stored refresh token. Idempotent."""
        await self.users.set_refresh_token(user_id, None)
        logger.info("user_logged_out", user_id=str(user_id))

    async def refresh(self, presented: Optional[str]) -> TokenPair:
        """Exchange a live refresh token for a new pair, rotating it.

        Raises:
            UnauthorizedError: Missing, invalid, expired, or no longer current token
        """
        if _blank(presented):
            raise UnauthorizedError("Unauthorized request")

        try:
            claims = self.tokens.verify_refresh_token(presented)
        except InvalidTokenError as e:
            raise UnauthorizedError(str(e))

        user = await self.users.get_by_id(claims.user_id)
        if user is None:
            raise UnauthorizedError("Invalid refresh token")

        stored = await self.users.get_refresh_token(user.id)
        if stored is None or not secrets.compare_digest(
            stored.encode("utf-8"), presented.encode("utf-8")
        ):
            logger.warning("refresh_token_reuse_rejected", user_id=str(user.id))
            raise UnauthorizedError(STALE_REFRESH_TOKEN)

        pair = self.tokens.issue_token_pair(user)
        if not await self.users.rotate_refresh_token(user.id, presented, pair.refresh_token):
            raise UnauthorizedError(STALE_REFRESH_TOKEN)

        logger.info("access_token_refreshed", user_id=str(user.id))
        return pair

    async def change_password(self, user_id: UUID, old_password: str, new_password: str) -> None:
        """Replace the password after verifying the current one.

        Raises:
            UnauthorizedError: Current password does not match
            BadRequestError: New password is blank or too long
        """
        if not await self.users.verify_password(user_id, old_password):
            raise UnauthorizedError("Invalid old password")

        if _blank(new_password):
            raise BadRequestError("New password is required")
        if password_too_long(new_password):
            raise BadRequestError(PASSWORD_TOO_LONG)

        await self.users.update_password(user_id, new_password)
