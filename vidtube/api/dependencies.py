"""FastAPI dependencies for authentication and service wiring."""

from typing import Optional

import structlog
from fastapi import Depends
from fastapi.security import APIKeyCookie, HTTPAuthorizationCredentials, HTTPBearer

from vidtube.exceptions import InvalidTokenError, UnauthorizedError
from vidtube.models.user import User
from vidtube.services.comment_service import CommentService
from vidtube.services.media_service import MediaService, get_media_service
from vidtube.services.session_service import SessionService
from vidtube.services.token_service import TokenService, get_token_service
from vidtube.services.user_service import UserService
from vidtube.services.video_service import VideoService

logger = structlog.get_logger(__name__)

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"

access_cookie_scheme = APIKeyCookie(name=ACCESS_COOKIE, auto_error=False)
bearer_scheme = HTTPBearer(auto_error=False)


def get_user_service() -> UserService:
    return UserService()


def get_comment_service() -> CommentService:
    return CommentService()


def get_video_service(media: MediaService = Depends(get_media_service)) -> VideoService:
    return VideoService(media)


def get_session_service(
    users: UserService = Depends(get_user_service),
    tokens: TokenService = Depends(get_token_service),
    media: MediaService = Depends(get_media_service),
) -> SessionService:
    return SessionService(users, tokens, media)


async def get_current_user(
    cookie_token: Optional[str] = Depends(access_cookie_scheme),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    tokens: TokenService = Depends(get_token_service),
    users: UserService = Depends(get_user_service),
) -> User:
    """Resolve the caller from an access token.

    The ``accessToken`` cookie is checked first, then the
    ``Authorization: Bearer`` header.

    Returns:
        Authenticated User model

    Raises:
        UnauthorizedError: Token missing, invalid, expired, or user gone
    """
    token = cookie_token or (credentials.credentials if credentials else None)
    if not token:
        raise UnauthorizedError("Unauthorized request")

    try:
        claims = tokens.verify_access_token(token)
    except InvalidTokenError as e:
        logger.info("access_token_rejected", reason=str(e))
        raise UnauthorizedError(str(e))

    user = await users.get_by_id(claims.user_id)
    if user is None:
        raise UnauthorizedError("Invalid access token")

    return user
