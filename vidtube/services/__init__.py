"""Services package exports."""

from vidtube.services.comment_service import CommentService
from vidtube.services.logging_service import configure_logging, get_logger
from vidtube.services.media_service import MediaService, get_media_service
from vidtube.services.session_service import SessionService
from vidtube.services.token_service import TokenConfig, TokenService, get_token_service
from vidtube.services.user_service import UserService
from vidtube.services.video_service import VideoService

__all__ = [
    "CommentService",
    "MediaService",
    "SessionService",
    "TokenConfig",
    "TokenService",
    "UserService",
    "VideoService",
    "configure_logging",
    "get_logger",
    "get_media_service",
    "get_token_service",
]
