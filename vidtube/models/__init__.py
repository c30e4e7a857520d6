"""Models package exports."""

from vidtube.models.auth import (
    AccessClaims,
    ChangePasswordRequest,
    LoginRequest,
    LoginResult,
    RefreshClaims,
    RefreshRequest,
    TokenPair,
    UpdateAccountRequest,
)
from vidtube.models.comment import Comment, CommentRequest, CommentView
from vidtube.models.response import ApiResponse
from vidtube.models.user import ChannelProfile, OwnerSummary, User, WatchedVideo
from vidtube.models.video import Video, VideoListItem, VideoPage

__all__ = [
    "AccessClaims",
    "ApiResponse",
    "ChangePasswordRequest",
    "ChannelProfile",
    "Comment",
    "CommentRequest",
    "CommentView",
    "LoginRequest",
    "LoginResult",
    "OwnerSummary",
    "RefreshClaims",
    "RefreshRequest",
    "TokenPair",
    "UpdateAccountRequest",
    "User",
    "Video",
    "VideoListItem",
    "VideoPage",
    "WatchedVideo",
]
