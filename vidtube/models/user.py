"""User, channel and watch-history models."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from vidtube.models.base import ApiModel

# Column widths in migrations/001_initial.sql
USERNAME_MAX_LENGTH = 100
NAME_MAX_LENGTH = 255


class User(ApiModel):
    """A registered user as exposed to clients.

    Password hash and refresh token are never part of this model; they stay
    inside the user store.
    """

    id: UUID
    username: str
    email: str
    full_name: str
    avatar: str
    cover_image: str = ""
    created_at: datetime
    updated_at: datetime


class OwnerSummary(ApiModel):
    """Compact author representation embedded in videos and comments."""

    id: UUID
    username: str
    full_name: str
    avatar: str


class ChannelProfile(ApiModel):
    """Public channel page for a user."""

    id: UUID
    username: str
    email: str
    full_name: str
    avatar: str
    cover_image: str = ""
    subscribers_count: int = 0
    channels_subscribed_to_count: int = 0
    is_subscribed: bool = False


class WatchedVideo(ApiModel):
    """A watch-history entry with the video owner resolved."""

    id: UUID
    title: str
    description: str
    video_file: str
    thumbnail: str
    duration: float
    views: int
    owner: Optional[OwnerSummary] = None
    watched_at: datetime
