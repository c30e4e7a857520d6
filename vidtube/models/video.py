"""Video models."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from vidtube.models.base import ApiModel
from vidtube.models.user import NAME_MAX_LENGTH, OwnerSummary

TITLE_MAX_LENGTH = NAME_MAX_LENGTH


class Video(ApiModel):
    """A stored video record."""

    id: UUID
    video_file: str
    thumbnail: str
    title: str
    description: str
    duration: float = 0
    views: int = 0
    is_published: bool = True
    owner_id: UUID
    created_at: datetime
    updated_at: datetime


class VideoListItem(ApiModel):
    """A video in the feed, with its owner summary."""

    id: UUID
    video_file: str
    thumbnail: str
    title: str
    description: str
    duration: float
    views: int
    is_published: bool
    created_at: datetime
    owner: Optional[OwnerSummary] = None


class VideoPage(ApiModel):
    """One page of the video feed."""

    videos: List[VideoListItem]
    total_videos: int
    page: int
    limit: int
