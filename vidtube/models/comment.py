"""Comment models."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import field_validator

from vidtube.models.base import ApiModel
from vidtube.models.user import OwnerSummary


class Comment(ApiModel):
    """A stored comment record."""

    id: UUID
    content: str
    video_id: UUID
    owner_id: UUID
    created_at: datetime
    updated_at: datetime


class CommentView(ApiModel):
    """A comment as listed under a video, with its author resolved."""

    id: UUID
    content: str
    created_at: datetime
    created_by: Optional[OwnerSummary] = None


class CommentRequest(ApiModel):
    """Body for creating or editing a comment."""

    content: str = ""

    @field_validator("content")
    @classmethod
    def strip_content(cls, v: str) -> str:
        """Trim surrounding whitespace so blank comments are rejected."""
        return v.strip()
