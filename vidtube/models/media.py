"""Media provider models."""

from typing import Optional

from pydantic import BaseModel


class MediaAsset(BaseModel):
    """An asset stored by the media provider."""

    url: str
    public_id: str = ""
    resource_type: str = "image"
    duration: Optional[float] = None


class FilePayload(BaseModel):
    """An uploaded file read into memory at the HTTP boundary."""

    filename: str
    content: bytes
    content_type: Optional[str] = None
