"""Video endpoints."""

from typing import Optional
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from vidtube.api.dependencies import get_current_user, get_user_service, get_video_service
from vidtube.api.responses import envelope, read_upload
from vidtube.models.user import User
from vidtube.models.video import TITLE_MAX_LENGTH
from vidtube.services.user_service import UserService
from vidtube.services.video_service import VideoService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/videos", tags=["Videos"])


@router.get("")
async def list_videos(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    query: str = Query(default="", description="Case-insensitive title search"),
    sort_by: str = Query(default="_id", alias="sortBy"),
    sort_type: str = Query(default="asc", alias="sortType"),
    user_id: Optional[UUID] = Query(default=None, alias="userId"),
    current_user: User = Depends(get_current_user),
    videos: VideoService = Depends(get_video_service),
):
    """Paginated video feed with optional title search and owner filter."""
    result = await videos.list_videos(
        page=page,
        limit=limit,
        query=query.strip(),
        sort_by=sort_by,
        sort_type=sort_type,
        owner_id=user_id,
    )
    return envelope(result, "Videos fetched successfully")


@router.post("", status_code=status.HTTP_201_CREATED)
async def publish_video(
    title: str = Form("", max_length=TITLE_MAX_LENGTH),
    description: str = Form(""),
    is_published: bool = Form(True, alias="isPublished"),
    video_file: Optional[UploadFile] = File(None, alias="videoFile"),
    thumbnail: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    videos: VideoService = Depends(get_video_service),
):
    video = await videos.publish(
        owner=current_user,
        title=title,
        description=description,
        video_file=await read_upload(video_file),
        thumbnail=await read_upload(thumbnail),
        is_published=is_published,
    )
    return envelope(video, "Video published successfully", status.HTTP_201_CREATED)


@router.get("/{video_id}")
async def get_video(
    video_id: UUID,
    current_user: User = Depends(get_current_user),
    videos: VideoService = Depends(get_video_service),
    users: UserService = Depends(get_user_service),
):
    """Fetch a video, counting the view and adding it to the caller's history."""
    video = await videos.record_view(video_id)
    await users.add_to_watch_history(current_user.id, video_id)
    return envelope(video, "Video fetched successfully")


@router.patch("/{video_id}")
async def update_video(
    video_id: UUID,
    title: str = Form("", max_length=TITLE_MAX_LENGTH),
    description: str = Form(""),
    thumbnail: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    videos: VideoService = Depends(get_video_service),
):
    video = await videos.update(
        user=current_user,
        video_id=video_id,
        title=title,
        description=description,
        thumbnail=await read_upload(thumbnail),
    )
    return envelope(video, "Video details updated")


@router.delete("/{video_id}")
async def delete_video(
    video_id: UUID,
    current_user: User = Depends(get_current_user),
    videos: VideoService = Depends(get_video_service),
):
    await videos.delete(current_user, video_id)
    return envelope({}, "Video deleted")


@router.patch("/toggle/publish/{video_id}")
async def toggle_publish_status(
    video_id: UUID,
    current_user: User = Depends(get_current_user),
    videos: VideoService = Depends(get_video_service),
):
    video = await videos.toggle_publish(current_user, video_id)
    return envelope(video, "Video publish status modified")
