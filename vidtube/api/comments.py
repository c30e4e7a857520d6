"""Comment endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from vidtube.api.dependencies import get_comment_service, get_current_user
from vidtube.api.responses import envelope
from vidtube.models.comment import CommentRequest
from vidtube.models.user import User
from vidtube.services.comment_service import CommentService

router = APIRouter(prefix="/comments", tags=["Comments"])


@router.get("/{video_id}")
async def list_comments(
    video_id: UUID,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    comments: CommentService = Depends(get_comment_service),
):
    result = await comments.list_for_video(video_id, page=page, limit=limit)
    return envelope(result, "Comments fetched")


@router.post("/{video_id}", status_code=status.HTTP_201_CREATED)
async def add_comment(
    video_id: UUID,
    request: CommentRequest,
    current_user: User = Depends(get_current_user),
    comments: CommentService = Depends(get_comment_service),
):
    comment = await comments.create(current_user, video_id, request.content)
    return envelope(comment, "Comment saved", status.HTTP_201_CREATED)


@router.patch("/c/{comment_id}")
async def update_comment(
    comment_id: UUID,
    request: CommentRequest,
    current_user: User = Depends(get_current_user),
    comments: CommentService = Depends(get_comment_service),
):
    comment = await comments.update(current_user, comment_id, request.content)
    return envelope(comment, "Comment updated")


@router.delete("/c/{comment_id}")
async def delete_comment(
    comment_id: UUID,
    current_user: User = Depends(get_current_user),
    comments: CommentService = Depends(get_comment_service),
):
    await comments.delete(current_user, comment_id)
    return envelope({}, "Comment deleted")
