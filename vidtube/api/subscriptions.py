"""Channel subscription endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends

from vidtube.api.dependencies import get_current_user, get_user_service
from vidtube.api.responses import envelope
from vidtube.exceptions import BadRequestError, NotFoundError
from vidtube.models.user import User
from vidtube.services.user_service import UserService

router = APIRouter(prefix="/subscriptions", tags=["Subscriptions"])


@router.post("/c/{channel_id}")
async def toggle_subscription(
    channel_id: UUID,
    current_user: User = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    """Subscribe to a channel, or unsubscribe if already subscribed."""
    if channel_id == current_user.id:
        raise BadRequestError("You cannot subscribe to your own channel")

    if await users.get_by_id(channel_id) is None:
        raise NotFoundError("Channel not found")

    subscribed = await users.toggle_subscription(current_user.id, channel_id)
    message = "Subscribed successfully" if subscribed else "Unsubscribed successfully"
    return envelope({"subscribed": subscribed}, message)
