"""Ownership checks applied before every write to a video or comment."""

from typing import Awaitable, Callable, Optional, Protocol, TypeVar
from uuid import UUID

import structlog

from vidtube.exceptions import ForbiddenError, NotFoundError
from vidtube.models.user import User

logger = structlog.get_logger(__name__)


class Owned(Protocol):
    id: UUID
    owner_id: UUID


T = TypeVar("T", bound=Owned)


def require_owner(resource: Owned, user: User, resource_name: str, action: str) -> None:
    """Raise ForbiddenError unless `user` owns `resource`."""
    if resource.owner_id != user.id:
        logger.warning(
            "ownership_denied",
            resource=resource_name,
            resource_id=str(resource.id),
            action=action,
            user_id=str(user.id),
        )
        raise ForbiddenError(f"You are not allowed to {action} this {resource_name}")


async def authorize_owner(
    fetch: Callable[[UUID], Awaitable[Optional[T]]],
    resource_id: UUID,
    user: User,
    resource_name: str,
    action: str,
) -> T:
    """Load a resource and check the caller owns it.

    Args:
        fetch: Loader returning the resource or None
        resource_id: Identifier to load
        user: Authenticated caller
        resource_name: Used in error messages ("video", "comment")
        action: Verb used in error messages ("update", "delete", ...)

    Returns:
        The loaded resource

    Raises:
        NotFoundError: If the resource does not exist
        ForbiddenError: If the caller is not the owner
    """
    resource = await fetch(resource_id)
    if resource is None:
        raise NotFoundError(f"{resource_name.capitalize()} not found")

    require_owner(resource, user, resource_name, action)
    return resource
