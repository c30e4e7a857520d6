"""Comment persistence with owner-only edits."""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

import structlog

from vidtube.database import connection
from vidtube.exceptions import BadRequestError, NotFoundError
from vidtube.models.comment import Comment, CommentView
from vidtube.models.user import OwnerSummary, User
from vidtube.services.ownership import authorize_owner

logger = structlog.get_logger(__name__)

COMMENT_COLUMNS = "id, content, video_id, owner_id, created_at, updated_at"


def _row_to_comment(row) -> Comment:
    return Comment(
        id=row["id"],
        content=row["content"],
        video_id=row["video_id"],
        owner_id=row["owner_id"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class CommentService:
    """Service for comment CRUD."""

    async def _video_exists(self, conn, video_id: UUID) -> bool:
        return bool(
            await conn.fetchval("SELECT EXISTS(SELECT 1 FROM videos WHERE id = $1)", video_id)
        )

    async def get_by_id(self, comment_id: UUID) -> Optional[Comment]:
        async with connection() as conn:
            row = await conn.fetchrow(
                f"SELECT {COMMENT_COLUMNS} FROM comments WHERE id = $1",
                comment_id,
            )
        return _row_to_comment(row) if row is not None else None

    async def list_for_video(self, video_id: UUID, page: int = 1, limit: int = 10) -> list[CommentView]:
        """Comments on a video, oldest first, with authors resolved.

        Raises:
            NotFoundError: If the video does not exist
        """
        async with connection() as conn:
            if not await self._video_exists(conn, video_id):
                raise NotFoundError("Video not found")

            rows = await conn.fetch(
                """
                SELECT c.id, c.content, c.created_at,
                       u.id AS author_id, u.username, u.full_name, u.avatar
                FROM comments c
                JOIN users u ON u.id = c.owner_id
                WHERE c.video_id = $1
                ORDER BY c.created_at ASC, c.id ASC
                LIMIT $2 OFFSET $3
                """,
                video_id,
                limit,
                (page - 1) * limit,
            )

        return [
            CommentView(
                id=row["id"],
                content=row["content"],
                created_at=row["created_at"],
                created_by=OwnerSummary(
                    id=row["author_id"],
                    username=row["username"],
                    full_name=row["full_name"],
                    avatar=row["avatar"],
                ),
            )
            for row in rows
        ]

    async def create(self, user: User, video_id: UUID, content: str) -> Comment:
        """Add a comment to a video.

        Raises:
            BadRequestError: Empty content
            NotFoundError: Video does not exist
        """
        if not content.strip():
            raise BadRequestError("Comment content is missing")

        comment_id = uuid4()
        now = datetime.now(timezone.utc)

        async with connection() as conn:
            if not await self._video_exists(conn, video_id):
                raise NotFoundError("Video not found")

            row = await conn.fetchrow(
                f"""
                INSERT INTO comments (id, content, video_id, owner_id, created_at, updated_at)
                VALUES ($1, $2, $3, $4, $5, $6)
                RETURNING {COMMENT_COLUMNS}
                """,
                comment_id,
                content.strip(),
                video_id,
                user.id,
                now,
                now,
            )

        logger.info("comment_created", comment_id=str(comment_id), video_id=str(video_id))
        return _row_to_comment(row)

    async def update(self, user: User, comment_id: UUID, content: str) -> Comment:
        """Edit an owned comment.

        Raises:
            BadRequestError: Empty content
            NotFoundError / ForbiddenError: From the ownership check
        """
        if not content.strip():
            raise BadRequestError("Comment content is required")

        await authorize_owner(self.get_by_id, comment_id, user, "comment", "update")

        async with connection() as conn:
            row = await conn.fetchrow(
                f"""
                UPDATE comments
                SET content = $1, updated_at = $2
                WHERE id = $3
                RETURNING {COMMENT_COLUMNS}
                """,
                content.strip(),
                datetime.now(timezone.utc),
                comment_id,
            )

        if row is None:
            raise NotFoundError("Comment not found")

        logger.info("comment_updated", comment_id=str(comment_id))
        return _row_to_comment(row)

    async def delete(self, user: User, comment_id: UUID) -> None:
        """Delete an owned comment.

        Raises:
            NotFoundError / ForbiddenError: From the ownership check
        """
        await authorize_owner(self.get_by_id, comment_id, user, "comment", "delete")

        async with connection() as conn:
            await conn.execute("DELETE FROM comments WHERE id = $1", comment_id)

        logger.info("comment_deleted", comment_id=str(comment_id))
