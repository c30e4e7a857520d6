"""Video persistence and publishing workflow."""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

import structlog

from vidtube.database import connection
from vidtube.exceptions import BadRequestError, NotFoundError, StorageError, UpstreamError
from vidtube.models.media import FilePayload
from vidtube.models.user import OwnerSummary, User
from vidtube.models.video import Video, VideoListItem, VideoPage
from vidtube.services.media_service import MediaService
from vidtube.services.ownership import authorize_owner

logger = structlog.get_logger(__name__)

VIDEO_COLUMNS = (
    "id, video_file, thumbnail, title, description, duration, views, "
    "is_published, owner_id, created_at, updated_at"
)

# Client-facing sort keys mapped to columns; anything else falls back to created_at
SORT_COLUMNS = {
    "_id": "created_at",
    "createdAt": "created_at",
    "created_at": "created_at",
    "updatedAt": "updated_at",
    "updated_at": "updated_at",
    "views": "views",
    "duration": "duration",
    "title": "title",
}


def _row_to_video(row) -> Video:
    return Video(
        id=row["id"],
        video_file=row["video_file"],
        thumbnail=row["thumbnail"],
        title=row["title"],
        description=row["description"],
        duration=float(row["duration"]),
        views=row["views"],
        is_published=row["is_published"],
        owner_id=row["owner_id"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class VideoService:
    """Service for video CRUD; every write goes through the ownership check."""

    def __init__(self, media: MediaService):
        self.media = media

    async def get_by_id(self, video_id: UUID) -> Optional[Video]:
        async with connection() as conn:
            row = await conn.fetchrow(
                f"SELECT {VIDEO_COLUMNS} FROM videos WHERE id = $1",
                video_id,
            )
        return _row_to_video(row) if row is not None else None

    async def list_videos(
        self,
        page: int = 1,
        limit: int = 10,
        query: str = "",
        sort_by: str = "_id",
        sort_type: str = "asc",
        owner_id: Optional[UUID] = None,
    ) -> VideoPage:
        """One page of videos, optionally filtered by title and owner."""
        conditions = []
        params: list = []

        if query:
            params.append(f"%{query}%")
            conditions.append(f"v.title ILIKE ${len(params)}")

        if owner_id is not None:
            params.append(owner_id)
            conditions.append(f"v.owner_id = ${len(params)}")

        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        column = SORT_COLUMNS.get(sort_by, "created_at")
        direction = "ASC" if sort_type.lower() == "asc" else "DESC"
        offset = (page - 1) * limit

        async with connection() as conn:
            total = await conn.fetchval(
                f"SELECT COUNT(*) FROM videos v {where_clause}",
                *params,
            )

            rows = await conn.fetch(
                f"""
                SELECT v.id, v.video_file, v.thumbnail, v.title, v.description,
                       v.duration, v.views, v.is_published, v.created_at,
                       o.id AS owner_id, o.username AS owner_username,
                       o.full_name AS owner_full_name, o.avatar AS owner_avatar
                FROM videos v
                JOIN users o ON o.id = v.owner_id
                {where_clause}
                ORDER BY v.{column} {direction}, v.id {direction}
                LIMIT ${len(params) + 1} OFFSET ${len(params) + 2}
                """,
                *params,
                limit,
                offset,
            )

        videos = [
            VideoListItem(
                id=row["id"],
                video_file=row["video_file"],
                thumbnail=row["thumbnail"],
                title=row["title"],
                description=row["description"],
                duration=float(row["duration"]),
                views=row["views"],
                is_published=row["is_published"],
                created_at=row["created_at"],
                owner=OwnerSummary(
                    id=row["owner_id"],
                    username=row["owner_username"],
                    full_name=row["owner_full_name"],
                    avatar=row["owner_avatar"],
                ),
            )
            for row in rows
        ]

        return VideoPage(videos=videos, total_videos=total or 0, page=page, limit=limit)

    async def publish(
        self,
        owner: User,
        title: str,
        description: str,
        video_file: Optional[FilePayload],
        thumbnail: Optional[FilePayload],
        is_published: bool = True,
    ) -> Video:
        """Upload the video and thumbnail, then store the record.

        Raises:
            BadRequestError: Missing title/description or files
            UpstreamError: Upload failed
        """
        if not title.strip() or not description.strip():
            raise BadRequestError("All fields are required")
        if video_file is None or not video_file.content:
            raise BadRequestError("Video file is missing")
        if thumbnail is None or not thumbnail.content:
            raise BadRequestError("Thumbnail is missing")

        video_asset = await self.media.upload(video_file.content, video_file.filename)
        thumbnail_asset = await self.media.upload(thumbnail.content, thumbnail.filename)

        video_id = uuid4()
        now = datetime.now(timezone.utc)

        async with connection() as conn:
            row = await conn.fetchrow(
                f"""
                INSERT INTO videos (id, video_file, thumbnail, title, description, duration,
                                    views, is_published, owner_id, created_at, updated_at)
                VALUES ($1, $2, $3, $4, $5, $6, 0, $7, $8, $9, $10)
                RETURNING {VIDEO_COLUMNS}
                """,
                video_id,
                video_asset.url,
                thumbnail_asset.url,
                title.strip(),
                description.strip(),
                video_asset.duration or 0,
                is_published,
                owner.id,
                now,
                now,
            )

        logger.info("video_published", video_id=str(video_id), owner_id=str(owner.id))
        return _row_to_video(row)

    async def record_view(self, video_id: UUID) -> Video:
        """Fetch a video for viewing, counting the view.

        Raises:
            NotFoundError: If the video does not exist
        """
        async with connection() as conn:
            row = await conn.fetchrow(
                f"""
                UPDATE videos SET views = views + 1
                WHERE id = $1
                RETURNING {VIDEO_COLUMNS}
                """,
                video_id,
            )

        if row is None:
            raise NotFoundError("Video not found")

        return _row_to_video(row)

    async def update(
        self,
        user: User,
        video_id: UUID,
        title: str,
        description: str,
        thumbnail: Optional[FilePayload],
    ) -> Video:
        """Replace title, description and thumbnail of an owned video.

        The old thumbnail is deleted from the provider before the new one
        is uploaded.

        Raises:
            BadRequestError: Missing fields or thumbnail
            NotFoundError / ForbiddenError: From the ownership check
            UpstreamError: Provider delete or upload failed
        """
        if not title.strip() or not description.strip():
            raise BadRequestError("Provide updated title and description")
        if thumbnail is None or not thumbnail.content:
            raise BadRequestError("Provide thumbnail file")

        video = await authorize_owner(self.get_by_id, video_id, user, "video", "update")

        if await self.media.delete(video.thumbnail) != "ok":
            raise UpstreamError("Error while deleting old thumbnail")

        new_thumbnail = await self.media.upload(thumbnail.content, thumbnail.filename)

        async with connection() as conn:
            row = await conn.fetchrow(
                f"""
                UPDATE videos
                SET title = $1, description = $2, thumbnail = $3, updated_at = $4
                WHERE id = $5
                RETURNING {VIDEO_COLUMNS}
                """,
                title.strip(),
                description.strip(),
                new_thumbnail.url,
                datetime.now(timezone.utc),
                video_id,
            )

        if row is None:
            raise NotFoundError("Video not found")

        logger.info("video_updated", video_id=str(video_id), owner_id=str(user.id))
        return _row_to_video(row)

    async def delete(self, user: User, video_id: UUID) -> None:
        """Delete an owned video, its media assets and (by cascade) its comments.

        Raises:
            NotFoundError / ForbiddenError: From the ownership check
            UpstreamError: Provider delete failed
        """
        video = await authorize_owner(self.get_by_id, video_id, user, "video", "delete")

        if await self.media.delete(video.video_file) != "ok":
            raise UpstreamError("Error while deleting video file")
        if await self.media.delete(video.thumbnail) != "ok":
            raise UpstreamError("Error while deleting thumbnail")

        async with connection() as conn:
            result = await conn.execute("DELETE FROM videos WHERE id = $1", video_id)

        if result != "DELETE 1":
            raise StorageError("Error while deleting video")

        logger.info("video_deleted", video_id=str(video_id), owner_id=str(user.id))

    async def toggle_publish(self, user: User, video_id: UUID) -> Video:
        """Flip the published flag of an owned video."""
        video = await authorize_owner(
            self.get_by_id, video_id, user, "video", "modify the publish status of"
        )

        async with connection() as conn:
            row = await conn.fetchrow(
                f"""
                UPDATE videos
                SET is_published = $1, updated_at = $2
                WHERE id = $3
                RETURNING {VIDEO_COLUMNS}
                """,
                not video.is_published,
                datetime.now(timezone.utc),
                video_id,
            )

        if row is None:
            raise NotFoundError("Video not found")

        logger.info(
            "video_publish_toggled",
            video_id=str(video_id),
            is_published=row["is_published"],
        )
        return _row_to_video(row)
