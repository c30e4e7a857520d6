"""User credential store and profile queries."""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

import asyncpg
import bcrypt
import structlog

from vidtube.database import connection
from vidtube.exceptions import ConflictError
from vidtube.models.user import ChannelProfile, OwnerSummary, User, WatchedVideo

logger = structlog.get_logger(__name__)

USER_COLUMNS = "id, username, email, full_name, avatar, cover_image, created_at, updated_at"


# bcrypt only reads the first 72 bytes; bcrypt>=5 raises on longer input
MAX_PASSWORD_BYTES = 72


def password_too_long(password: str) -> bool:
    return len(password.encode("utf-8")) > MAX_PASSWORD_BYTES


def hash_password(password: str) -> str:
    """Hash a password using bcrypt.

    Args:
        password: Plain-text password to hash

    Returns:
        Bcrypt hash string
    """
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def check_password(password: str, password_hash: str) -> bool:
    """Verify a password against a bcrypt hash.

    Over-long candidates can never have been stored, so they never match.
    """
    if password_too_long(password):
        return False
    return bcrypt.checkpw(
        password.encode("utf-8"),
        password_hash.encode("utf-8"),
    )


def _row_to_user(row) -> User:
    return User(
        id=row["id"],
        username=row["username"],
        email=row["email"],
        full_name=row["full_name"],
        avatar=row["avatar"],
        cover_image=row["cover_image"] or "",
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class UserService:
    """Service for user persistence, credentials and refresh-token state."""

    async def create_user(
        self,
        username: str,
        email: str,
        full_name: str,
        password: str,
        avatar: str,
        cover_image: str = "",
    ) -> User:
        """Create a new user with a hashed password.

        Args:
            username: Unique username (stored lower-cased)
            email: Unique email address
            full_name: Display name
            password: Plain-text password (will be hashed)
            avatar: Avatar URL from the media provider
            cover_image: Optional cover image URL

        Returns:
            Created User model

        Raises:
            ConflictError: If the username or email is already taken
        """
        username = username.lower()

        if await self.exists(username, email):
            raise ConflictError("User with email or username already exists")

        user_id = uuid4()
        now = datetime.now(timezone.utc)
        password_hash = hash_password(password)

        async with connection() as conn:
            try:
                await conn.execute(
                    """
                    INSERT INTO users (id, username, email, full_name, avatar, cover_image,
                                       password_hash, created_at, updated_at)
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
                    """,
                    user_id,
                    username,
                    email,
                    full_name,
                    avatar,
                    cover_image,
                    password_hash,
                    now,
                    now,
                )
            except asyncpg.UniqueViolationError:
                raise ConflictError("User with email or username already exists")

        logger.info("user_created", user_id=str(user_id), username=username)

        return User(
            id=user_id,
            username=username,
            email=email,
            full_name=full_name,
            avatar=avatar,
            cover_image=cover_image,
            created_at=now,
            updated_at=now,
        )

    async def exists(self, username: str, email: str) -> bool:
        """Whether a user already holds this username or email."""
        async with connection() as conn:
            found = await conn.fetchval(
                """
                SELECT EXISTS(
                    SELECT 1 FROM users WHERE username = LOWER($1) OR email = $2
                )
                """,
                username,
                email,
            )
        return bool(found)

    async def find_by_login(
        self, username: Optional[str] = None, email: Optional[str] = None
    ) -> Optional[User]:
        """Find a user by username or email, whichever is given.

        Returns:
            User model or None if neither matches
        """
        async with connection() as conn:
            row = await conn.fetchrow(
                f"""
                SELECT {USER_COLUMNS}
                FROM users
                WHERE ($1::text IS NOT NULL AND username = LOWER($1))
                   OR ($2::text IS NOT NULL AND email = $2)
                LIMIT 1
                """,
                username,
                email,
            )

        if row is None:
            return None
        return _row_to_user(row)

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        """Get a user by UUID.

        Returns:
            User model or None if not found
        """
        async with connection() as conn:
            row = await conn.fetchrow(
                f"SELECT {USER_COLUMNS} FROM users WHERE id = $1",
                user_id,
            )

        if row is None:
            return None
        return _row_to_user(row)

    async def verify_password(self, user_id: UUID, candidate: str) -> bool:
        """Check a candidate password against the stored hash.

        Returns:
            True if the password matches, False otherwise (including unknown user)
        """
        async with connection() as conn:
            password_hash = await conn.fetchval(
                "SELECT password_hash FROM users WHERE id = $1",
                user_id,
            )

        if password_hash is None or not candidate:
            return False
        return check_password(candidate, password_hash)

    async def update_password(self, user_id: UUID, new_password: str) -> None:
        """Rehash and store a new password."""
        password_hash = hash_password(new_password)

        async with connection() as conn:
            await conn.execute(
                """
                UPDATE users
                SET password_hash = $1, updated_at = $2
                WHERE id = $3
                """,
                password_hash,
                datetime.now(timezone.utc),
                user_id,
            )

        logger.info("user_password_changed", user_id=str(user_id))

    async def get_refresh_token(self, user_id: UUID) -> Optional[str]:
        """Return the single live refresh token, if any."""
        async with connection() as conn:
            return await conn.fetchval(
                "SELECT refresh_token FROM users WHERE id = $1",
                user_id,
            )

    async def set_refresh_token(self, user_id: UUID, token: Optional[str]) -> None:
        """Overwrite the stored refresh token; None clears it.

        Last write wins. Used by login (set) and logout (clear).
        """
        async with connection() as conn:
            await conn.execute(
                """
                UPDATE users
                SET refresh_token = $1,
                    refresh_token_version = refresh_token_version + 1
                WHERE id = $2
                """,
                token,
                user_id,
            )

        logger.info(
            "refresh_token_cleared" if token is None else "refresh_token_stored",
            user_id=str(user_id),
        )

    async def rotate_refresh_token(self, user_id: UUID, expected: str, new: str) -> bool:
        """Replace the refresh token only if it still equals `expected`.

        Returns:
            True if the swap happened, False if another write got there first
        """
        async with connection() as conn:
            result = await conn.execute(
                """
                UPDATE users
                SET refresh_token = $1,
                    refresh_token_version = refresh_token_version + 1
                WHERE id = $2 AND refresh_token = $3
                """,
                new,
                user_id,
                expected,
            )

        rotated = result == "UPDATE 1"
        if rotated:
            logger.info("refresh_token_rotated", user_id=str(user_id))
        else:
            logger.warning("refresh_token_rotation_conflict", user_id=str(user_id))
        return rotated

    async def update_account(self, user_id: UUID, full_name: str, email: str) -> Optional[User]:
        """Update name and email.

        Raises:
            ConflictError: If the email belongs to another user
        """
        async with connection() as conn:
            try:
                row = await conn.fetchrow(
                    f"""
                    UPDATE users
                    SET full_name = $1, email = $2, updated_at = $3
                    WHERE id = $4
                    RETURNING {USER_COLUMNS}
                    """,
                    full_name,
                    email,
                    datetime.now(timezone.utc),
                    user_id,
                )
            except asyncpg.UniqueViolationError:
                raise ConflictError("Email is already in use")

        if row is None:
            return None

        logger.info("user_account_updated", user_id=str(user_id))
        return _row_to_user(row)

    async def update_avatar(self, user_id: UUID, url: str) -> Optional[User]:
        return await self._update_image(user_id, "avatar", url)

    async def update_cover_image(self, user_id: UUID, url: str) -> Optional[User]:
        return await self._update_image(user_id, "cover_image", url)

    async def _update_image(self, user_id: UUID, column: str, url: str) -> Optional[User]:
        # column is one of two literals above, never user input
        async with connection() as conn:
            row = await conn.fetchrow(
                f"""
                UPDATE users
                SET {column} = $1, updated_at = $2
                WHERE id = $3
                RETURNING {USER_COLUMNS}
                """,
                url,
                datetime.now(timezone.utc),
                user_id,
            )

        if row is None:
            return None

        logger.info("user_image_updated", user_id=str(user_id), field=column)
        return _row_to_user(row)

    async def get_channel_profile(
        self, username: str, viewer_id: Optional[UUID] = None
    ) -> Optional[ChannelProfile]:
        """Channel page with subscriber counts and the viewer's subscription state."""
        async with connection() as conn:
            row = await conn.fetchrow(
                """
                SELECT u.id, u.username, u.email, u.full_name, u.avatar, u.cover_image,
                       (SELECT COUNT(*) FROM subscriptions s WHERE s.channel_id = u.id)
                           AS subscribers_count,
                       (SELECT COUNT(*) FROM subscriptions s WHERE s.subscriber_id = u.id)
                           AS channels_subscribed_to_count,
                       EXISTS(
                           SELECT 1 FROM subscriptions s
                           WHERE s.channel_id = u.id AND s.subscriber_id = $2
                       ) AS is_subscribed
                FROM users u
                WHERE u.username = LOWER($1)
                """,
                username,
                viewer_id,
            )

        if row is None:
            return None

        return ChannelProfile(
            id=row["id"],
            username=row["username"],
            email=row["email"],
            full_name=row["full_name"],
            avatar=row["avatar"],
            cover_image=row["cover_image"] or "",
            subscribers_count=row["subscribers_count"],
            channels_subscribed_to_count=row["channels_subscribed_to_count"],
            is_subscribed=row["is_subscribed"],
        )

    async def add_to_watch_history(self, user_id: UUID, video_id: UUID) -> None:
        """Append a video to the user's watch history."""
        async with connection() as conn:
            await conn.execute(
                "INSERT INTO watch_history (user_id, video_id) VALUES ($1, $2)",
                user_id,
                video_id,
            )

    async def get_watch_history(self, user_id: UUID) -> list[WatchedVideo]:
        """Watched videos in the order they were watched, owners resolved."""
        async with connection() as conn:
            rows = await conn.fetch(
                """
                SELECT v.id, v.title, v.description, v.video_file, v.thumbnail,
                       v.duration, v.views, w.watched_at,
                       o.id AS owner_id, o.username AS owner_username,
                       o.full_name AS owner_full_name, o.avatar AS owner_avatar
                FROM watch_history w
                JOIN videos v ON v.id = w.video_id
                LEFT JOIN users o ON o.id = v.owner_id
                WHERE w.user_id = $1
                ORDER BY w.id ASC
                """,
                user_id,
            )

        return [
            WatchedVideo(
                id=row["id"],
                title=row["title"],
                description=row["description"],
                video_file=row["video_file"],
                thumbnail=row["thumbnail"],
                duration=float(row["duration"]),
                views=row["views"],
                watched_at=row["watched_at"],
                owner=OwnerSummary(
                    id=row["owner_id"],
                    username=row["owner_username"],
                    full_name=row["owner_full_name"],
                    avatar=row["owner_avatar"],
                )
                if row["owner_id"] is not None
                else None,
            )
            for row in rows
        ]

    async def toggle_subscription(self, subscriber_id: UUID, channel_id: UUID) -> bool:
        """Subscribe if not subscribed, otherwise unsubscribe.

        Returns:
            True if the subscriber is now subscribed
        """
        async with connection() as conn:
            result = await conn.execute(
                "DELETE FROM subscriptions WHERE subscriber_id = $1 AND channel_id = $2",
                subscriber_id,
                channel_id,
            )
            if result == "DELETE 1":
                subscribed = False
            else:
                await conn.execute(
                    """
                    INSERT INTO subscriptions (subscriber_id, channel_id)
                    VALUES ($1, $2)
                    ON CONFLICT DO NOTHING
                    """,
                    subscriber_id,
                    channel_id,
                )
                subscribed = True

        logger.info(
            "subscription_toggled",
            subscriber_id=str(subscriber_id),
            channel_id=str(channel_id),
            subscribed=subscribed,
        )
        return subscribed
