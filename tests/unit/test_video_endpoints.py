"""Unit tests for /api/v1/videos and /api/v1/comments endpoints."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from vidtube.api.dependencies import (
    get_comment_service,
    get_current_user,
    get_user_service,
    get_video_service,
)
from vidtube.exceptions import ForbiddenError, NotFoundError, UpstreamError
from vidtube.models.comment import Comment
from vidtube.models.video import Video, VideoPage


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def videos():
    return MagicMock()


@pytest.fixture
def comments():
    return MagicMock()


@pytest.fixture
def users():
    mock = MagicMock()
    mock.add_to_watch_history = AsyncMock()
    return mock


@pytest.fixture
def authed(client, user, videos, comments, users):
    from vidtube.main import app

    app.dependency_overrides[get_current_user] = lambda: user
    app.dependency_overrides[get_video_service] = lambda: videos
    app.dependency_overrides[get_comment_service] = lambda: comments
    app.dependency_overrides[get_user_service] = lambda: users
    return client


def _make_video(owner_id, **overrides) -> Video:
    now = datetime.now(timezone.utc)
    fields = dict(
        id=uuid4(),
        video_file="https://res.cloudinary.com/demo/video/upload/v1/clip.mp4",
        thumbnail="https://res.cloudinary.com/demo/image/upload/v1/thumb.png",
        title="Clip",
        description="A clip",
        duration=42.0,
        views=1,
        is_published=True,
        owner_id=owner_id,
        created_at=now,
        updated_at=now,
    )
    fields.update(overrides)
    return Video(**fields)


def _make_comment(owner_id, video_id) -> Comment:
    now = datetime.now(timezone.utc)
    return Comment(
        id=uuid4(),
        content="Nice",
        video_id=video_id,
        owner_id=owner_id,
        created_at=now,
        updated_at=now,
    )


# ---------------------------------------------------------------------------
# Videos
# ---------------------------------------------------------------------------

class TestVideoEndpoints:
    def test_list_videos_passes_query_params(self, authed, videos):
        owner_id = uuid4()
        videos.list_videos = AsyncMock(
            return_value=VideoPage(videos=[], total_videos=0, page=2, limit=5)
        )

        response = authed.get(
            "/api/v1/videos",
            params={
                "page": 2,
                "limit": 5,
                "query": " cat ",
                "sortBy": "views",
                "sortType": "desc",
                "userId": str(owner_id),
            },
        )

        assert response.status_code == 200
        assert response.json()["data"]["totalVideos"] == 0
        videos.list_videos.assert_awaited_once_with(
            page=2, limit=5, query="cat", sort_by="views", sort_type="desc", owner_id=owner_id
        )

    def test_list_videos_rejects_bad_user_id(self, authed, videos):
        videos.list_videos = AsyncMock()

        response = authed.get("/api/v1/videos", params={"userId": "not-a-uuid"})

        assert response.status_code == 400
        assert response.json()["success"] is False
        videos.list_videos.assert_not_awaited()

    def test_publish_video(self, authed, videos, user):
        video = _make_video(user.id)
        videos.publish = AsyncMock(return_value=video)

        response = authed.post(
            "/api/v1/videos",
            data={"title": "Clip", "description": "A clip"},
            files={
                "videoFile": ("clip.mp4", b"mp4", "video/mp4"),
                "thumbnail": ("thumb.png", b"png", "image/png"),
            },
        )

        assert response.status_code == 201
        assert response.json()["data"]["ownerId"] == str(user.id)
        kwargs = videos.publish.call_args.kwargs
        assert kwargs["video_file"].filename == "clip.mp4"
        assert kwargs["thumbnail"].filename == "thumb.png"
        assert kwargs["is_published"] is True

    def test_publish_over_long_title_is_400_before_upload(self, authed, videos):
        videos.publish = AsyncMock()

        response = authed.post(
            "/api/v1/videos",
            data={"title": "T" * 256, "description": "A clip"},
            files={
                "videoFile": ("clip.mp4", b"mp4", "video/mp4"),
                "thumbnail": ("thumb.png", b"png", "image/png"),
            },
        )

        assert response.status_code == 400
        assert "title" in response.json()["message"]
        videos.publish.assert_not_awaited()

    def test_update_over_long_title_is_400(self, authed, videos):
        videos.update = AsyncMock()

        response = authed.patch(
            f"/api/v1/videos/{uuid4()}",
            data={"title": "T" * 256, "description": "Desc"},
        )

        assert response.status_code == 400
        videos.update.assert_not_awaited()

    def test_get_video_records_view_and_history(self, authed, videos, users, user):
        video = _make_video(uuid4(), views=7)
        videos.record_view = AsyncMock(return_value=video)

        response = authed.get(f"/api/v1/videos/{video.id}")

        assert response.status_code == 200
        assert response.json()["data"]["views"] == 7
        users.add_to_watch_history.assert_awaited_once_with(user.id, video.id)

    def test_get_missing_video(self, authed, videos, users):
        videos.record_view = AsyncMock(side_effect=NotFoundError("Video not found"))

        response = authed.get(f"/api/v1/videos/{uuid4()}")

        assert response.status_code == 404
        users.add_to_watch_history.assert_not_awaited()

    def test_malformed_video_id(self, authed):
        response = authed.get("/api/v1/videos/not-a-uuid")

        assert response.status_code == 400

    def test_update_video(self, authed, videos, user):
        video = _make_video(user.id, title="New")
        videos.update = AsyncMock(return_value=video)

        response = authed.patch(
            f"/api/v1/videos/{video.id}",
            data={"title": "New", "description": "Desc"},
            files={"thumbnail": ("t.png", b"png", "image/png")},
        )

        assert response.status_code == 200
        assert response.json()["data"]["title"] == "New"

    def test_update_thumbnail_delete_failure_is_502(self, authed, videos):
        videos.update = AsyncMock(side_effect=UpstreamError("Error while deleting old thumbnail"))

        response = authed.patch(
            f"/api/v1/videos/{uuid4()}",
            data={"title": "New", "description": "Desc"},
            files={"thumbnail": ("t.png", b"png", "image/png")},
        )

        assert response.status_code == 502
        assert response.json()["message"] == "Error while deleting old thumbnail"

    def test_delete_video_by_non_owner(self, authed, videos):
        videos.delete = AsyncMock(
            side_effect=ForbiddenError("You are not allowed to delete this video")
        )

        response = authed.delete(f"/api/v1/videos/{uuid4()}")

        assert response.status_code == 403
        assert response.json() == {
            "statusCode": 403,
            "data": None,
            "message": "You are not allowed to delete this video",
            "success": False,
        }

    def test_delete_video(self, authed, videos, user):
        videos.delete = AsyncMock()
        video_id = uuid4()

        response = authed.delete(f"/api/v1/videos/{video_id}")

        assert response.status_code == 200
        videos.delete.assert_awaited_once_with(user, video_id)

    def test_toggle_publish(self, authed, videos, user):
        video = _make_video(user.id, is_published=False)
        videos.toggle_publish = AsyncMock(return_value=video)

        response = authed.patch(f"/api/v1/videos/toggle/publish/{video.id}")

        assert response.status_code == 200
        assert response.json()["data"]["isPublished"] is False


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------

class TestCommentEndpoints:
    def test_list_comments(self, authed, comments):
        comments.list_for_video = AsyncMock(return_value=[])
        video_id = uuid4()

        response = authed.get(f"/api/v1/comments/{video_id}", params={"page": 2, "limit": 3})

        assert response.status_code == 200
        comments.list_for_video.assert_awaited_once_with(video_id, page=2, limit=3)

    def test_add_comment(self, authed, comments, user):
        video_id = uuid4()
        comments.create = AsyncMock(return_value=_make_comment(user.id, video_id))

        response = authed.post(f"/api/v1/comments/{video_id}", json={"content": "  Nice "})

        assert response.status_code == 201
        comments.create.assert_awaited_once_with(user, video_id, "Nice")
        assert response.json()["data"]["videoId"] == str(video_id)

    def test_add_comment_to_missing_video(self, authed, comments):
        comments.create = AsyncMock(side_effect=NotFoundError("Video not found"))

        response = authed.post(f"/api/v1/comments/{uuid4()}", json={"content": "hi"})

        assert response.status_code == 404

    def test_update_comment(self, authed, comments, user):
        comment = _make_comment(user.id, uuid4())
        comments.update = AsyncMock(return_value=comment)

        response = authed.patch(f"/api/v1/comments/c/{comment.id}", json={"content": "Nice"})

        assert response.status_code == 200
        comments.update.assert_awaited_once_with(user, comment.id, "Nice")

    def test_delete_comment_by_non_owner(self, authed, comments):
        comments.delete = AsyncMock(
            side_effect=ForbiddenError("You are not allowed to delete this comment")
        )

        response = authed.delete(f"/api/v1/comments/c/{uuid4()}")

        assert response.status_code == 403
        assert response.json()["success"] is False

    def test_delete_comment(self, authed, comments, user):
        comments.delete = AsyncMock()
        comment_id = uuid4()

        response = authed.delete(f"/api/v1/comments/c/{comment_id}")

        assert response.status_code == 200
        comments.delete.assert_awaited_once_with(user, comment_id)


class TestUnauthenticated:
    @pytest.mark.parametrize(
        "method, path",
        [
            ("get", "/api/v1/videos"),
            ("post", "/api/v1/videos"),
            ("delete", "/api/v1/comments/c/00000000-0000-0000-0000-000000000000"),
            ("get", "/api/v1/users/history"),
        ],
    )
    def test_protected_routes_require_token(self, client, method, path):
        response = getattr(client, method)(path)

        assert response.status_code == 401
        assert response.json()["message"] == "Unauthorized request"
