"""Unit tests for the media provider client."""

import hashlib
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from vidtube.exceptions import UpstreamError
from vidtube.services.media_service import MediaService, parse_asset_url, sign_params


class TestSignParams:
    """Tests for request signing."""

    def test_sorted_pairs_with_secret_appended(self):
        params = {"timestamp": 1315060510, "public_id": "sample_image"}

        expected = hashlib.sha1(
            b"public_id=sample_image&timestamp=1315060510abcd"
        ).hexdigest()
        assert sign_params(params, "abcd") == expected

    def test_empty_values_are_skipped(self):
        assert sign_params({"timestamp": 1, "folder": ""}, "s") == sign_params(
            {"timestamp": 1}, "s"
        )


class TestParseAssetUrl:
    """Tests for delivery URL parsing."""

    def test_video_with_version_and_folder(self):
        url = "https://res.cloudinary.com/demo/video/upload/v1712/folder/clip.mp4"
        assert parse_asset_url(url) == ("video", "folder/clip")

    def test_image_without_version(self):
        url = "http://res.cloudinary.com/demo/image/upload/avatar.png"
        assert parse_asset_url(url) == ("image", "avatar")

    def test_raw_keeps_extension(self):
        url = "https://res.cloudinary.com/demo/raw/upload/v1/docs/readme.txt"
        assert parse_asset_url(url) == ("raw", "docs/readme.txt")

    @pytest.mark.parametrize(
        "url",
        [
            "",
            "https://example.com/some/file.png",
            "https://res.cloudinary.com/demo/unknown/upload/v1/file.png",
            "https://res.cloudinary.com/demo/image/upload/v1",
        ],
    )
    def test_unparseable(self, url):
        assert parse_asset_url(url) is None


# ---------------------------------------------------------------------------
# HTTP behaviour
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_settings():
    with patch("vidtube.services.media_service.get_settings") as mock:
        settings = MagicMock()
        settings.cloudinary_cloud_name = "demo"
        settings.cloudinary_api_key = "123456"
        settings.cloudinary_api_secret = "cloud-secret"
        settings.media_api_base_url = "https://api.cloudinary.com/v1_1"
        settings.media_api_timeout = 5
        mock.return_value = settings
        yield settings


def _response(status_code: int, payload: dict | None = None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload or {}
    response.text = ""
    return response


@pytest.fixture
def service(mock_settings):
    mock_client = AsyncMock()
    mock_client.is_closed = False
    service = MediaService()
    service._client = mock_client
    return service


class TestUpload:
    """Tests for MediaService.upload."""

    async def test_upload_success(self, service):
        service._client.post.return_value = _response(
            200,
            {
                "secure_url": "https://res.cloudinary.com/demo/video/upload/v1/clip.mp4",
                "public_id": "clip",
                "resource_type": "video",
                "duration": 12.5,
            },
        )

        asset = await service.upload(b"video-bytes", "clip.mp4")

        assert asset.url.endswith("clip.mp4")
        assert asset.duration == 12.5
        url = service._client.post.call_args[0][0]
        assert url == "https://api.cloudinary.com/v1_1/demo/auto/upload"
        data = service._client.post.call_args.kwargs["data"]
        assert data["api_key"] == "123456"
        assert "signature" in data
        assert "timestamp" in data

    async def test_client_error_raises_upstream(self, service):
        service._client.post.return_value = _response(400, {"error": {"message": "bad"}})

        with pytest.raises(UpstreamError, match="Error while uploading clip.mp4"):
            await service.upload(b"data", "clip.mp4")
        # 4xx is not retried
        assert service._client.post.call_count == 1

    async def test_retry_on_server_error(self, service):
        service._client.post.side_effect = [
            _response(503),
            _response(200, {"secure_url": "https://cdn/a.png", "public_id": "a"}),
        ]

        with patch("vidtube.services.media_service.asyncio.sleep", new_callable=AsyncMock):
            asset = await service.upload(b"data", "a.png")

        assert asset.url == "https://cdn/a.png"
        assert service._client.post.call_count == 2

    async def test_persistent_server_error_no_wait_after_last_attempt(self, service):
        service._client.post.return_value = _response(502)

        with patch(
            "vidtube.services.media_service.asyncio.sleep", new_callable=AsyncMock
        ) as mock_sleep:
            with pytest.raises(UpstreamError):
                await service.upload(b"data", "a.png")

        assert service._client.post.call_count == 3
        assert [c.args[0] for c in mock_sleep.await_args_list] == [1, 2]

    async def test_timeout_retries_then_fails(self, service):
        service._client.post.side_effect = httpx.TimeoutException("Timeout")

        with patch("vidtube.services.media_service.asyncio.sleep", new_callable=AsyncMock):
            with pytest.raises(UpstreamError):
                await service.upload(b"data", "a.png")

        assert service._client.post.call_count == 3

    async def test_missing_credentials(self, service, mock_settings):
        mock_settings.cloudinary_api_key = ""

        with pytest.raises(UpstreamError):
            await service.upload(b"data", "a.png")
        service._client.post.assert_not_called()


class TestDelete:
    """Tests for MediaService.delete."""

    async def test_delete_ok(self, service):
        service._client.post.return_value = _response(200, {"result": "ok"})

        result = await service.delete(
            "https://res.cloudinary.com/demo/image/upload/v1/thumbs/t.png"
        )

        assert result == "ok"
        url = service._client.post.call_args[0][0]
        assert url.endswith("/demo/image/destroy")
        assert service._client.post.call_args.kwargs["data"]["public_id"] == "thumbs/t"

    async def test_delete_not_found(self, service):
        service._client.post.return_value = _response(200, {"result": "not found"})

        assert await service.delete("https://res.cloudinary.com/demo/image/upload/x.png") == (
            "not found"
        )

    async def test_delete_unparseable_url_skips_request(self, service):
        assert await service.delete("https://example.com/x.png") == "invalid url"
        service._client.post.assert_not_called()

    async def test_delete_provider_failure(self, service):
        service._client.post.return_value = _response(401)

        assert await service.delete("https://res.cloudinary.com/demo/image/upload/x.png") == (
            "error"
        )
