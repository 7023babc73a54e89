"""Tests for resolving catalog image references."""

import asyncio
import hashlib

import pytest
import requests

from core.assets.fetcher import RemoteAssetFetcher, is_remote, remote_filename
from core.errors import AssetResolutionError
from core.models.domain import AssetStatus

from conftest import FakeResponse, FakeSession, save_image

URL = "https://cdn.example.com/parts/brake.png?size=large"


class TestRemoteFilename:
    def test_uses_md5_of_url_and_extension(self):
        digest = hashlib.md5(URL.encode("utf-8")).hexdigest()
        assert remote_filename(URL) == f"remote-{digest}.png"

    def test_defaults_to_jpg(self):
        assert remote_filename("https://cdn.example.com/image").endswith(".jpg")

    def test_is_remote(self):
        assert is_remote("http://a/b.png")
        assert is_remote("https://a/b.png")
        assert not is_remote("/images/b.png")


class TestLocalResolution:
    def test_resolves_under_public_root(self, tmp_path):
        save_image(tmp_path / "images" / "a.png")
        fetcher = RemoteAssetFetcher(tmp_path, session=FakeSession())
        result = asyncio.run(fetcher.resolve("/images/a.png"))
        assert result.status is AssetStatus.LOCAL
        assert result.path == tmp_path / "images" / "a.png"

    def test_missing_local_file(self, tmp_path):
        fetcher = RemoteAssetFetcher(tmp_path, session=FakeSession())
        result = asyncio.run(fetcher.resolve("images/none.png"))
        assert result.status is AssetStatus.NOT_FOUND
        assert not result.ok
        with pytest.raises(AssetResolutionError):
            result.unwrap()


class TestRemoteResolution:
    def test_downloads_once(self, tmp_path):
        session = FakeSession({URL: FakeResponse(200, b"png-bytes")})
        fetcher = RemoteAssetFetcher(tmp_path, session=session)

        async def scenario():
            return await fetcher.resolve(URL), await fetcher.resolve(URL)

        first, second = asyncio.run(scenario())
        assert session.calls == [URL]
        assert first.status is AssetStatus.DOWNLOADED
        assert second.status is AssetStatus.CACHED
        assert first.path == second.path == tmp_path / "images" / remote_filename(URL)
        assert first.path.read_bytes() == b"png-bytes"

    def test_concurrent_requests_share_one_download(self, tmp_path):
        session = FakeSession({URL: FakeResponse(200, b"data")})
        fetcher = RemoteAssetFetcher(tmp_path, session=session)

        async def scenario():
            return await asyncio.gather(*(fetcher.resolve(URL) for _ in range(4)))

        results = asyncio.run(scenario())
        assert len(session.calls) == 1
        assert all(result.ok for result in results)

    def test_existing_file_survives_restart(self, tmp_path):
        target = tmp_path / "images" / remote_filename(URL)
        target.parent.mkdir(parents=True)
        target.write_bytes(b"cached")
        session = FakeSession()
        fetcher = RemoteAssetFetcher(tmp_path, session=session)
        result = asyncio.run(fetcher.resolve(URL))
        assert result.status is AssetStatus.CACHED
        assert session.calls == []

    def test_http_error(self, tmp_path):
        session = FakeSession({URL: FakeResponse(404)})
        fetcher = RemoteAssetFetcher(tmp_path, session=session)
        result = asyncio.run(fetcher.resolve(URL))
        assert result.status is AssetStatus.HTTP_ERROR
        assert result.path is None
        assert not (tmp_path / "images" / remote_filename(URL)).exists()

    def test_network_error(self, tmp_path):
        session = FakeSession(error=requests.Timeout("too slow"))
        fetcher = RemoteAssetFetcher(tmp_path, session=session)
        result = asyncio.run(fetcher.resolve(URL))
        assert result.status is AssetStatus.NETWORK_ERROR
        assert "too slow" in result.detail

    def test_failed_download_is_retried_later(self, tmp_path):
        session = FakeSession({URL: FakeResponse(503)})
        fetcher = RemoteAssetFetcher(tmp_path, session=session)
        asyncio.run(fetcher.resolve(URL))
        session.responses[URL] = FakeResponse(200, b"ok")
        result = asyncio.run(fetcher.resolve(URL))
        assert result.status is AssetStatus.DOWNLOADED
        assert len(session.calls) == 2

    def test_bad_url(self, tmp_path):
        session = FakeSession()
        fetcher = RemoteAssetFetcher(tmp_path, session=session)
        result = asyncio.run(fetcher.resolve("https:///no-host.png"))
        assert result.status is AssetStatus.BAD_URL
        assert session.calls == []

    def test_unparseable_url(self, tmp_path):
        session = FakeSession()
        fetcher = RemoteAssetFetcher(tmp_path, session=session)
        result = asyncio.run(fetcher.resolve("http://[broken/x.png"))
        assert result.status is AssetStatus.BAD_URL
        assert not result.ok
        assert session.calls == []

    def test_custom_remote_dir(self, tmp_path):
        session = FakeSession({URL: FakeResponse(200, b"x")})
        fetcher = RemoteAssetFetcher(tmp_path / "public", remote_dir=tmp_path / "cache", session=session)
        result = asyncio.run(fetcher.resolve(URL))
        assert result.path.parent == tmp_path / "cache"
