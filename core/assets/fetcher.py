# Path: core/assets/fetcher.py
# Purpose: Resolve catalog image references to local files, downloading remote URLs once.
# Layer: core/assets.
# Details: Remote downloads are cached forever under a file name derived from the URL hash.

from __future__ import annotations

import asyncio
import hashlib
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional
from urllib.parse import urlparse

import requests

from core.models.domain import AssetResolution, AssetStatus

logger = logging.getLogger(__name__)

REMOTE_SCHEMES = ("http://", "https://")
DEFAULT_EXTENSION = ".jpg"


def is_remote(reference: str) -> bool:
    return reference.startswith(REMOTE_SCHEMES)


def remote_filename(url: str) -> str:
    """Deterministic local file name for a remote image URL."""

    extension = os.path.splitext(urlparse(url).path)[1] or DEFAULT_EXTENSION
    digest = hashlib.md5(url.encode("utf-8")).hexdigest()
    return f"remote-{digest}{extension}"


class RemoteAssetFetcher:
    """Turn image references into local paths.

    Relative references resolve under ``public_root``. Absolute URLs are
    downloaded into ``remote_dir`` at most once per URL: an existing file with
    the hash-derived name is reused without any network call, also across
    restarts.
    """

    def __init__(
        self,
        public_root: Path,
        remote_dir: Optional[Path] = None,
        timeout: float = 15.0,
        session: Optional[requests.Session] = None,
        user_agent: str = "partlens/0.1",
    ) -> None:
        self.public_root = Path(public_root)
        self.remote_dir = Path(remote_dir) if remote_dir is not None else self.public_root / "images"
        self.timeout = timeout
        if session is None:
            session = requests.Session()
            session.headers["User-Agent"] = user_agent
        self.session = session
        self._resolved: Dict[str, Path] = {}
        self._inflight: Dict[str, asyncio.Lock] = {}

    async def resolve(self, reference: str) -> AssetResolution:
        """Resolve one reference; failures come back as a non-ok :class:`AssetResolution`."""

        if is_remote(reference):
            return await self._resolve_remote(reference)
        return self.resolve_local(reference)

    def resolve_local(self, reference: str) -> AssetResolution:
        path = self.public_root / reference.lstrip("/\\")
        if not path.is_file():
            return AssetResolution(reference, AssetStatus.NOT_FOUND, detail=f"missing {path}")
        return AssetResolution(reference, AssetStatus.LOCAL, path=path)

    async def _resolve_remote(self, url: str) -> AssetResolution:
        try:
            host = urlparse(url).netloc
            filename = remote_filename(url)
        except ValueError as exc:
            logger.warning("Skipping malformed image URL %s: %s", url, exc)
            return AssetResolution(url, AssetStatus.BAD_URL, detail=str(exc))
        if not host:
            logger.warning("Skipping malformed image URL %s", url)
            return AssetResolution(url, AssetStatus.BAD_URL, detail="no host")

        lock = self._inflight.setdefault(filename, asyncio.Lock())
        async with lock:
            cached = self._resolved.get(filename)
            if cached is not None and cached.is_file():
                return AssetResolution(url, AssetStatus.CACHED, path=cached)

            dest = self.remote_dir / filename
            if dest.is_file():
                self._resolved[filename] = dest
                return AssetResolution(url, AssetStatus.CACHED, path=dest)

            logger.info("Downloading remote image %s -> %s", url, dest)
            result = await asyncio.to_thread(self._download, url, dest)
            if result.ok and result.path is not None:
                self._resolved[filename] = result.path
            return result

    def _download(self, url: str, dest: Path) -> AssetResolution:
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning("Could not download image %s: %s", url, exc)
            return AssetResolution(url, AssetStatus.NETWORK_ERROR, detail=str(exc))

        if not response.ok:
            logger.warning("Could not download image %s: http %s", url, response.status_code)
            return AssetResolution(url, AssetStatus.HTTP_ERROR, detail=f"http {response.status_code}")

        try:
            self._write_atomic(dest, response.content)
        except OSError as exc:
            logger.warning("Could not store image %s at %s: %s", url, dest, exc)
            return AssetResolution(url, AssetStatus.NETWORK_ERROR, detail=f"write failed: {exc}")
        return AssetResolution(url, AssetStatus.DOWNLOADED, path=dest)

    @staticmethod
    def _write_atomic(dest: Path, payload: bytes) -> None:
        dest.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=dest.parent, prefix=".download-", suffix=dest.suffix)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(payload)
            os.replace(tmp_name, dest)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise
