"""Shared test fixtures for the part search tests."""

import json
from pathlib import Path

import numpy as np
import pytest
import requests
from PIL import Image

from core.embedders.base import Embedder
from core.models.domain import ProviderMode


def save_image(path: Path, size=(120, 80), color=(200, 30, 30), mode="RGB", pattern=None) -> Path:
    """Write a synthetic image to ``path`` and return the path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    if pattern == "gradient":
        width, height = size
        ramp = np.tile(np.linspace(0, 255, width, dtype=np.uint8), (height, 1))
        img = Image.fromarray(np.stack([ramp, ramp[:, ::-1], ramp], axis=-1))
        if mode != "RGB":
            img = img.convert(mode)
    elif pattern == "checker":
        width, height = size
        cells = (np.indices((height, width)) // 10).sum(axis=0) % 2
        gray = (cells * 220 + 20).astype(np.uint8)
        img = Image.fromarray(gray).convert(mode)
    else:
        img = Image.new(mode, size, color)
    img.save(path)
    return path


class FakeResponse:
    def __init__(self, status_code=200, content=b""):
        self.status_code = status_code
        self.content = content

    @property
    def ok(self):
        return 200 <= self.status_code < 400


class FakeSession:
    """Stand-in for requests.Session that records every GET."""

    def __init__(self, responses=None, error=None):
        self.headers = {}
        self.responses = responses or {}
        self.error = error
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        return self.responses.get(url, FakeResponse(404))


class StaticEmbedder(Embedder):
    """Embedder returning a fixed vector and counting its calls."""

    def __init__(self, vector, mode=ProviderMode.PRIMARY, fail=False):
        self.vector = np.asarray(vector, dtype=np.float32)
        self.mode = mode
        self.name = "static"
        self.fail = fail
        self.calls = 0

    def embed_image(self, path):
        self.calls += 1
        if self.fail:
            raise RuntimeError("encoder crashed")
        return self.vector


@pytest.fixture
def png_bytes(tmp_path):
    """Bytes of a small decodable PNG."""
    return save_image(tmp_path / "query.png", pattern="gradient").read_bytes()


@pytest.fixture
def catalog_tree(tmp_path):
    """Public asset root with three parts; part 2 points at a missing file."""
    public = tmp_path / "public"
    save_image(public / "images" / "brake.png", pattern="gradient")
    save_image(public / "images" / "filter.png", pattern="checker")
    records = [
        {"id": 1, "name": "Brake pad", "brand": "Bosch", "oem": "0986494", "image": "/images/brake.png"},
        {"id": 2, "name": "Spark plug", "brand": "NGK", "oem": "BKR6E", "image": "images/missing.png"},
        {"id": 3, "name": "Oil filter", "brand": "Mann", "oem": "W712", "images": ["images/filter.png"]},
    ]
    catalog_path = tmp_path / "data" / "parts.json"
    catalog_path.parent.mkdir(parents=True)
    catalog_path.write_text(json.dumps(records), encoding="utf-8")
    return {"root": tmp_path, "public": public, "catalog": catalog_path, "records": records}


@pytest.fixture
def offline_session():
    """Session that fails every request, for tests that must not touch the network."""
    return FakeSession(error=requests.ConnectionError("offline"))


@pytest.fixture
def pixel_limit(monkeypatch):
    """Lower Pillow's decompression-bomb limit; anything above twice the limit fails to open."""
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 10_000)
    return 10_000
