"""Tests for the HTTP surface."""

import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from config import AppSettings
from core.errors import CatalogLoadError
from core.services import build_services


@pytest.fixture
def settings(catalog_tree):
    settings = AppSettings(
        catalog_path=catalog_tree["catalog"],
        uploads_dir=catalog_tree["root"] / "uploads",
    )
    settings.embedder.primary_enabled = False
    settings.assets.public_root = catalog_tree["public"]
    settings.assets.remote_dir = catalog_tree["public"] / "images"
    settings.index.index_path = catalog_tree["root"] / "data" / "embeddings.json"
    settings.index.build_on_startup = False
    settings.index.show_progress = False
    return settings


@pytest.fixture
def client(settings):
    with TestClient(create_app(build_services(settings))) as client:
        yield client


class TestCatalogRoutes:
    def test_health(self, client):
        payload = client.get("/").json()
        assert payload["status"] == "ok"
        assert payload["parts"] == 3

    def test_list_parts(self, client):
        assert len(client.get("/api/parts").json()["parts"]) == 3

    def test_filter_parts(self, client):
        parts = client.get("/api/parts", params={"q": "ngk"}).json()["parts"]
        assert [p["id"] for p in parts] == [2]

    def test_get_part(self, client):
        assert client.get("/api/parts/3").json()["part"]["name"] == "Oil filter"

    def test_get_missing_part(self, client):
        assert client.get("/api/parts/42").status_code == 404

    def test_get_invalid_id(self, client):
        assert client.get("/api/parts/abc").status_code == 400
        assert client.get("/api/parts/0").status_code == 400

    def test_numeric_id_forms(self, client):
        assert client.get("/api/parts/3.0").json()["part"]["id"] == 3
        assert client.get("/api/parts/1.5").status_code == 404
        assert client.get("/api/parts/nan").status_code == 400

    def test_vin_lookup(self, client):
        payload = client.get("/api/vin/wvwzzz1jzxw000001").json()
        assert payload["vin"] == "WVWZZZ1JZXW000001"
        assert len(payload["parts"]) == 3

    def test_static_files(self, client):
        response = client.get("/static/images/brake.png")
        assert response.status_code == 200


class TestSearchRoute:
    def test_missing_file(self, client):
        response = client.post("/api/search-by-image")
        assert response.status_code == 400

    def test_ranked_search(self, client, catalog_tree):
        photo = (catalog_tree["public"] / "images" / "brake.png").read_bytes()
        response = client.post("/api/search-by-image", files={"image": ("photo.png", photo, "image/png")})
        payload = response.json()
        assert response.status_code == 200
        assert payload["degraded"] is False
        assert payload["results"][0]["id"] == 1
        assert list((catalog_tree["root"] / "uploads").iterdir()) == []

    def test_legacy_route_degrades_on_bad_upload(self, client):
        response = client.post("/search-image", files={"image": ("photo.jpg", b"nope", "image/jpeg")})
        payload = response.json()
        assert response.status_code == 200
        assert payload["degraded"] is True
        assert len(payload["results"]) == 3

    def test_search_persists_index(self, client, settings):
        client.post("/search-image", files={"image": ("photo.jpg", b"nope", "image/jpeg")})
        assert settings.index.index_path.exists()


def test_startup_build(settings):
    settings.index.build_on_startup = True
    services = build_services(settings)
    with TestClient(create_app(services)) as client:
        client.post("/search-image", files={"image": ("photo.jpg", b"nope", "image/jpeg")})
    assert services.builder.index is not None
    assert len(services.builder.index) == 2


def test_unloadable_catalog_refuses_to_start(settings, tmp_path):
    settings.catalog_path = tmp_path / "missing.json"
    with pytest.raises(CatalogLoadError):
        build_services(settings)
