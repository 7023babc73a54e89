# Path: config/settings.py
# Purpose: Provide typed application configuration models.
# Layer: config.
# Details: Centralizes settings for the embedding provider, asset resolution, index persistence, and the HTTP surface.

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict

from pydantic import BaseModel, Field


class EmbedderSettings(BaseModel):
    """Settings describing the primary encoder and the offline fallback descriptor."""

    model_name: str = Field(default="google/vit-base-patch16-224", description="Pretrained vision model used as primary encoder.")
    primary_enabled: bool = Field(default=True, description="Attempt to load the primary encoder at all.")
    fallback_size: int = Field(default=64, gt=0, description="Square side the fallback descriptor resizes images to.")
    fallback_dims: int = Field(default=256, gt=0, description="Output dimensionality of the fallback descriptor.")
    inference_timeout: float = Field(default=60.0, gt=0, description="Seconds allowed for model loading or a single inference.")


class AssetSettings(BaseModel):
    """Settings controlling where catalog images live and how remote ones are fetched."""

    public_root: Path = Field(default=Path("public"), description="Public asset root that relative image references resolve under.")
    remote_dir: Path = Field(default=Path("public/images"), description="Directory receiving downloaded remote images.")
    fetch_timeout: float = Field(default=15.0, gt=0, description="Seconds allowed for a single remote image download.")
    user_agent: str = Field(default="partlens/0.1", description="User-Agent header sent with remote image downloads.")


class IndexSettings(BaseModel):
    """Settings controlling embedding index persistence and ranking."""

    index_path: Path = Field(default=Path("data/embeddings.json"), description="Path to the serialized embedding index.")
    top_k: int = Field(default=6, gt=0, description="Number of ranked matches returned by a search.")
    sample_size: int = Field(default=6, gt=0, description="Number of catalog items returned by a degraded search.")
    build_on_startup: bool = Field(default=True, description="Build the index when the API starts instead of on first query.")
    show_progress: bool = Field(default=True, description="Display a progress bar while indexing the catalog.")


class AppSettings(BaseModel):
    """Top-level application settings shared across services and interfaces."""

    catalog_path: Path = Field(default=Path("data/parts.json"), description="JSON file holding the parts catalog.")
    uploads_dir: Path = Field(default=Path("uploads"), description="Scratch directory for transient query uploads.")
    host: str = Field(default="0.0.0.0", description="Interface the HTTP API binds to.")
    port: int = Field(default=5002, description="Port the HTTP API listens on.")
    log_level: str = Field(default="INFO", description="Verbosity level for application logs.")
    embedder: EmbedderSettings = Field(default_factory=EmbedderSettings)
    assets: AssetSettings = Field(default_factory=AssetSettings)
    index: IndexSettings = Field(default_factory=IndexSettings)

    @classmethod
    def from_env(cls, environ: Dict[str, str] | None = None) -> "AppSettings":
        """Instantiate settings, applying environment overrides when present."""

        env = os.environ if environ is None else environ
        data: Dict[str, Any] = {}
        embedder: Dict[str, Any] = {}
        assets: Dict[str, Any] = {}
        index: Dict[str, Any] = {}

        if "PARTS_FILE" in env:
            data["catalog_path"] = env["PARTS_FILE"]
        if "UPLOADS_DIR" in env:
            data["uploads_dir"] = env["UPLOADS_DIR"]
        if "HOST" in env:
            data["host"] = env["HOST"]
        if "PORT" in env:
            data["port"] = env["PORT"]
        if "LOG_LEVEL" in env:
            data["log_level"] = env["LOG_LEVEL"]
        if "VIT_MODEL" in env:
            embedder["model_name"] = env["VIT_MODEL"]
        if "DISABLE_VIT" in env:
            embedder["primary_enabled"] = env["DISABLE_VIT"].strip().lower() not in {"1", "true", "yes"}
        if "INFERENCE_TIMEOUT" in env:
            embedder["inference_timeout"] = env["INFERENCE_TIMEOUT"]
        if "PUBLIC_DIR" in env:
            assets["public_root"] = env["PUBLIC_DIR"]
            assets["remote_dir"] = str(Path(env["PUBLIC_DIR"]) / "images")
        if "FETCH_TIMEOUT" in env:
            assets["fetch_timeout"] = env["FETCH_TIMEOUT"]
        if "EMB_FILE" in env:
            index["index_path"] = env["EMB_FILE"]

        if embedder:
            data["embedder"] = embedder
        if assets:
            data["assets"] = assets
        if index:
            data["index"] = index
        return cls.model_validate(data)


def configure_logging(settings: AppSettings) -> None:
    """Configure root logging once from the application settings."""

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


__all__ = ["AppSettings", "AssetSettings", "EmbedderSettings", "IndexSettings", "configure_logging"]
