# Path: api/app.py
# Purpose: Expose a FastAPI application for catalog lookups and search-by-image.
# Layer: api.
# Details: Thin request/response glue over core services; search never fails, it degrades.

import asyncio
import logging
import math
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, Optional

from core.services import Services

logger = logging.getLogger(__name__)


def create_app(services: Services):  # type: ignore[override]
    """Create a FastAPI app instance configured with the provided services."""

    from fastapi import FastAPI, File, UploadFile
    from fastapi.middleware.cors import CORSMiddleware
    from fastapi.responses import JSONResponse
    from fastapi.staticfiles import StaticFiles

    catalog = services.catalog
    pipeline = services.pipeline
    builder = services.builder
    settings = services.settings

    @asynccontextmanager
    async def lifespan(app):
        task: Optional[asyncio.Task] = None
        if settings.index.build_on_startup:
            task = asyncio.create_task(_prepare_index(services))
        try:
            yield
        finally:
            if task is not None and not task.done():
                task.cancel()

    app = FastAPI(title="Partlens API", version="0.1.0", lifespan=lifespan)
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

    public_root = Path(settings.assets.public_root)
    if public_root.is_dir():
        app.mount("/static", StaticFiles(directory=str(public_root)), name="static")

    @app.get("/")
    def health() -> Dict[str, Any]:
        """Return a simple health status payload."""

        index = builder.index
        return {
            "status": "ok",
            "parts": len(catalog),
            "embeddings": len(index) if index is not None else 0,
            "embedder": services.provider.state.value,
        }

    @app.get("/api/parts")
    def list_parts(q: str = "") -> Dict[str, Any]:
        return {"parts": [item.to_dict() for item in catalog.query(q)]}

    @app.get("/api/parts/{item_id}")
    def get_part(item_id: str):
        try:
            numeric_id = float(item_id)
        except ValueError:
            numeric_id = 0.0
        if not numeric_id or math.isnan(numeric_id):
            return JSONResponse(status_code=400, content={"error": "Invalid id"})
        item = catalog.get(int(numeric_id) if numeric_id.is_integer() else item_id.strip())
        if item is None:
            return JSONResponse(status_code=404, content={"error": "Part not found"})
        return {"part": item.to_dict()}

    @app.get("/api/vin/{vin}")
    def lookup_vin(vin: str):
        try:
            parts = catalog.lookup_vin(vin)
        except ValueError as exc:
            return JSONResponse(status_code=400, content={"error": str(exc)})
        return {"vin": vin.strip().upper(), "parts": [item.to_dict() for item in parts]}

    async def search_by_image(image: Optional[UploadFile] = File(None)):
        """Rank catalog parts against an uploaded photo."""

        if image is None:
            return JSONResponse(status_code=400, content={"error": "No file uploaded"})
        payload = await image.read()
        suffix = Path(image.filename or "").suffix or ".jpg"
        try:
            response = await pipeline.search_by_image(payload, suffix=suffix)
        except Exception:  # noqa: BLE001 - last-resort guard around the search route
            logger.exception("search-by-image failed")
            return JSONResponse(status_code=500, content={"error": "Failed to process image"})
        return response.to_dict()

    app.post("/api/search-by-image")(search_by_image)
    app.post("/search-image")(search_by_image)

    return app


async def _prepare_index(services: Services) -> None:
    """Adopt a matching persisted index or build a fresh one."""

    try:
        if not await services.builder.warm_start():
            await services.builder.build()
    except asyncio.CancelledError:
        raise
    except Exception:  # noqa: BLE001 - startup indexing is best-effort
        logger.exception("Startup indexing failed; the index will be built on first search.")
