# Path: scripts/serve_api.py
# Purpose: Launch the HTTP API with uvicorn.
# Layer: scripts.
# Details: Refuses to start when the catalog cannot be loaded.

from __future__ import annotations

import sys
from pathlib import Path

# Ensure project root is on sys.path when running as a script.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import uvicorn

from api import create_app
from config import AppSettings, configure_logging
from core.errors import CatalogLoadError
from core.services import build_services


def main() -> None:
    """Load services and serve the API until interrupted."""

    settings = AppSettings.from_env()
    configure_logging(settings)
    try:
        services = build_services(settings)
    except CatalogLoadError as exc:
        print(f"FATAL: {exc}", file=sys.stderr)
        sys.exit(1)

    uvicorn.run(create_app(services), host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
