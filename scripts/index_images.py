# Path: scripts/index_images.py
# Purpose: CLI tool to embed the parts catalog and persist the embedding index.
# Layer: scripts.
# Details: Demonstrates how catalog, asset fetcher, embedding provider, and index store are wired together.

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

# Ensure project root is on sys.path when running as a script.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config import AppSettings, configure_logging
from core.errors import CatalogLoadError
from core.services import build_services


async def run(force: bool, settings: AppSettings) -> int:
    services = build_services(settings)
    if force or not await services.builder.warm_start():
        index = await services.builder.rebuild() if force else await services.builder.build()
    else:
        index = services.builder.index
    mode = index.mode.value if index.mode else "none"
    print(f"Indexed {len(index)} images ({mode}, dim={index.dim}) into {settings.index.index_path}")
    return 0


def main() -> None:
    """Run indexing over the configured catalog."""

    parser = argparse.ArgumentParser(description="Build the part image embedding index")
    parser.add_argument("--catalog", type=Path, default=None, help="Catalog JSON file (defaults to PARTS_FILE or data/parts.json)")
    parser.add_argument("--output", type=Path, default=None, help="Where to write the embedding index")
    parser.add_argument("--force", action="store_true", help="Ignore any persisted index and rebuild")
    parser.add_argument("--no-vit", action="store_true", help="Skip the primary encoder and use the fallback descriptor")
    args = parser.parse_args()

    settings = AppSettings.from_env()
    if args.catalog is not None:
        settings.catalog_path = args.catalog
    if args.output is not None:
        settings.index.index_path = args.output
    if args.no_vit:
        settings.embedder.primary_enabled = False
    configure_logging(settings)

    try:
        code = asyncio.run(run(args.force, settings))
    except CatalogLoadError as exc:
        print(f"FATAL: {exc}", file=sys.stderr)
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
