# Path: scripts/quick_search_demo.py
# Purpose: Simple CLI to run a search-by-image query against the catalog index.
# Layer: scripts.
# Details: Loads services, builds or reuses the index, and prints ranked matches for a local photo.

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
from core.services import build_services


async def run(image: Path, k: int, settings: AppSettings) -> None:
    services = build_services(settings)
    await services.builder.warm_start()
    response = await services.pipeline.search_by_image(image.read_bytes(), suffix=image.suffix or ".jpg", k=k)

    if response.degraded:
        print(f"[degraded] {response.warning}")
    for result in response.results:
        score = result.get("score")
        score_text = f"{score:.4f}" if score is not None else "n/a"
        print(f"id={result.get('id')} score={score_text} name={result.get('name')} image={result.get('image', 'n/a')}")


def main() -> None:
    """Execute a quick search from the command line."""

    parser = argparse.ArgumentParser(description="Find catalog parts similar to a photo")
    parser.add_argument("image", type=Path, help="Photo of the part to search for")
    parser.add_argument("--k", type=int, default=6, help="Number of results to return")
    args = parser.parse_args()

    settings = AppSettings.from_env()
    configure_logging(settings)
    asyncio.run(run(args.image, args.k, settings))


if __name__ == "__main__":
    main()
