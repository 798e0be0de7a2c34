"""Download the latest Smogon usage stats and write `data/popular-moves.json`.

Usage:
    uv run python scripts/fetch_popular_moves.py
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import httpx

from pokequiz.catalog.registry import POPULAR_MOVES_FILE
from pokequiz.config import get_data_dir
from pokequiz.datasets.pokeapi import write_json
from pokequiz.datasets.smogon_usage import fetch_popular_moves


logger = logging.getLogger(__name__)


async def main() -> None:
    out_path = get_data_dir(project_root=Path(__file__).resolve().parents[1]) / POPULAR_MOVES_FILE
    logger.info("Fetching Smogon stats for popular moves...")
    async with httpx.AsyncClient(timeout=60.0, follow_redirects=True) as client:
        payload = await fetch_popular_moves(client)
    write_json(out_path, payload)
    logger.info("Saved popular move list to %s", out_path)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
