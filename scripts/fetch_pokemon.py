"""Download the creature dataset from PokéAPI into `data/pokemon.json`.

Usage:
    uv run python scripts/fetch_pokemon.py

Takes several minutes; every Pokémon needs two requests.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import httpx

from pokequiz.catalog.registry import POKEMON_FILE
from pokequiz.config import get_data_dir
from pokequiz.datasets.pokeapi import build_dataset, fetch_all_pokemon, write_json


logger = logging.getLogger(__name__)


async def main() -> None:
    out_path = get_data_dir(project_root=Path(__file__).resolve().parents[1]) / POKEMON_FILE
    logger.info("Fetching Pokemon data (this may take a while)...")
    async with httpx.AsyncClient(timeout=30.0) as client:
        pokemon = await fetch_all_pokemon(client)
    write_json(out_path, build_dataset(pokemon))
    logger.info("Saved %d Pokemon to %s", len(pokemon), out_path)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
