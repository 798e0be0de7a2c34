"""Build `pokemon.json` from PokéAPI.

Contract
- Inputs: the PokéAPI `pokemon` listing plus each entry's detail and species documents.
- Output: `{"generatedAt", "count", "pokemon": [...]}` in the layout `load_catalog` reads.
- A failed request aborts the run; there is no retry.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import httpx

from pokequiz.catalog.registry import STAT_KEYS


logger = logging.getLogger(__name__)

API_ROOT = "https://pokeapi.co/api/v2/pokemon"
CONCURRENCY = 10

_WHITESPACE = re.compile(r"\s+")


def pick_artwork(data: dict[str, Any]) -> str:
    sprites = data.get("sprites") or {}
    official = ((sprites.get("other") or {}).get("official-artwork") or {}).get("front_default")
    return official or sprites.get("front_default") or ""


def normalize_text(text: str | None) -> str:
    # Flavor text carries form feeds and hard line breaks from the game cartridges.
    return _WHITESPACE.sub(" ", (text or "").replace("\f", " ")).strip()


def pick_english_flavor(entries: list[dict[str, Any]] | None) -> str:
    english = [e for e in entries or [] if (e.get("language") or {}).get("name") == "en"]
    if not english:
        return ""
    return normalize_text(english[-1].get("flavor_text"))


def normalize_pokemon(data: dict[str, Any], flavor_text: str) -> dict[str, Any]:
    stats = {key: 0 for key in STAT_KEYS}
    for entry in data.get("stats") or []:
        key = (entry.get("stat") or {}).get("name")
        if key in stats:
            stats[key] = entry.get("base_stat", 0)

    moves = [(entry.get("move") or {}).get("name") for entry in data.get("moves") or []]
    return {
        "id": data["id"],
        "name": data["name"],
        "artwork": pick_artwork(data),
        "stats": stats,
        "moves": [m for m in moves if m],
        "flavorText": flavor_text,
    }


async def get_json(client: httpx.AsyncClient, url: str) -> Any:
    response = await client.get(url)
    response.raise_for_status()
    return response.json()


async def fetch_all_pokemon(client: httpx.AsyncClient, *, concurrency: int = CONCURRENCY) -> list[dict[str, Any]]:
    listing = await get_json(client, f"{API_ROOT}?limit=100000&offset=0")
    results: list[dict[str, Any]] = listing.get("results") or []
    output: list[dict[str, Any] | None] = [None] * len(results)

    queue: asyncio.Queue[int] = asyncio.Queue()
    for index in range(len(results)):
        queue.put_nowait(index)

    async def _worker() -> None:
        while not queue.empty():
            index = queue.get_nowait()
            url = results[index].get("url")
            if not url:
                continue
            data = await get_json(client, url)
            species_url = (data.get("species") or {}).get("url")
            species = await get_json(client, species_url) if species_url else {}
            output[index] = normalize_pokemon(data, pick_english_flavor(species.get("flavor_text_entries")))
            if index % 50 == 0:
                logger.info("Fetched %d/%d", index, len(results))

    await asyncio.gather(*(_worker() for _ in range(concurrency)))
    return [p for p in output if p is not None]


def build_dataset(pokemon: list[dict[str, Any]]) -> dict[str, Any]:
    return {
        "generatedAt": datetime.now(tz=UTC).isoformat(),
        "count": len(pokemon),
        "pokemon": pokemon,
    }


def write_json(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
