"""Build `popular-moves.json` from Smogon usage statistics.

Each move is weighted by `usage * move% / 100`, summed across every species
in the format; the heaviest `TOP_MOVES` moves are kept per format.
"""

from __future__ import annotations

import logging
import re
from datetime import UTC, datetime
from typing import Any

import httpx
import pandas as pd

from pokequiz.datasets.pokeapi import get_json


logger = logging.getLogger(__name__)

STATS_ROOT = "https://www.smogon.com/stats/"
TOP_MOVES = 120

SMOGON_PREFERRED = ("gen9ou-1695.json", "gen9ou-1630.json", "gen9ou-1500.json", "gen9ou-0.json")
VGC_PREFERRED = (
    re.compile(r"gen9vgc.*bo3.*-1760\.json$"),
    re.compile(r"gen9vgc.*bo3.*-1630\.json$"),
    re.compile(r"gen9vgc.*bo3.*-1500\.json$"),
    re.compile(r"gen9vgc.*-1760\.json$"),
    re.compile(r"gen9vgc.*-1630\.json$"),
    re.compile(r"gen9vgc.*-1500\.json$"),
    re.compile(r"gen9vgc.*-0\.json$"),
)

_MONTH_LINK = re.compile(r'href="(\d{4}-\d{2})/')
_JSON_LINK = re.compile(r'href="([^"]+\.json)"')


class UsageStatsError(RuntimeError):
    pass


def parse_months(html: str) -> list[str]:
    return sorted(set(_MONTH_LINK.findall(html)))


def parse_files(html: str) -> list[str]:
    return _JSON_LINK.findall(html)


def pick_smogon_format(files: list[str]) -> str | None:
    for name in SMOGON_PREFERRED:
        if name in files:
            return name
    return next((f for f in files if f.startswith("gen9ou-") and f.endswith(".json")), None)


def pick_vgc_format(files: list[str]) -> str | None:
    for pattern in VGC_PREFERRED:
        match = next((f for f in files if pattern.search(f)), None)
        if match:
            return match
    return None


def _number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)


def compute_popular_moves(data: dict[str, Any], *, top: int = TOP_MOVES) -> list[str]:
    rows: list[tuple[str, float]] = []
    for entry in (data.get("data") or {}).values():
        usage = _number((entry or {}).get("usage"))
        for move, pct in ((entry or {}).get("Moves") or {}).items():
            if move:
                rows.append((move, usage * _number(pct) / 100))

    if not rows:
        return []

    df = pd.DataFrame(rows, columns=["move", "weight"])
    # First-seen order breaks ties.
    totals = df.groupby("move", sort=False)["weight"].sum()
    ranked = totals.sort_values(ascending=False, kind="stable")
    return [str(m) for m in ranked.head(top).index]


def combine(*lists: list[str]) -> list[str]:
    return list(dict.fromkeys(move for moves in lists for move in moves))


async def _get_text(client: httpx.AsyncClient, url: str) -> str:
    response = await client.get(url)
    response.raise_for_status()
    return response.text


async def fetch_popular_moves(client: httpx.AsyncClient) -> dict[str, Any]:
    months = parse_months(await _get_text(client, STATS_ROOT))
    if not months:
        raise UsageStatsError("Unable to find latest stats month.")
    month = months[-1]

    chaos_url = f"{STATS_ROOT}{month}/chaos/"
    files = parse_files(await _get_text(client, chaos_url))
    smogon_file = pick_smogon_format(files)
    vgc_file = pick_vgc_format(files)
    if smogon_file is None:
        raise UsageStatsError("Unable to find a Smogon OU chaos file.")
    if vgc_file is None:
        raise UsageStatsError("Unable to find a VGC chaos file.")

    logger.info("Using %s and %s from %s", smogon_file, vgc_file, month)
    smogon = compute_popular_moves(await get_json(client, f"{chaos_url}{smogon_file}"))
    vgc = compute_popular_moves(await get_json(client, f"{chaos_url}{vgc_file}"))

    return {
        "generatedAt": datetime.now(tz=UTC).isoformat(),
        "month": month,
        "sources": {"smogon": smogon_file, "vgc": vgc_file},
        "moves": {"smogon": smogon, "vgc": vgc, "combined": combine(smogon, vgc)},
    }
