from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, computed_field, field_serializer, field_validator


logger = logging.getLogger(__name__)

StatKey = Literal["hp", "attack", "defense", "special-attack", "special-defense", "speed"]

STAT_KEYS: tuple[StatKey, ...] = ("hp", "attack", "defense", "special-attack", "special-defense", "speed")

STAT_LABELS: dict[StatKey, str] = {
    "hp": "HP",
    "attack": "Attack",
    "defense": "Defense",
    "special-attack": "Sp. Attack",
    "special-defense": "Sp. Defense",
    "speed": "Speed",
}

POKEMON_FILE = "pokemon.json"
POPULAR_MOVES_FILE = "popular-moves.json"


def normalize_name(value: str) -> str:
    """Lower-case and keep only [a-z0-9]."""

    return re.sub(r"[^a-z0-9]", "", value.lower()).strip()


def format_name(name: str) -> str:
    return " ".join(part[:1].upper() + part[1:] for part in name.split("-"))


class CatalogLoadError(RuntimeError):
    pass


class MovePool(StrEnum):
    popular = "popular"
    smogon = "smogon"
    vgc = "vgc"
    all = "all"


class Creature(BaseModel):
    """One Pokémon as stored in the dataset. Immutable once loaded."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int
    name: str
    artwork: str = ""
    stats: dict[StatKey, int]
    moves: frozenset[str] = Field(default_factory=frozenset)
    flavor_text: str | None = Field(default=None, alias="flavorText")

    @field_validator("stats", mode="before")
    @classmethod
    def _fill_missing_stats(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        filled = {key: 0 for key in STAT_KEYS}
        filled.update({k: v for k, v in value.items() if k in filled})
        return filled

    @field_validator("stats")
    @classmethod
    def _non_negative_stats(cls, value: dict[StatKey, int]) -> dict[StatKey, int]:
        for key, stat in value.items():
            if stat < 0:
                raise ValueError(f"stat {key} must be >= 0")
        return value

    @computed_field
    @property
    def display_name(self) -> str:
        return format_name(self.name)

    @field_serializer("moves")
    def _sorted_moves(self, value: frozenset[str]) -> list[str]:
        return sorted(value)

    def stat(self, key: StatKey) -> int:
        return self.stats[key]

    def knows(self, move: str) -> bool:
        return move in self.moves


class _DatasetDocument(BaseModel):
    generated_at: str | None = Field(default=None, alias="generatedAt")
    count: int | None = None
    pokemon: list[Creature]


class _PopularMovesLists(BaseModel):
    smogon: list[str] = Field(default_factory=list)
    vgc: list[str] = Field(default_factory=list)
    combined: list[str] = Field(default_factory=list)


class _PopularMovesDocument(BaseModel):
    generated_at: str | None = Field(default=None, alias="generatedAt")
    month: str | None = None
    sources: dict[str, str | None] = Field(default_factory=dict)
    moves: _PopularMovesLists


@dataclass(frozen=True, slots=True)
class Catalog:
    """Read-only creature list with id lookup.

    Shared by every session in the process.
    """

    creatures: tuple[Creature, ...]
    generated_at: str | None
    _by_id: dict[int, Creature]

    @staticmethod
    def from_creatures(creatures: list[Creature], *, generated_at: str | None = None) -> "Catalog":
        by_id: dict[int, Creature] = {}
        for c in creatures:
            if c.id in by_id:
                raise CatalogLoadError(f"Duplicate creature id: {c.id}")
            by_id[c.id] = c
        return Catalog(creatures=tuple(creatures), generated_at=generated_at, _by_id=by_id)

    def __len__(self) -> int:
        return len(self.creatures)

    def get(self, creature_id: int) -> Creature | None:
        return self._by_id.get(creature_id)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(c.name for c in self.creatures)


@dataclass(frozen=True, slots=True)
class PopularMoves:
    """Curated move lists built from Smogon usage statistics.

    The sets hold `normalize_name` keys so they match catalog move names in any spelling.
    """

    month: str | None
    sources: dict[str, str | None]
    smogon: frozenset[str]
    vgc: frozenset[str]
    combined: frozenset[str]

    def moves_for(self, pool: MovePool) -> frozenset[str] | None:
        if pool == MovePool.all:
            return None
        if pool == MovePool.smogon:
            return self.smogon
        if pool == MovePool.vgc:
            return self.vgc
        return self.combined


def resolve_move_pool(popular: PopularMoves | None, pool: MovePool) -> frozenset[str] | None:
    """Concrete set of allowed moves, or None meaning "no filter"."""

    if popular is None:
        return None
    return popular.moves_for(pool)


def _read_json(path: Path) -> Any:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise CatalogLoadError(f"Dataset file not found: {path}") from e
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise CatalogLoadError(f"Dataset file is not valid JSON: {path} ({e})") from e


def load_catalog(path: Path) -> Catalog:
    data = _read_json(path)
    try:
        doc = _DatasetDocument.model_validate(data)
    except ValidationError as e:
        raise CatalogLoadError(f"Unexpected dataset layout in {path}: {e.error_count()} error(s)") from e

    if not doc.pokemon:
        raise CatalogLoadError(f"Empty dataset: {path}")

    catalog = Catalog.from_creatures(doc.pokemon, generated_at=doc.generated_at)
    logger.info("Loaded %d creatures from %s", len(catalog), path)
    return catalog


def _move_keys(moves: list[str]) -> frozenset[str]:
    return frozenset(k for k in (normalize_name(m) for m in moves) if k)


def load_popular_moves(path: Path) -> PopularMoves | None:
    """Load the curated move lists; None when missing or malformed."""

    try:
        data = _read_json(path)
        doc = _PopularMovesDocument.model_validate(data)
    except (CatalogLoadError, ValidationError) as e:
        logger.warning("Popular moves unavailable, move pool falls back to 'all': %s", e)
        return None

    return PopularMoves(
        month=doc.month,
        sources=dict(doc.sources),
        smogon=_move_keys(doc.moves.smogon),
        vgc=_move_keys(doc.moves.vgc),
        combined=_move_keys(doc.moves.combined),
    )


def load_data_dir(data_dir: Path) -> tuple[Catalog, PopularMoves | None]:
    catalog = load_catalog(data_dir / POKEMON_FILE)
    popular = load_popular_moves(data_dir / POPULAR_MOVES_FILE)
    return catalog, popular
