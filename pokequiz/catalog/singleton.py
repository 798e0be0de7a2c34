from __future__ import annotations

from pathlib import Path

from pokequiz.catalog.registry import Catalog, PopularMoves, load_data_dir


_CATALOG: Catalog | None = None
_POPULAR_MOVES: PopularMoves | None = None
_LOAD_ERROR: str | None = None


class CatalogUnavailableError(RuntimeError):
    """Raised when the game is asked to play before the dataset loaded."""


def init_catalog(*, data_dir: Path) -> Catalog:
    """Load the dataset once and cache it.

    Safe to call multiple times; subsequent calls return the already loaded instance.
    """

    global _CATALOG, _POPULAR_MOVES, _LOAD_ERROR
    if _CATALOG is None:
        _CATALOG, _POPULAR_MOVES = load_data_dir(data_dir)
        _LOAD_ERROR = None
    return _CATALOG


def record_load_error(message: str) -> None:
    global _LOAD_ERROR
    _LOAD_ERROR = message


def reset_catalog_for_tests() -> None:
    """Reset the cached catalog singleton.

    This is intended for tests so they can initialize the catalog from fixture directories.
    """

    global _CATALOG, _POPULAR_MOVES, _LOAD_ERROR
    _CATALOG = None
    _POPULAR_MOVES = None
    _LOAD_ERROR = None


def get_catalog() -> Catalog:
    if _CATALOG is None:
        raise CatalogUnavailableError(_LOAD_ERROR or "Catalog not initialized. Call init_catalog() at startup.")
    return _CATALOG


def get_popular_moves() -> PopularMoves | None:
    return _POPULAR_MOVES
