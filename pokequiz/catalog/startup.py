from __future__ import annotations

import logging
from pathlib import Path

from pokequiz.catalog.registry import CatalogLoadError
from pokequiz.catalog.singleton import init_catalog, record_load_error
from pokequiz.config import get_data_dir


logger = logging.getLogger(__name__)


def init_catalog_for_app() -> None:
    # project root is two levels up from this file: pokequiz/catalog/startup.py
    project_root = Path(__file__).resolve().parents[2]
    data_dir = get_data_dir(project_root=project_root)
    try:
        init_catalog(data_dir=data_dir)
    except CatalogLoadError as e:
        # Fatal for gameplay, but the service stays up so the error can be reported.
        message = f"Missing local Pokemon dataset. Run scripts/fetch_pokemon.py to generate it. ({e})"
        logger.error(message)
        record_load_error(message)
