from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

_DATA_DIR = Path(__file__).resolve().parent.parent / "data"


@dataclass(frozen=True)
class CatalogConfig:
    csv_path: Path = _DATA_DIR / "restaurants.csv"
    list_separator: str = "|"
    high_rating_threshold: float = 4.5


DEFAULT_CATALOG_CONFIG = CatalogConfig()
