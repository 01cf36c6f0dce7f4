from __future__ import annotations

import logging

import pandas as pd

from .config import DEFAULT_CATALOG_CONFIG, CatalogConfig
from .models import Restaurant, RestaurantSearch

logger = logging.getLogger(__name__)

_LIST_COLUMNS = ("cuisines", "vibe", "dietary", "highlights")

_df: pd.DataFrame | None = None
_restaurants: dict[str, Restaurant] | None = None


def _split(value: object, sep: str) -> list[str]:
    if not isinstance(value, str):
        return []
    return [part.strip() for part in value.split(sep) if part.strip()]


def _load(config: CatalogConfig = DEFAULT_CATALOG_CONFIG) -> pd.DataFrame:
    df = pd.read_csv(config.csv_path, dtype={"id": str, "discount_code": str})

    for col in _LIST_COLUMNS:
        df[col] = df[col].apply(lambda s: _split(s, config.list_separator))

    df["booking_available"] = df["booking_available"].astype(str).str.lower() == "true"

    # Lowercased helpers for case-insensitive matching
    df["area_lower"] = df["area"].str.lower()
    df["city_lower"] = df["city"].str.lower()
    df["cuisines_lower"] = df["cuisines"].apply(lambda cs: [c.lower() for c in cs])
    df["vibe_lower"] = df["vibe"].apply(lambda vs: [v.lower() for v in vs])
    df["dietary_lower"] = df["dietary"].apply(lambda ds: [d.lower() for d in ds])
    df["highlights_lower"] = df["highlights"].apply(lambda hs: [h.lower() for h in hs])

    logger.info("Loaded %d restaurants from %s", len(df), config.csv_path)
    return df.reset_index(drop=True)


def get_dataframe() -> pd.DataFrame:
    """Return the in-memory catalog DataFrame, loading it on first call."""
    global _df
    if _df is None:
        _df = _load()
    return _df


def _optional_str(value: object) -> str | None:
    return value if isinstance(value, str) and value else None


def row_to_restaurant(row: pd.Series) -> Restaurant:
    return Restaurant(
        id=row["id"],
        name=row["name"],
        area=row["area"],
        city=row["city"],
        cuisines=list(row["cuisines"]),
        price=row["price"],
        vibe=list(row["vibe"]),
        dietary=list(row["dietary"]),
        rating=float(row["rating"]),
        highlights=list(row["highlights"]),
        booking_available=bool(row["booking_available"]),
        discount_code=_optional_str(row["discount_code"]),
    )


def get_restaurants() -> dict[str, Restaurant]:
    """Return every restaurant keyed by id, in catalog order."""
    global _restaurants
    if _restaurants is None:
        df = get_dataframe()
        _restaurants = {row["id"]: row_to_restaurant(row) for _, row in df.iterrows()}
    return _restaurants


def get_restaurant(restaurant_id: str) -> Restaurant | None:
    return get_restaurants().get(restaurant_id)


def area_mask(df: pd.DataFrame, area: str) -> pd.Series:
    """Match ``area`` against catalog areas (both directions) or whole cities.

    A city only matches when the request names it, so "Dubai Marina" does not
    select every restaurant in Dubai.
    """
    wanted = area.strip().lower()
    if not wanted:
        return pd.Series(True, index=df.index)
    return (
        df["area_lower"].str.contains(wanted, regex=False)
        | df["area_lower"].apply(lambda a: a in wanted)
        | df["city_lower"].str.contains(wanted, regex=False)
    )


def search(query: RestaurantSearch) -> list[Restaurant]:
    """Browse the catalog with simple filters, best rated first."""
    df = get_dataframe()
    mask = pd.Series(True, index=df.index)

    if query.area:
        mask &= area_mask(df, query.area)
    if query.cuisine:
        wanted = query.cuisine.strip().lower()
        mask &= df["cuisines_lower"].apply(lambda cs: any(wanted in c or c in wanted for c in cs))
    if query.price:
        mask &= df["price"] == query.price.value
    if query.dietary:
        wanted_diet = query.dietary.strip().lower()
        mask &= df["dietary_lower"].apply(lambda ds: any(wanted_diet in d for d in ds))
    if query.min_rating > 0:
        mask &= df["rating"] >= query.min_rating

    matches = df.loc[mask].sort_values("rating", ascending=False, kind="stable")
    restaurants = get_restaurants()
    return [restaurants[rid] for rid in matches["id"]]
