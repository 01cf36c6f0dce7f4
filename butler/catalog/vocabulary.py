from __future__ import annotations

import re

from .data_store import get_dataframe

# Slot vibe -> catalog vibe tags that express it
VIBE_CATEGORIES: dict[str, list[str]] = {
    "romantic": ["romantic", "intimate", "elegant"],
    "lively": ["lively", "casual", "fun"],
    "quiet": ["quiet", "peaceful", "calm"],
    "outdoor": ["outdoor", "patio", "garden"],
    "family": ["family-friendly", "family"],
    "business": ["business", "professional", "upscale"],
}


def vibe_category(tag: str) -> str | None:
    """Map a catalog vibe tag to its slot vibe, or ``None`` if it has none."""
    lower = tag.lower()
    for category, tags in VIBE_CATEGORIES.items():
        if lower in tags:
            return category
    return None


def tag_matches_vibe(tag: str, vibe: str) -> bool:
    lower = tag.lower()
    return any(keyword in lower for keyword in VIBE_CATEGORIES.get(vibe, []))


def _distinct(column: str) -> list[str]:
    seen: dict[str, None] = {}
    for values in get_dataframe()[column]:
        for value in values:
            seen.setdefault(value, None)
    return list(seen)


def list_areas() -> list[str]:
    """Neighbourhood names, longest first, followed by the cities they sit in."""
    df = get_dataframe()
    areas = sorted(dict.fromkeys(df["area"]), key=len, reverse=True)
    cities = [c for c in dict.fromkeys(df["city"]) if c not in areas]
    return areas + cities


def list_cuisines() -> list[str]:
    return _distinct("cuisines")


def list_vibes() -> list[str]:
    return _distinct("vibe")


def list_dietary() -> list[str]:
    return _distinct("dietary")


def _contains_word(text: str, phrase: str) -> bool:
    return re.search(rf"\b{re.escape(phrase)}\b", text) is not None


def scan_values(text: str, values: list[str]) -> list[str]:
    """Return every value mentioned as a whole word in ``text``, in ``values`` order."""
    lower = text.lower()
    words = lower.split()
    found = []
    for value in values:
        value_lower = value.lower()
        if _contains_word(lower, value_lower) or value_lower.replace(" ", "") in words:
            found.append(value)
    return found


def match_value(raw: str | None, values: list[str]) -> str | None:
    """Resolve a free-text guess against ``values``: exact, then mentioned, then partial."""
    if not raw or not raw.strip():
        return None
    wanted = raw.strip().lower()
    for value in values:
        if value.lower() == wanted:
            return value
    mentioned = scan_values(wanted, values)
    if mentioned:
        return mentioned[0]
    if len(wanted) >= 3:
        for value in values:
            if any(word.startswith(wanted) for word in value.lower().split()):
                return value
    return None


def find_area(text: str) -> str | None:
    """Return the most specific catalog area mentioned anywhere in ``text``."""
    found = scan_values(text, list_areas())
    return found[0] if found else None


def find_cuisines(text: str) -> list[str]:
    return scan_values(text, list_cuisines())


def resolve_area(raw: str | None) -> str | None:
    return match_value(raw, list_areas())


def resolve_cuisine(raw: str | None) -> str | None:
    return match_value(raw, list_cuisines())
