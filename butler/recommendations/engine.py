from __future__ import annotations

import logging

import numpy as np
import pandas as pd

from ..catalog.config import DEFAULT_CATALOG_CONFIG
from ..catalog.data_store import area_mask, get_dataframe, get_restaurants
from ..catalog.models import Restaurant
from ..catalog.vocabulary import tag_matches_vibe
from ..chat.models import ActiveRequest, Profile, Slots
from ..nlu.keywords import BUDGET_FROM_RANGE
from ..nlu.models import Budget, Vibe
from .models import RecommendationItem, Recommendations

logger = logging.getLogger(__name__)

DIVERSIFICATION_FACTOR = 0.3
MAX_ALTERNATIVES = 2
MAX_REASONS = 3

BUDGET_TO_PRICE: dict[Budget, str] = {Budget.cheap: "low", Budget.mid: "mid", Budget.high: "high"}
_PRICE_TIER = {"low": 1, "mid": 2, "high": 3}
_RANGE_TO_PRICE = {1: "low", 2: "mid", 3: "high", 4: "high"}
NOTE_TAGS = ["romantic", "lively", "quiet", "family", "rooftop", "view"]

# Express scoring weights
EXPRESS_CUISINE_WEIGHT = 10.0
EXPRESS_BUDGET_EXACT = 5.0
EXPRESS_BUDGET_ADJACENT = 2.0
EXPRESS_NOTE_TAG = 3.0


def _cuisine_matches(requested: list[str], restaurant_cuisines: list[str]) -> list[str]:
    """Requested cuisines that match any restaurant cuisine, substring either way."""
    matches = []
    for cuisine in requested:
        wanted = cuisine.lower()
        if any(wanted in rc or rc in wanted for rc in restaurant_cuisines):
            matches.append(cuisine)
    return matches


def _vibe_matches(vibe: Vibe | None, tags: list[str]) -> bool:
    return vibe is not None and any(tag_matches_vibe(t, vibe.value) for t in tags)


# ---------------------------------------------------------------------------
# Dialogue flow
# ---------------------------------------------------------------------------


def _filter_mask(df: pd.DataFrame, slots: Slots) -> pd.Series:
    mask = pd.Series(True, index=df.index)

    if slots.area:
        mask &= area_mask(df, slots.area)

    # Budget filters only when the diner stated one
    if slots.budget:
        mask &= df["price"] == BUDGET_TO_PRICE[slots.budget]

    if slots.dietary:
        wanted = [d.lower() for d in slots.dietary]
        mask &= df["dietary_lower"].apply(lambda ds: any(w in d for w in wanted for d in ds))

    if slots.avoid.cuisines:
        avoid = [c.lower() for c in slots.avoid.cuisines]
        mask &= ~df["cuisines_lower"].apply(lambda cs: any(a in c for a in avoid for c in cs))

    if slots.avoid.tags:
        avoid_tags = [t.lower() for t in slots.avoid.tags]
        mask &= ~df.apply(
            lambda row: any(
                a in v for a in avoid_tags for v in row["vibe_lower"] + row["highlights_lower"]
            ),
            axis=1,
        )

    return mask


def _score_row(row: pd.Series, slots: Slots, profile: Profile) -> float:
    """Additive heuristic score for a single restaurant row."""
    score = 0.0

    matched_cuisines = _cuisine_matches(slots.craving_cuisines, row["cuisines_lower"])
    score += 3.0 * len(matched_cuisines)

    vibe_matched = _vibe_matches(slots.vibe, row["vibe_lower"])
    if vibe_matched:
        score += 2.0

    if slots.budget and row["price"] == BUDGET_TO_PRICE[slots.budget]:
        score += 1.0

    if slots.dietary:
        score += sum(
            1.0 for d in slots.dietary if any(d.lower() in rd for rd in row["dietary_lower"])
        )

    # Learned preferences only boost restaurants that match the request
    for cuisine in matched_cuisines:
        score += 0.5 * profile.cuisines_liked.get(cuisine, 0)
    if vibe_matched:
        score += 0.5 * profile.vibe_prefs.get(slots.vibe.value, 0)

    score += 0.5 * float(row["rating"])
    return score


def diversify(scored: pd.DataFrame, previously_shown_ids: list[str] | None) -> pd.DataFrame:
    """Demote previously shown picks to 30% of their score and re-sort."""
    if not previously_shown_ids:
        return scored
    shown = scored["id"].isin(previously_shown_ids).to_numpy()
    scored = scored.copy()
    scored["_score"] = np.where(shown, scored["_score"] * DIVERSIFICATION_FACTOR, scored["_score"])
    return scored.sort_values("_score", ascending=False, kind="stable")


def build_reasons(
    restaurant: Restaurant,
    cuisines: list[str] | None = None,
    vibe: Vibe | None = None,
    budget: Budget | None = None,
) -> list[str]:
    """Up to three short reasons, most specific first."""
    reasons: list[str] = []

    matched = _cuisine_matches(cuisines or [], [c.lower() for c in restaurant.cuisines])
    if matched:
        reasons.append(f"great {' and '.join(matched)} cuisine")

    if _vibe_matches(vibe, [v.lower() for v in restaurant.vibe]):
        reasons.append(f"perfect {vibe.value} vibe")

    if budget and restaurant.price.value == BUDGET_TO_PRICE[budget]:
        reasons.append(f"matches your {budget.value} budget")

    if restaurant.rating >= DEFAULT_CATALOG_CONFIG.high_rating_threshold:
        reasons.append(f"highly rated ({restaurant.rating} stars)")

    if restaurant.highlights:
        reasons.append(restaurant.highlights[0])

    return reasons[:MAX_REASONS]


def _to_items(ranked: pd.DataFrame, limit: int, reason_kwargs: dict) -> list[RecommendationItem]:
    restaurants = get_restaurants()
    items = []
    for _, row in ranked.head(limit).iterrows():
        restaurant = restaurants[row["id"]]
        items.append(
            RecommendationItem(
                restaurant=restaurant,
                score=round(float(row["_score"]), 4),
                reasons=build_reasons(restaurant, **reason_kwargs),
            )
        )
    return items


def recommend(
    slots: Slots,
    profile: Profile | None = None,
    previously_shown_ids: list[str] | None = None,
) -> Recommendations:
    """Rank the catalog against ``slots``.

    Never returns an empty result: when the filters leave nothing, the whole
    catalog is scored and the single best match is returned on its own.
    """
    profile = profile or Profile()
    df = get_dataframe()
    reason_kwargs = {"cuisines": slots.craving_cuisines, "vibe": slots.vibe, "budget": slots.budget}

    candidates = df.loc[_filter_mask(df, slots)].copy()
    if candidates.empty:
        logger.info("No restaurant passed the filters for %s, scoring the full catalog", slots.model_dump(mode="json"))
        everything = df.copy()
        everything["_score"] = everything.apply(_score_row, axis=1, slots=slots, profile=profile)
        ranked = everything.sort_values("_score", ascending=False, kind="stable")
        top = _to_items(ranked, 1, reason_kwargs)[0]
        return Recommendations(top=top, alternatives=[])

    candidates["_score"] = candidates.apply(_score_row, axis=1, slots=slots, profile=profile)
    ranked = candidates.sort_values("_score", ascending=False, kind="stable")
    ranked = diversify(ranked, previously_shown_ids)

    items = _to_items(ranked, 1 + MAX_ALTERNATIVES, reason_kwargs)
    return Recommendations(top=items[0], alternatives=items[1:])


# ---------------------------------------------------------------------------
# Express flow
# ---------------------------------------------------------------------------


def _score_express_row(row: pd.Series, request: ActiveRequest) -> float:
    score = 0.0

    if request.cuisine and _cuisine_matches([request.cuisine], row["cuisines_lower"]):
        score += EXPRESS_CUISINE_WEIGHT

    if request.budget:
        target = _RANGE_TO_PRICE[request.budget.range]
        if row["price"] == target:
            score += EXPRESS_BUDGET_EXACT
        elif abs(_PRICE_TIER[row["price"]] - _PRICE_TIER[target]) == 1:
            score += EXPRESS_BUDGET_ADJACENT

    if request.notes:
        notes = request.notes.lower()
        searchable = row["vibe_lower"] + row["highlights_lower"]
        for tag in NOTE_TAGS:
            if tag in notes and any(tag in s for s in searchable):
                score += EXPRESS_NOTE_TAG

    score += 0.5 * float(row["rating"])
    return score


def recommend_express(request: ActiveRequest) -> Recommendations:
    """Rank restaurants in the requested area for the express flow.

    With no area match the three best-rated restaurants are returned, whatever
    else was asked for.
    """
    df = get_dataframe()
    budget = BUDGET_FROM_RANGE[request.budget.range] if request.budget else None
    reason_kwargs = {"cuisines": [request.cuisine] if request.cuisine else [], "budget": budget}

    candidates = df.loc[area_mask(df, request.area)].copy() if request.area else df.iloc[0:0]
    if candidates.empty:
        logger.info("No restaurant in area %r, falling back to the best rated", request.area)
        ranked = df.sort_values("rating", ascending=False, kind="stable").head(3).copy()
        ranked["_score"] = ranked["rating"] * 0.5
    else:
        candidates["_score"] = candidates.apply(_score_express_row, axis=1, request=request)
        ranked = candidates.sort_values("_score", ascending=False, kind="stable")

    items = _to_items(ranked, 1 + MAX_ALTERNATIVES, reason_kwargs)
    return Recommendations(top=items[0], alternatives=items[1:])
