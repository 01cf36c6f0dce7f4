from __future__ import annotations

from pydantic import BaseModel, Field

from ..catalog.models import Restaurant


class RecommendationItem(BaseModel):
    restaurant: Restaurant
    score: float
    reasons: list[str] = Field(default_factory=list)


class Recommendations(BaseModel):
    top: RecommendationItem
    alternatives: list[RecommendationItem] = Field(default_factory=list, max_length=2)

    def items(self) -> list[RecommendationItem]:
        return [self.top, *self.alternatives]

    def pick(self, option: int) -> Restaurant | None:
        """Return the restaurant shown as option ``option`` (1-based)."""
        items = self.items()
        if 1 <= option <= len(items):
            return items[option - 1].restaurant
        return None

    def ids(self) -> list[str]:
        return [item.restaurant.id for item in self.items()]
