from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class PriceLevel(str, Enum):
    low = "low"
    mid = "mid"
    high = "high"


PRICE_SYMBOLS: dict[str, str] = {"low": "$", "mid": "$$", "high": "$$$"}


class Restaurant(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    area: str
    city: str
    cuisines: list[str] = Field(default_factory=list)
    price: PriceLevel
    vibe: list[str] = Field(default_factory=list)
    dietary: list[str] = Field(default_factory=list)
    rating: float = Field(..., ge=0.0, le=5.0)
    highlights: list[str] = Field(default_factory=list)
    booking_available: bool = True
    discount_code: str | None = None

    @property
    def price_symbol(self) -> str:
        return PRICE_SYMBOLS[self.price.value]


class RestaurantSearch(BaseModel):
    area: str | None = None
    cuisine: str | None = None
    price: PriceLevel | None = None
    dietary: str | None = None
    min_rating: float = Field(default=0.0, ge=0.0, le=5.0)
