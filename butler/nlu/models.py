from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class MealTime(str, Enum):
    breakfast = "breakfast"
    lunch = "lunch"
    dinner = "dinner"
    coffee = "coffee"
    drinks = "drinks"
    late_night = "late-night"


class Budget(str, Enum):
    cheap = "cheap"
    mid = "mid"
    high = "high"


class Vibe(str, Enum):
    romantic = "romantic"
    lively = "lively"
    quiet = "quiet"
    outdoor = "outdoor"
    family = "family"
    business = "business"


class SlotType(str, Enum):
    area = "area"
    meal_time = "meal_time"
    party_size = "party_size"
    budget = "budget"
    cuisine = "cuisine"
    vibe = "vibe"
    dietary = "dietary"


class ExpressSlot(str, Enum):
    area = "area"
    cuisine = "cuisine"
    budget = "budget"
    date = "date"
    time = "time"
    party_size = "party_size"
    notes = "notes"


class Intent(str, Enum):
    greeting_or_offtopic = "greeting_or_offtopic"
    restaurant_request = "restaurant_request"
    slot_answer = "slot_answer"
    refinement = "refinement"
    other = "other"


class ExtractedSlots(BaseModel):
    area: str | None = None
    meal_time: MealTime | None = None
    party_size: int | None = Field(default=None, ge=1, le=20)
    budget: Budget | None = None
    craving_cuisines: list[str] = Field(default_factory=list)
    vibe: Vibe | None = None
    dietary: list[str] = Field(default_factory=list)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)

    def is_empty(self) -> bool:
        return not self.model_dump(exclude_defaults=True, exclude={"confidence"})


class ValuedField(BaseModel):
    value: str | None = None
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)


class BudgetGuess(BaseModel):
    label: str | None = None
    range: int | None = Field(default=None, ge=1, le=4)


class ClassifiedValues(BaseModel):
    area: ValuedField = Field(default_factory=ValuedField)
    cuisine: ValuedField = Field(default_factory=ValuedField)
    budget: BudgetGuess = Field(default_factory=BudgetGuess)
    party_size: int | None = Field(default=None, ge=1, le=20)
    date: ValuedField = Field(default_factory=ValuedField)
    time: ValuedField = Field(default_factory=ValuedField)
    notes: str | None = None


class Classification(BaseModel):
    intent: Intent = Intent.other
    extracted: ClassifiedValues = Field(default_factory=ClassifiedValues)


class SlotValidation(BaseModel):
    slot: str
    value: str | int | None = None
    normalized: str | int | None = None
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)


class DBMatch(BaseModel):
    input: str | None = None
    matched: str | None = None
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)


class Unavailable(BaseModel):
    area: bool = False
    cuisine: bool = False


class DBNormalization(BaseModel):
    area_match: DBMatch = Field(default_factory=DBMatch)
    cuisine_match: DBMatch = Field(default_factory=DBMatch)
    unavailable: Unavailable = Field(default_factory=Unavailable)


class AnswerAnalysis(BaseModel):
    interpretation: str | None = None
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    is_off_topic: bool = False
    off_topic_confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    message: str | None = None


class DateResolution(BaseModel):
    date: str | None = None
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
