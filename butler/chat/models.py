from __future__ import annotations

import time
import uuid
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from ..nlu.models import Budget, ExpressSlot, MealTime, SlotType, Vibe
from ..recommendations.models import Recommendations


class DialogueState(str, Enum):
    WELCOME = "WELCOME"
    DISCOVERY = "DISCOVERY"
    RECOMMEND = "RECOMMEND"
    REFINE = "REFINE"
    BOOKING_COLLECT = "BOOKING_COLLECT"
    BOOKING_CONFIRM = "BOOKING_CONFIRM"


class RequestMode(str, Enum):
    collecting = "collecting"
    recommending = "recommending"
    confirming = "confirming"


class Flow(str, Enum):
    dialogue = "dialogue"
    express = "express"


class Role(str, Enum):
    user = "user"
    assistant = "assistant"


class Action(str, Enum):
    ask = "ask"
    reprompt = "reprompt"
    recommend = "recommend"
    select = "select"
    start_booking = "start_booking"
    collect_booking = "collect_booking"
    confirm_booking = "confirm_booking"
    booking_saved = "booking_saved"
    cancel_booking = "cancel_booking"
    walk_in = "walk_in"
    refine = "refine"
    reset = "reset"
    profile = "profile"
    greet = "greet"
    help = "help"
    error = "error"


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class Avoid(BaseModel):
    cuisines: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)


class Slots(BaseModel):
    """What is known so far about one dining request."""

    meal_time: MealTime | None = None
    area: str | None = None
    party_size: int | None = Field(default=None, ge=1)
    budget: Budget | None = None
    craving_cuisines: list[str] = Field(default_factory=list)
    vibe: Vibe | None = None
    # None means never answered; an empty list means "no requirements"
    dietary: list[str] | None = None
    avoid: Avoid = Field(default_factory=Avoid)

    def is_complete(self) -> bool:
        return bool(
            self.area
            and self.party_size
            and self.budget
            and (self.craving_cuisines or self.vibe or self.meal_time)
        )

    def missing_slot(self, include_optional: bool = False) -> SlotType | None:
        """Next unanswered slot in asking order, or ``None`` once complete."""
        if self.is_complete() and not include_optional:
            return None
        if not self.area:
            return SlotType.area
        if not self.meal_time:
            return SlotType.meal_time
        if not self.party_size:
            return SlotType.party_size
        if not self.budget:
            return SlotType.budget
        if not self.craving_cuisines and not self.vibe:
            return SlotType.cuisine
        if self.dietary is None:
            return SlotType.dietary
        return None


class BudgetRange(BaseModel):
    range: int = Field(..., ge=1, le=4)
    label: str


class ActiveRequest(BaseModel):
    """Flat request used by the express flow, with booking date and time."""

    area: str | None = None
    cuisine: str | None = None
    budget: BudgetRange | None = None
    party_size: int | None = Field(default=None, ge=1)
    date: str | None = None
    time: str | None = None
    notes: str | None = None

    def is_complete(self) -> bool:
        return self.missing_slot() is None

    def missing_slot(self) -> ExpressSlot | None:
        if not self.area:
            return ExpressSlot.area
        if not self.cuisine:
            return ExpressSlot.cuisine
        if not self.budget:
            return ExpressSlot.budget
        if not self.date:
            return ExpressSlot.date
        if not self.time:
            return ExpressSlot.time
        if not self.party_size:
            return ExpressSlot.party_size
        return None


# ---------------------------------------------------------------------------
# Profile, bookings, history
# ---------------------------------------------------------------------------


class Profile(BaseModel):
    cuisines_liked: dict[str, int] = Field(default_factory=dict)
    vibe_prefs: dict[str, int] = Field(default_factory=dict)
    budget_default: Budget | None = None
    dietary: list[str] = Field(default_factory=list)
    last_area: str | None = None


class BookingDraft(BaseModel):
    restaurant_id: str
    date: str | None = None
    time: str | None = None
    party_size: int | None = None
    # None until asked; "" means the diner has no notes
    notes: str | None = None


class Booking(BaseModel):
    id: str = Field(default_factory=lambda: f"booking-{uuid.uuid4().hex[:12]}")
    restaurant_id: str
    restaurant_name: str
    date: str
    time: str
    party_size: int
    notes: str | None = None
    confirmation_id: str
    ts: float = Field(default_factory=time.time)


class Message(BaseModel):
    id: str = Field(default_factory=lambda: f"msg-{uuid.uuid4().hex[:12]}")
    role: Role
    text: str
    ts: float = Field(default_factory=time.time)


class DecisionTrace(BaseModel):
    """Structured record of how one turn was interpreted and answered."""

    version: int = 1
    flow: Flow
    state_before: str
    state_after: str | None = None
    command: str | None = None
    intent: str | None = None
    extracted: dict[str, Any] = Field(default_factory=dict)
    rejected: list[str] = Field(default_factory=list)
    unavailable: dict[str, str] = Field(default_factory=dict)
    action: Action | None = None
    reasons: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Session aggregate
# ---------------------------------------------------------------------------


class Session(BaseModel):
    messages: list[Message] = Field(default_factory=list)
    profile: Profile = Field(default_factory=Profile)
    bookings: list[Booking] = Field(default_factory=list)

    # Dialogue flow
    state: DialogueState = DialogueState.WELCOME
    slots: Slots = Field(default_factory=Slots)
    booking_draft: BookingDraft | None = None
    recommendations: Recommendations | None = None
    previous_top_pick_ids: list[str] = Field(default_factory=list)
    last_question: str | None = None
    last_question_type: SlotType | None = None

    # Express flow
    active_request: ActiveRequest = Field(default_factory=ActiveRequest)
    mode: RequestMode = RequestMode.collecting
    pending_slot: ExpressSlot | None = None
    selected_restaurant_id: str | None = None
    express_recommendations: Recommendations | None = None

    trace: DecisionTrace | None = None


class TurnResult(BaseModel):
    session: Session
    reply: str
    trace: DecisionTrace
    recommendations: Recommendations | None = None


# ---------------------------------------------------------------------------
# API models
# ---------------------------------------------------------------------------


class ChatRequest(BaseModel):
    message: str = Field(..., max_length=1000)


class ChatResponse(BaseModel):
    reply: str
    state: DialogueState
    mode: RequestMode
    recommendations: Recommendations | None = None
    trace: DecisionTrace


class AccountRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=64)
