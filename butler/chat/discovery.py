from __future__ import annotations

from dataclasses import dataclass

from ..nlu.models import ExpressSlot, SlotType
from .models import ActiveRequest, Profile, Slots

QUESTIONS: dict[SlotType, str] = {
    SlotType.area: (
        "What area or neighborhood are you thinking? "
        "I can help you find great spots in different locations."
    ),
    SlotType.meal_time: (
        "What meal time are you planning for? "
        "Options: breakfast, lunch, dinner, coffee, drinks, or late-night."
    ),
    SlotType.party_size: "How many people will be joining you? Just let me know the number.",
    SlotType.budget: "What's your budget preference? You can choose: cheap, mid, or high.",
    SlotType.cuisine: (
        "What type of cuisine are you in the mood for, "
        "or what kind of atmosphere are you looking for?"
    ),
    SlotType.vibe: "What kind of atmosphere are you after? Romantic, lively, quiet, outdoor, family or business?",
    SlotType.dietary: "Do you have any dietary requirements or preferences? Just say 'none' if not.",
}

EXPRESS_QUESTIONS: dict[ExpressSlot, str] = {
    ExpressSlot.area: "Which area do you want to eat in?",
    ExpressSlot.cuisine: "What are you in the mood for?",
    ExpressSlot.budget: "What budget are we aiming for?",
    ExpressSlot.date: "Which day?",
    ExpressSlot.time: "What time?",
    ExpressSlot.party_size: "How many people?",
}


@dataclass(frozen=True)
class Question:
    text: str
    slot_type: SlotType


@dataclass(frozen=True)
class ExpressQuestion:
    text: str
    slot: ExpressSlot


def next_question(
    slots: Slots,
    profile: Profile | None = None,
    include_optional: bool = False,
) -> Question | None:
    """Return the question for the first unanswered slot.

    ``None`` means the request is complete and can be recommended on. With
    ``include_optional`` the walk continues past completion to slots that only
    refine the results, such as dietary needs.
    """
    slot_type = slots.missing_slot(include_optional=include_optional)
    if slot_type is None:
        return None
    text = QUESTIONS[slot_type]
    if slot_type == SlotType.area and profile is not None and profile.last_area:
        text = f"{text} Last time you booked in {profile.last_area}."
    return Question(text=text, slot_type=slot_type)


def question_for(slot_type: SlotType) -> Question:
    return Question(text=QUESTIONS[slot_type], slot_type=slot_type)


def next_express_question(request: ActiveRequest) -> ExpressQuestion | None:
    slot = request.missing_slot()
    if slot is None:
        return None
    return ExpressQuestion(text=EXPRESS_QUESTIONS[slot], slot=slot)
