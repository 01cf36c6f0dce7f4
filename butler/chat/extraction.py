from __future__ import annotations

import logging
import re
from typing import Any

from pydantic import BaseModel, Field

from ..catalog.vocabulary import list_areas, list_cuisines, match_value
from ..nlu.base import Interpreter
from ..nlu.keywords import is_greeting_or_ack
from ..nlu.models import Budget, MealTime, SlotType, Vibe
from .models import Slots

logger = logging.getLogger(__name__)

EXTRACTION_CONFIDENCE_CUTOFF = 0.3
ANSWER_CONFIDENCE_CUTOFF = 0.5
NORMALIZE_CONFIDENCE_CUTOFF = 0.5
SHORT_MESSAGE_TOKENS = 3

_LIST_FIELDS = {"craving_cuisines", "dietary"}

_FIELD_FOR_SLOT: dict[SlotType, str] = {
    SlotType.area: "area",
    SlotType.meal_time: "meal_time",
    SlotType.party_size: "party_size",
    SlotType.budget: "budget",
    SlotType.cuisine: "craving_cuisines",
    SlotType.vibe: "vibe",
    SlotType.dietary: "dietary",
}

# Evidence a message must contain before an extracted value is trusted
_TIME_KEYWORDS = [
    "breakfast", "brunch", "lunch", "dinner", "supper", "coffee", "drinks",
    "morning", "afternoon", "evening", "night", "noon", "midday", "late",
    "cafe", "cocktail", "bar", "time",
]
_AMPM_RE = re.compile(r"\d\s*(am|pm)\b|\b\d{1,2}:\d{2}\b")
_NUMBER_RE = re.compile(r"\d+|\b(one|two|three|four|five|six|seven|eight|nine|ten)\b")
_PEOPLE_KEYWORDS = ["people", "person", "party", "guests", "group", "me", "us"]
_BUDGET_KEYWORDS = [
    "budget", "price", "cheap", "expensive", "affordable", "upscale", "premium",
    "mid", "medium", "moderate", "high", "low", "luxury", "fancy", "fine dining", "$",
]
_VIBE_KEYWORDS = [
    "romantic", "lively", "quiet", "outdoor", "family", "business", "casual",
    "intimate", "fun", "peaceful", "calm", "patio", "garden", "professional",
    "atmosphere", "vibe",
]
_DIETARY_KEYWORDS = [
    "vegetarian", "vegan", "gluten", "halal", "kosher", "pescatarian",
    "dietary", "allergy", "allergies", "restriction",
]


class ExtractionResult(BaseModel):
    slots: dict[str, Any] = Field(default_factory=dict)
    confidence: float = 0.0
    rejected: list[str] = Field(default_factory=list)
    unavailable: dict[str, str] = Field(default_factory=dict)
    answered: SlotType | None = None


def _plausible(field: str, text: str) -> bool:
    lower = text.lower()
    if field == "meal_time":
        return any(kw in lower for kw in _TIME_KEYWORDS) or _AMPM_RE.search(lower) is not None
    if field == "party_size":
        return _NUMBER_RE.search(lower) is not None or any(kw in lower.split() for kw in _PEOPLE_KEYWORDS)
    if field == "budget":
        return any(kw in lower for kw in _BUDGET_KEYWORDS)
    if field == "craving_cuisines":
        # Short messages are taken to carry a location only
        return len(lower.split()) > SHORT_MESSAGE_TOKENS
    if field == "vibe":
        return any(kw in lower for kw in _VIBE_KEYWORDS)
    if field == "dietary":
        return any(kw in lower for kw in _DIETARY_KEYWORDS)
    return True


def _waived_fields(expected_type: SlotType | None) -> set[str]:
    if expected_type is None:
        return set()
    waived = {_FIELD_FOR_SLOT[expected_type]}
    if expected_type == SlotType.cuisine:
        # The cuisine question also invites an atmosphere
        waived.add("vibe")
    return waived


def _answer_value(slot_type: SlotType, interpretation: str) -> Any:
    try:
        if slot_type == SlotType.area:
            return interpretation
        if slot_type == SlotType.cuisine:
            return [interpretation]
        if slot_type == SlotType.meal_time:
            return MealTime(interpretation)
        if slot_type == SlotType.budget:
            return Budget(interpretation)
        if slot_type == SlotType.vibe:
            return Vibe(interpretation)
        if slot_type == SlotType.party_size:
            size = int(interpretation)
            return size if size >= 1 else None
        if slot_type == SlotType.dietary:
            return [d.strip() for d in interpretation.split(",") if d.strip()]
    except ValueError:
        logger.debug("Ignoring unusable %s answer %r", slot_type.value, interpretation)
    return None


def _resolve(
    raw: str,
    kind: str,
    interpreter: Interpreter,
    areas: list[str],
    cuisines: list[str],
) -> str | None:
    """Resolve ``raw`` to a catalog value, asking the interpreter when keywords fail."""
    values = areas if kind == "area" else cuisines
    resolved = match_value(raw, values)
    if resolved:
        return resolved

    if kind == "area":
        normalized = interpreter.normalize_to_db(raw, None, areas, cuisines).area_match
    else:
        normalized = interpreter.normalize_to_db(None, raw, areas, cuisines).cuisine_match
    if normalized.matched in values and normalized.confidence > NORMALIZE_CONFIDENCE_CUTOFF:
        return normalized.matched
    return None


def extract(
    text: str,
    current: Slots,
    interpreter: Interpreter,
    last_question: str | None = None,
    expected_type: SlotType | None = None,
) -> ExtractionResult:
    """Turn one user message into validated slot values.

    Nothing here mutates ``current``; callers merge the result with
    :func:`merge_slots`.
    """
    if is_greeting_or_ack(text):
        return ExtractionResult()

    areas = list_areas()
    cuisines = list_cuisines()
    expected = expected_type.value if expected_type else None

    extracted = interpreter.extract_slots(
        text,
        current.model_dump(mode="json"),
        areas,
        cuisines,
        question=last_question,
        question_type=expected,
    )
    values: dict[str, Any] = {}
    confidence = 0.0
    if extracted.confidence > EXTRACTION_CONFIDENCE_CUTOFF:
        values = extracted.model_dump(exclude_defaults=True, exclude={"confidence"})
        confidence = extracted.confidence

    answered: SlotType | None = None
    if last_question and expected_type is not None:
        available = areas if expected_type == SlotType.area else cuisines if expected_type == SlotType.cuisine else None
        analysis = interpreter.analyze_answer(last_question, text, expected, available)
        if (
            analysis.interpretation
            and analysis.confidence > ANSWER_CONFIDENCE_CUTOFF
            and not analysis.is_off_topic
        ):
            direct = _answer_value(expected_type, analysis.interpretation)
            if direct is not None:
                values[_FIELD_FOR_SLOT[expected_type]] = direct
                answered = expected_type
                confidence = max(confidence, analysis.confidence)

    unavailable: dict[str, str] = {}
    if "area" in values:
        resolved = _resolve(values["area"], "area", interpreter, areas, cuisines)
        if resolved:
            values["area"] = resolved
        else:
            unavailable["area"] = values.pop("area")
    if "craving_cuisines" in values:
        kept: list[str] = []
        for raw in values.pop("craving_cuisines"):
            resolved = _resolve(raw, "cuisine", interpreter, areas, cuisines)
            if resolved is None:
                unavailable.setdefault("cuisine", raw)
            elif resolved not in kept:
                kept.append(resolved)
        if kept:
            values["craving_cuisines"] = kept

    rejected: list[str] = []
    waived = _waived_fields(expected_type)
    for field in list(values):
        if field not in waived and not _plausible(field, text):
            rejected.append(field)
            del values[field]

    if rejected:
        logger.info("Dropped unsupported extractions %s from %r", rejected, text)

    return ExtractionResult(
        slots=values,
        confidence=confidence if values else 0.0,
        rejected=rejected,
        unavailable=unavailable,
        answered=answered,
    )


def merge_slots(current: Slots, update: dict[str, Any], overwrite: bool = False) -> Slots:
    """Merge extracted values into ``current``.

    Set scalar slots are kept unless ``overwrite`` is on. List slots are
    unioned, except that cuisines are replaced when overwriting.
    """
    data = current.model_dump()
    for field, value in update.items():
        if field in _LIST_FIELDS:
            if overwrite and field == "craving_cuisines":
                data[field] = list(value)
            else:
                existing = list(data.get(field) or [])
                data[field] = existing + [v for v in value if v not in existing]
        elif data.get(field) is None or overwrite:
            data[field] = value
    return Slots.model_validate(data)
