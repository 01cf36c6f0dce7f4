from __future__ import annotations

import re
from datetime import date
from typing import Any

from ..catalog.vocabulary import list_areas, list_cuisines, match_value, scan_values
from .dates import parse_time, resolve_date_keywords
from .models import (
    AnswerAnalysis,
    Budget,
    BudgetGuess,
    ClassifiedValues,
    Classification,
    DateResolution,
    DBMatch,
    DBNormalization,
    ExtractedSlots,
    Intent,
    MealTime,
    SlotType,
    SlotValidation,
    Unavailable,
    ValuedField,
    Vibe,
)

# ---------------------------------------------------------------------------
# Greetings and acknowledgements
# ---------------------------------------------------------------------------

_GREETINGS = {"hello", "hi", "hey", "hiya", "hola", "greetings"}
_ACKNOWLEDGEMENTS = {
    "ok", "okay", "sure", "thanks", "thank", "cool",
    "yeah", "yep", "nah", "nope", "yes", "no",
}
_FILLERS = {"there", "you", "so", "much", "all", "then"}
_WORD_RE = re.compile(r"[a-z']+")


def is_greeting_or_ack(text: str) -> bool:
    """True for a bare greeting or casual acknowledgement of at most two words."""
    lower = text.lower().strip()
    if not lower or any(ch.isdigit() for ch in lower):
        return False
    tokens = _WORD_RE.findall(lower)
    if not tokens or len(tokens) > 2 or len(lower.split()) > 2:
        return False
    vocabulary = _GREETINGS | _ACKNOWLEDGEMENTS
    return all(t in vocabulary or t in _FILLERS for t in tokens) and any(t in vocabulary for t in tokens)


# ---------------------------------------------------------------------------
# Budget
# ---------------------------------------------------------------------------

_BUDGET_WORDS: list[tuple[int, list[str]]] = [
    (4, ["luxury", "fine dining", "splurge"]),
    (3, ["high", "expensive", "upscale", "premium", "fancy"]),
    (2, ["mid", "medium", "moderate", "normal", "mid-range"]),
    (1, ["low", "cheap", "affordable", "inexpensive", "on a budget", "budget-friendly", "tight budget"]),
]

_DOLLAR_RANGE_RE = re.compile(r"(\$)?\s*(\d+)\s*(?:-|–|to)\s*\$?\s*(\d+)")
_DOLLAR_PLUS_RE = re.compile(r"(\$)?\s*(\d+)\s*\+")
_DOLLAR_AMOUNT_RE = re.compile(r"\$\s*(\d+)|\b(\d+)\s*(?:dollars|usd)\b")
_DOLLAR_SIGNS_RE = re.compile(r"^\s*(\${1,4})\s*$")
_NUMERAL_RE = re.compile(r"^\s*([1-4])\s*$")
_ISO_DATE_IN_TEXT_RE = re.compile(r"\b\d{4}-\d{2}-\d{2}\b")

BUDGET_FROM_RANGE: dict[int, Budget] = {1: Budget.cheap, 2: Budget.mid, 3: Budget.high, 4: Budget.high}
RANGE_FROM_BUDGET: dict[Budget, int] = {Budget.cheap: 1, Budget.mid: 2, Budget.high: 3}
EXPRESS_BUDGET_LABELS = ["", "low", "medium", "high", "luxury"]


def _range_from_amount(amount: int) -> int:
    if amount < 100:
        return 1
    if amount < 200:
        return 2
    if amount < 400:
        return 3
    return 4


def _has_word(text: str, phrase: str) -> bool:
    return re.search(rf"\b{re.escape(phrase)}\b", text) is not None


def budget_range(text: str, allow_numeral: bool = False) -> int | None:
    """Map a budget expression to a 1-4 range.

    Dollar ranges use their lower bound. A bare numeral is only read as a
    range when the caller knows the reply answers a budget question.
    """
    lower = text.lower().strip()
    # Calendar dates are not price ranges
    amounts = _ISO_DATE_IN_TEXT_RE.sub(" ", lower)

    for pattern in (_DOLLAR_RANGE_RE, _DOLLAR_PLUS_RE):
        match = pattern.search(amounts)
        if match:
            amount = int(match.group(2))
            if match.group(1) or amount >= 20:
                return _range_from_amount(amount)

    match = _DOLLAR_AMOUNT_RE.search(amounts)
    if match:
        return _range_from_amount(int(match.group(1) or match.group(2)))

    for value, words in _BUDGET_WORDS:
        if any(_has_word(lower, w) for w in words):
            return value

    match = _DOLLAR_SIGNS_RE.match(lower)
    if match:
        return len(match.group(1))

    if allow_numeral:
        match = _NUMERAL_RE.match(lower)
        if match:
            return int(match.group(1))

    return None


def budget_label(range_value: int) -> str:
    return EXPRESS_BUDGET_LABELS[range_value]


# ---------------------------------------------------------------------------
# Meal time, party size, vibe, dietary
# ---------------------------------------------------------------------------

_MEAL_TIME_PATTERNS: list[tuple[MealTime, list[str]]] = [
    (MealTime.late_night, ["late night", "late-night", "midnight", "late"]),
    (MealTime.breakfast, ["breakfast", "morning", "brunch", "early"]),
    (MealTime.lunch, ["lunch", "lunchtime", "noon", "midday"]),
    (MealTime.dinner, ["dinner", "evening", "tonight", "night", "supper"]),
    (MealTime.coffee, ["coffee", "cafe", "latte"]),
    (MealTime.drinks, ["drinks", "cocktail", "cocktails", "bar", "happy hour"]),
]
_CLOCK_RE = re.compile(r"\b\d{1,2}(?::\d{2})?\s*(?:am|pm)\b|\b\d{1,2}:\d{2}\b", re.IGNORECASE)
_AMPM_HOUR_RE = re.compile(r"\b(\d{1,2})(?::\d{2})?\s*(am|pm)\b", re.IGNORECASE)


def _meal_time_for_hour(hour: int) -> MealTime:
    if 5 <= hour <= 10:
        return MealTime.breakfast
    if 11 <= hour <= 15:
        return MealTime.lunch
    if 16 <= hour <= 21:
        return MealTime.dinner
    return MealTime.late_night


def detect_meal_time(text: str) -> MealTime | None:
    lower = text.lower()
    for meal_time, patterns in _MEAL_TIME_PATTERNS:
        if any(_has_word(lower, p) for p in patterns):
            return meal_time
    match = _AMPM_HOUR_RE.search(lower)
    if match:
        hour = int(match.group(1)) % 12
        if match.group(2).lower() == "pm":
            hour += 12
        return _meal_time_for_hour(hour)
    return None


_NUMBER_WORDS = {
    "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10,
}
_PARTY_CONTEXT_RE = re.compile(
    r"(people|party|guests|person|diner|table|group|pax|of us|\bfor\s+(?:\d{1,2}|one|two|three|four|five|six|seven|eight|nine|ten)\b)"
)
_SOLO_RE = re.compile(r"\b(just me|by myself|solo|alone|only me)\b")
_BARE_NUMBER_RE = re.compile(r"\b(\d{1,2})\b(?!\s*(?::|am|pm))")


def detect_party_size(text: str, bare_number: bool = False) -> int | None:
    """Find a party size. Bare numbers count only when ``bare_number`` is set."""
    lower = text.lower().strip()
    if _SOLO_RE.search(lower):
        return 1
    has_context = _PARTY_CONTEXT_RE.search(lower) is not None

    match = _BARE_NUMBER_RE.search(lower)
    if match:
        number = int(match.group(1))
        is_just_number = re.fullmatch(r"\d{1,2}", lower) is not None
        if 1 <= number <= 20 and (has_context or (bare_number and is_just_number)):
            return number

    for word, number in _NUMBER_WORDS.items():
        if _has_word(lower, word) and (has_context or lower == word):
            return number
    return None


_VIBE_PATTERNS: list[tuple[str, Vibe]] = [
    ("romantic", Vibe.romantic),
    ("intimate", Vibe.romantic),
    ("lively", Vibe.lively),
    ("casual", Vibe.lively),
    ("fun", Vibe.lively),
    ("quiet", Vibe.quiet),
    ("peaceful", Vibe.quiet),
    ("calm", Vibe.quiet),
    ("outdoor", Vibe.outdoor),
    ("outdoors", Vibe.outdoor),
    ("patio", Vibe.outdoor),
    ("garden", Vibe.outdoor),
    ("family", Vibe.family),
    ("business", Vibe.business),
    ("professional", Vibe.business),
]


def detect_vibe(text: str) -> Vibe | None:
    lower = text.lower()
    for pattern, vibe in _VIBE_PATTERNS:
        if _has_word(lower, pattern):
            return vibe
    return None


_DIETARY_TERMS: list[tuple[str, str]] = [
    ("vegetarian", "vegetarian"),
    ("vegan", "vegan"),
    ("gluten-free", "gluten-free"),
    ("gluten free", "gluten-free"),
    ("pescatarian", "pescatarian"),
    ("halal", "halal"),
    ("kosher", "kosher"),
]


def detect_dietary(text: str) -> list[str]:
    lower = text.lower()
    found: list[str] = []
    for pattern, tag in _DIETARY_TERMS:
        if _has_word(lower, pattern) and tag not in found:
            found.append(tag)
    return found


# ---------------------------------------------------------------------------
# Cuisine hints
# ---------------------------------------------------------------------------

DISH_HINTS: dict[str, str] = {
    "pizza": "Italian",
    "pasta": "Italian",
    "tiramisu": "Italian",
    "risotto": "Italian",
    "sushi": "Japanese",
    "ramen": "Japanese",
    "omakase": "Japanese",
    "taco": "Mexican",
    "tacos": "Mexican",
    "burrito": "Mexican",
    "shawarma": "Lebanese",
    "manakish": "Lebanese",
    "mezze": "Lebanese",
    "hummus": "Lebanese",
    "steak": "Steakhouse",
    "steaks": "Steakhouse",
    "burger": "American",
    "burgers": "American",
    "curry": "Indian",
    "biryani": "Indian",
    "tandoori": "Indian",
    "pad thai": "Thai",
    "croissant": "French",
    "oysters": "Seafood",
    "fish": "Seafood",
}

_CUISINE_PHRASE_RE = re.compile(r"\b([a-z]+)\s+(?:food|cuisine|restaurant|place|spot)s?\b")
_NOT_CUISINES = {
    "good", "some", "the", "a", "nice", "great", "local", "any", "fast",
    "street", "new", "best", "cheap", "fancy", "nearby", "your", "my",
}
_NO_PREFERENCE_RE = re.compile(
    r"\b(any|anything|whatever|no preference|surprise me|don't mind|dont mind|doesn't matter|not sure)\b"
)
_DATE_WORDS_RE = re.compile(
    r"\b(today|tomorrow|(?:next|this)\s+(?:sunday|monday|tuesday|wednesday|thursday|friday|saturday)"
    r"|sunday|monday|tuesday|wednesday|thursday|friday|saturday|\d{4}-\d{2}-\d{2})\b"
)
_DATEISH_RE = re.compile(
    r"\b(weekend|tonight|jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec|\d{1,2}(?:st|nd|rd|th)|\d{1,2}/\d{1,2})",
)


def detect_cuisines(text: str, cuisines: list[str]) -> list[str]:
    """Catalog cuisines named in ``text``, then cuisines implied by dishes."""
    found = scan_values(text, cuisines)
    lower = text.lower()
    for dish, cuisine in DISH_HINTS.items():
        if cuisine in cuisines and cuisine not in found and _has_word(lower, dish):
            found.append(cuisine)
    return found


def _is_short(text: str, limit: int = 3) -> bool:
    return 0 < len(text.split()) <= limit


def _find_date(text: str, today: date | None = None) -> str | None:
    resolved = resolve_date_keywords(text, today)
    if resolved:
        return resolved
    match = _DATE_WORDS_RE.search(text.lower())
    if match:
        return resolve_date_keywords(match.group(1), today)
    return None


def _find_time(text: str) -> str | None:
    match = _CLOCK_RE.search(text)
    return parse_time(match.group(0)) if match else None


# ---------------------------------------------------------------------------
# Interpreter
# ---------------------------------------------------------------------------


class KeywordInterpreter:
    """Deterministic interpreter built on keyword lists and the catalog vocabulary.

    Used directly when no LLM is configured and as the fallback for every
    LLM call that fails.
    """

    def extract_slots(
        self,
        text: str,
        current: dict[str, Any] | None = None,
        areas: list[str] | None = None,
        cuisines: list[str] | None = None,
        question: str | None = None,
        question_type: str | None = None,
    ) -> ExtractedSlots:
        if is_greeting_or_ack(text):
            return ExtractedSlots()

        areas = areas if areas is not None else list_areas()
        cuisines = cuisines if cuisines is not None else list_cuisines()
        expected = question_type

        found_areas = scan_values(text, areas)
        range_value = budget_range(text, allow_numeral=expected == SlotType.budget.value)
        values: dict[str, Any] = {
            "area": found_areas[0] if found_areas else None,
            "meal_time": detect_meal_time(text),
            "party_size": detect_party_size(
                text, bare_number=expected in (None, SlotType.party_size.value),
            ),
            "budget": BUDGET_FROM_RANGE.get(range_value) if range_value else None,
            "craving_cuisines": detect_cuisines(text, cuisines),
            "vibe": detect_vibe(text),
            "dietary": detect_dietary(text),
        }

        # A short reply to an area or cuisine question is taken as a raw guess
        # so the caller can check it against the catalog.
        nothing_else = not any(values.values())
        raw = text.strip(" .!?")
        if nothing_else and _is_short(raw) and not _NO_PREFERENCE_RE.search(raw.lower()):
            if expected == SlotType.area.value:
                values["area"] = raw
            elif expected == SlotType.cuisine.value:
                values["craving_cuisines"] = [raw]

        extracted = ExtractedSlots(**values)
        confidence = 0.2 if extracted.is_empty() else 0.9
        return extracted.model_copy(update={"confidence": confidence})

    def classify_and_extract(self, text: str, today: date | None = None) -> Classification:
        if is_greeting_or_ack(text):
            return Classification(intent=Intent.greeting_or_offtopic)

        lower = text.lower()
        area = scan_values(text, list_areas())
        cuisines = detect_cuisines(text, list_cuisines())
        if cuisines:
            cuisine = ValuedField(value=cuisines[0], confidence=0.9)
        else:
            phrase = _CUISINE_PHRASE_RE.search(lower)
            if phrase and phrase.group(1) not in _NOT_CUISINES:
                cuisine = ValuedField(value=phrase.group(1).title(), confidence=0.6)
            else:
                cuisine = ValuedField()

        range_value = budget_range(text)
        date_value = _find_date(text, today)
        time_value = _find_time(text)

        extracted = ClassifiedValues(
            area=ValuedField(value=area[0], confidence=0.9) if area else ValuedField(),
            cuisine=cuisine,
            budget=BudgetGuess(label=budget_label(range_value), range=range_value) if range_value else BudgetGuess(),
            party_size=detect_party_size(text),
            date=ValuedField(value=date_value, confidence=0.8) if date_value else ValuedField(),
            time=ValuedField(value=time_value, confidence=0.8) if time_value else ValuedField(),
        )

        if extracted.area.value or extracted.cuisine.value:
            intent = Intent.restaurant_request
        elif extracted.budget.range or extracted.party_size or date_value or time_value:
            intent = Intent.slot_answer
        else:
            intent = Intent.other
        return Classification(intent=intent, extracted=extracted)

    def validate_slot(
        self,
        slot: str,
        reply: str,
        choices: list[str] | None = None,
        today: date | None = None,
    ) -> SlotValidation:
        text = reply.strip()
        normalized: str | int | None = None
        confidence = 0.9

        if slot == "area":
            normalized = match_value(text, choices or list_areas())
        elif slot == "cuisine":
            options = choices or list_cuisines()
            found = detect_cuisines(text, options)
            normalized = found[0] if found else match_value(text, options)
        elif slot == "budget":
            normalized = budget_range(text, allow_numeral=True)
        elif slot == "party_size":
            normalized = detect_party_size(text, bare_number=True)
        elif slot == "date":
            normalized = _find_date(text, today)
            if normalized is None and _DATEISH_RE.search(text.lower()):
                # Keep natural language the rules cannot pin to a day
                normalized, confidence = text, 0.5
        elif slot == "time":
            normalized = parse_time(text) if any(ch.isdigit() for ch in text) else None
        elif slot == "notes":
            normalized = text or None

        if normalized is None:
            return SlotValidation(slot=slot, value=text or None, confidence=0.2)
        return SlotValidation(slot=slot, value=text, normalized=normalized, confidence=confidence)

    def normalize_to_db(
        self,
        raw_area: str | None,
        raw_cuisine: str | None,
        areas: list[str],
        cuisines: list[str],
    ) -> DBNormalization:
        area = match_value(raw_area, areas) if raw_area else None
        cuisine = None
        if raw_cuisine:
            cuisine = match_value(raw_cuisine, cuisines)
            if cuisine is None:
                hinted = detect_cuisines(raw_cuisine, cuisines)
                cuisine = hinted[0] if hinted else None

        return DBNormalization(
            area_match=DBMatch(input=raw_area, matched=area, confidence=0.9 if area else 0.0),
            cuisine_match=DBMatch(input=raw_cuisine, matched=cuisine, confidence=0.9 if cuisine else 0.0),
            unavailable=Unavailable(
                area=bool(raw_area) and area is None,
                cuisine=bool(raw_cuisine) and cuisine is None,
            ),
        )

    def analyze_answer(
        self,
        question: str,
        answer: str,
        question_type: str,
        available: list[str] | None = None,
    ) -> AnswerAnalysis:
        interpretation: str | None = None

        if question_type == SlotType.area.value:
            options = available or list_areas()
            interpretation = match_value(answer, options)
            if interpretation is None and detect_cuisines(answer, list_cuisines()):
                return _off_topic(f"That sounds like food rather than a place. Try one of: {', '.join(options[:3])}.")
        elif question_type == SlotType.cuisine.value:
            options = available or list_cuisines()
            found = detect_cuisines(answer, options)
            interpretation = found[0] if found else None
            if interpretation is None and scan_values(answer, list_areas()):
                return _off_topic(f"That sounds like a place rather than a cuisine. I have: {', '.join(options[:3])}.")
        elif question_type == SlotType.budget.value:
            range_value = budget_range(answer, allow_numeral=True)
            interpretation = BUDGET_FROM_RANGE[range_value].value if range_value else None
        elif question_type == SlotType.meal_time.value:
            meal_time = detect_meal_time(answer)
            interpretation = meal_time.value if meal_time else None
        elif question_type == SlotType.vibe.value:
            vibe = detect_vibe(answer)
            interpretation = vibe.value if vibe else None
        elif question_type == SlotType.party_size.value:
            size = detect_party_size(answer, bare_number=True)
            interpretation = str(size) if size else None
        elif question_type == SlotType.dietary.value:
            tags = detect_dietary(answer)
            interpretation = ", ".join(tags) if tags else None

        if interpretation is None:
            return AnswerAnalysis(confidence=0.2)
        return AnswerAnalysis(interpretation=interpretation, confidence=0.8, off_topic_confidence=0.1)

    def parse_date(self, text: str, today: date | None = None) -> DateResolution:
        resolved = _find_date(text, today)
        return DateResolution(date=resolved, confidence=0.9 if resolved else 0.0)


def _off_topic(message: str) -> AnswerAnalysis:
    return AnswerAnalysis(confidence=0.2, is_off_topic=True, off_topic_confidence=0.9, message=message)
