from __future__ import annotations

from datetime import date
from typing import Any

_JSON_ONLY = "Return ONLY valid JSON in this exact format:\n"

EXTRACT_SLOTS_PROMPT = (
    "You extract restaurant search preferences from one diner message.\n"
    "Only fill a field when the message states it; never guess.\n"
    "meal_time is one of breakfast, lunch, dinner, coffee, drinks, late-night. "
    "budget is one of cheap, mid, high. vibe is one of romantic, lively, quiet, "
    "outdoor, family, business. party_size is a number of people.\n"
    "Use area and cuisine names from the provided lists when they fit.\n\n"
    + _JSON_ONLY
    + '{"area": null, "meal_time": null, "party_size": null, "budget": null, '
    '"craving_cuisines": [], "vibe": null, "dietary": [], "confidence": 0.0}'
)

CLASSIFY_PROMPT = (
    "You classify a diner message for a restaurant booking assistant and extract "
    "any booking details it contains.\n"
    "intent is one of greeting_or_offtopic, restaurant_request, slot_answer, refinement, other.\n"
    "budget.range is 1 (cheap) to 4 (luxury). date is YYYY-MM-DD relative to today. "
    "time is HH:MM in 24-hour format.\n\n"
    + _JSON_ONLY
    + '{"intent": "other", "extracted": {"area": {"value": null, "confidence": 0.0}, '
    '"cuisine": {"value": null, "confidence": 0.0}, "budget": {"label": null, "range": null}, '
    '"party_size": null, "date": {"value": null, "confidence": 0.0}, '
    '"time": {"value": null, "confidence": 0.0}, "notes": null}}'
)

VALIDATE_SLOT_PROMPT = (
    "You check whether a diner's reply answers the question for one booking slot.\n"
    "If it does not, set normalized to null and confidence to 0.3 or lower.\n"
    "budget normalizes to an integer 1-4: luxury or fine dining 4; high, expensive, upscale, "
    "premium or fancy 3; mid, medium, moderate or normal 2; low, cheap, budget, affordable "
    "or inexpensive 1. date normalizes to YYYY-MM-DD. time normalizes to HH:MM. "
    "party_size normalizes to an integer.\n\n"
    + _JSON_ONLY
    + '{"slot": "<slot>", "value": "<reply>", "normalized": null, "confidence": 0.0}'
)

NORMALIZE_PROMPT = (
    "You map a diner's area and cuisine onto the closest supported value.\n"
    "Only match when the meaning is the same place or cuisine. When nothing fits, "
    "leave matched null and mark the field unavailable.\n\n"
    + _JSON_ONLY
    + '{"area_match": {"input": null, "matched": null, "confidence": 0.0}, '
    '"cuisine_match": {"input": null, "matched": null, "confidence": 0.0}, '
    '"unavailable": {"area": false, "cuisine": false}}'
)

ANALYZE_ANSWER_PROMPT = (
    "You judge whether a diner's answer addresses the question they were asked.\n"
    "interpretation is the answer expressed as a value for the question type "
    "(area or cuisine from the available list, budget cheap/mid/high, party_size as a number). "
    "When the answer is about something else, set is_off_topic and explain briefly in message.\n\n"
    + _JSON_ONLY
    + '{"interpretation": null, "confidence": 0.0, "is_off_topic": false, '
    '"off_topic_confidence": 0.0, "message": null}'
)

PARSE_DATE_PROMPT = (
    "You resolve a date expression to a calendar date relative to today.\n"
    "'next <weekday>' means that weekday in the following week.\n\n"
    + _JSON_ONLY
    + '{"date": "YYYY-MM-DD", "confidence": 0.0}'
)


def _listing(label: str, values: list[str] | None) -> list[str]:
    if not values:
        return []
    return [f"- {label}: {', '.join(values)}"]


def extract_slots_message(
    text: str,
    current: dict[str, Any] | None,
    areas: list[str] | None,
    cuisines: list[str] | None,
    question: str | None,
    question_type: str | None,
) -> str:
    lines = ["## Context"]
    lines += _listing("Supported areas", areas)
    lines += _listing("Supported cuisines", cuisines)
    if current:
        known = {k: v for k, v in current.items() if v not in (None, [], {})}
        if known:
            lines.append(f"- Already known: {known}")
    if question:
        lines.append(f"- Last question ({question_type or 'unknown'}): {question}")
    lines.append("\n## Message")
    lines.append(text)
    return "\n".join(lines)


def classify_message(text: str, today: date) -> str:
    return f"## Today\n{today.isoformat()} ({today.strftime('%A')})\n\n## Message\n{text}"


def validate_slot_message(slot: str, reply: str, choices: list[str] | None, today: date) -> str:
    lines = [f"## Slot\n{slot}", f"## Today\n{today.isoformat()} ({today.strftime('%A')})"]
    if choices:
        lines.append(f"## Supported choices\n{', '.join(choices)}")
    lines.append(f"## Reply\n{reply}")
    return "\n\n".join(lines)


def normalize_message(
    raw_area: str | None,
    raw_cuisine: str | None,
    areas: list[str],
    cuisines: list[str],
) -> str:
    return "\n".join(
        [
            f"- Area input: {raw_area or 'none'}",
            f"- Cuisine input: {raw_cuisine or 'none'}",
            f"- Supported areas: {', '.join(areas)}",
            f"- Supported cuisines: {', '.join(cuisines)}",
        ]
    )


def analyze_answer_message(
    question: str,
    answer: str,
    question_type: str,
    available: list[str] | None,
) -> str:
    lines = [f"## Question ({question_type})", question]
    if available:
        lines += ["\n## Available values", ", ".join(available)]
    lines += ["\n## Answer", answer]
    return "\n".join(lines)


def parse_date_message(text: str, today: date) -> str:
    return f"## Today\n{today.isoformat()} ({today.strftime('%A')})\n\n## Expression\n{text}"
