from __future__ import annotations

import logging
import re
from datetime import date, timedelta
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .base import Interpreter

logger = logging.getLogger(__name__)

DATE_CONFIDENCE_THRESHOLD = 0.5

# Sunday-first numbering
_DAY_NUMBERS: dict[str, int] = {
    "sunday": 0,
    "monday": 1,
    "tuesday": 2,
    "wednesday": 3,
    "thursday": 4,
    "friday": 5,
    "saturday": 6,
    "sun": 0,
    "mon": 1,
    "tue": 2,
    "wed": 3,
    "thu": 4,
    "fri": 5,
    "sat": 6,
}

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_NEXT_RE = re.compile(r"^next\s+(.+)$")
_THIS_RE = re.compile(r"^this\s+(.+)$")
_TIME_RE = re.compile(r"(\d{1,2}):?(\d{2})?\s*(am|pm)?", re.IGNORECASE)
_PARTY_RE = re.compile(r"\b(\d{1,2})\b")

DEFAULT_PARTY_SIZE = 2


def _weekday_number(day: date) -> int:
    return (day.weekday() + 1) % 7


def resolve_date_keywords(text: str, today: date | None = None) -> str | None:
    """Resolve an exact or relative date expression to YYYY-MM-DD, or ``None``."""
    lower = text.lower().strip()
    today = today or date.today()

    if _ISO_DATE_RE.match(text.strip()):
        return text.strip()
    if lower in ("tomorrow", "tom"):
        return (today + timedelta(days=1)).isoformat()
    if lower == "today":
        return today.isoformat()

    current = _weekday_number(today)

    match = _NEXT_RE.match(lower)
    if match and match.group(1).strip() in _DAY_NUMBERS:
        # "next <day>" always lands in the following week
        days = _DAY_NUMBERS[match.group(1).strip()] - current + 7
        return (today + timedelta(days=days)).isoformat()

    if lower in _DAY_NUMBERS:
        days = _DAY_NUMBERS[lower] - current
        if days <= 0:
            days += 7
        return (today + timedelta(days=days)).isoformat()

    match = _THIS_RE.match(lower)
    if match and match.group(1).strip() in _DAY_NUMBERS:
        days = _DAY_NUMBERS[match.group(1).strip()] - current
        if days < 0:
            days += 7
        return (today + timedelta(days=days)).isoformat()

    return None


def parse_relative_date(
    text: str,
    interpreter: Interpreter | None = None,
    today: date | None = None,
) -> str:
    """Resolve a booking date.

    The interpreter's answer wins when it is confident enough; otherwise the
    keyword rules apply, and anything they cannot read is kept verbatim.
    """
    if interpreter is not None:
        resolution = interpreter.parse_date(text, today=today)
        if resolution.date and resolution.confidence >= DATE_CONFIDENCE_THRESHOLD:
            return resolution.date
    return resolve_date_keywords(text, today) or text.strip()


def parse_time(text: str) -> str | None:
    """Return ``HH:MM`` for the first clock time in ``text``, or ``None``."""
    match = _TIME_RE.search(text)
    if not match:
        return None
    hours = int(match.group(1))
    minutes = int(match.group(2)) if match.group(2) else 0
    ampm = (match.group(3) or "").lower()
    if ampm == "pm" and hours < 12:
        hours += 12
    if ampm == "am" and hours == 12:
        hours = 0
    return f"{hours:02d}:{minutes:02d}"


def parse_booking_time(text: str) -> str:
    return parse_time(text) or text.strip()


def parse_booking_party_size(text: str, fallback: int | None = None) -> int:
    match = _PARTY_RE.search(text)
    if match and int(match.group(1)) >= 1:
        return int(match.group(1))
    return fallback or DEFAULT_PARTY_SIZE
