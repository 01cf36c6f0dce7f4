from __future__ import annotations

from datetime import date
from typing import Any, Protocol

from .models import (
    AnswerAnalysis,
    Classification,
    DateResolution,
    DBNormalization,
    ExtractedSlots,
    SlotValidation,
)


class Interpreter(Protocol):
    """Turns free text into structured values, each with a confidence.

    Implementations hold no session state: callers pass every piece of
    context on each call. Any failure must be absorbed by the implementation
    and reported as a low-confidence, empty result.
    """

    def extract_slots(
        self,
        text: str,
        current: dict[str, Any] | None = None,
        areas: list[str] | None = None,
        cuisines: list[str] | None = None,
        question: str | None = None,
        question_type: str | None = None,
    ) -> ExtractedSlots: ...

    def classify_and_extract(self, text: str, today: date | None = None) -> Classification: ...

    def validate_slot(
        self,
        slot: str,
        reply: str,
        choices: list[str] | None = None,
        today: date | None = None,
    ) -> SlotValidation: ...

    def normalize_to_db(
        self,
        raw_area: str | None,
        raw_cuisine: str | None,
        areas: list[str],
        cuisines: list[str],
    ) -> DBNormalization: ...

    def analyze_answer(
        self,
        question: str,
        answer: str,
        question_type: str,
        available: list[str] | None = None,
    ) -> AnswerAnalysis: ...

    def parse_date(self, text: str, today: date | None = None) -> DateResolution: ...
