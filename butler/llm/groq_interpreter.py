from __future__ import annotations

import json
import logging
from datetime import date
from typing import Any, Callable, TypeVar

from groq import Groq
from pydantic import BaseModel

from ..nlu.base import Interpreter
from ..nlu.keywords import KeywordInterpreter
from ..nlu.models import (
    AnswerAnalysis,
    Classification,
    DateResolution,
    DBNormalization,
    ExtractedSlots,
    SlotValidation,
)
from . import prompts
from .config import DEFAULT_LLM_CONFIG, LLMConfig

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


def _drop_nulls(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


class GroqInterpreter:
    """Interpreter backed by the Groq chat completions API in JSON mode.

    Every call falls back to ``fallback`` when the LLM is disabled, times out,
    errors, or returns JSON that does not fit the expected shape.
    """

    def __init__(
        self,
        config: LLMConfig = DEFAULT_LLM_CONFIG,
        fallback: Interpreter | None = None,
    ):
        self.config = config
        self.fallback = fallback or KeywordInterpreter()

    def _complete(
        self,
        system_prompt: str,
        user_message: str,
        model: type[T],
        fallback: Callable[[], T],
        prepare: Callable[[dict[str, Any]], dict[str, Any]] = _drop_nulls,
    ) -> T:
        if not self.config.enabled or not self.config.api_key:
            return fallback()

        try:
            client = Groq(api_key=self.config.api_key, timeout=self.config.timeout)
            response = client.chat.completions.create(
                model=self.config.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_message},
                ],
                max_tokens=self.config.max_tokens,
                temperature=self.config.temperature,
                response_format={"type": "json_object"},
            )

            content = response.choices[0].message.content or ""
            parsed = json.loads(content)
            return model.model_validate(prepare(parsed))

        except Exception:
            logger.warning(
                "Groq %s call failed, falling back to keyword interpretation",
                model.__name__,
                exc_info=True,
            )
            return fallback()

    def extract_slots(
        self,
        text: str,
        current: dict[str, Any] | None = None,
        areas: list[str] | None = None,
        cuisines: list[str] | None = None,
        question: str | None = None,
        question_type: str | None = None,
    ) -> ExtractedSlots:
        return self._complete(
            prompts.EXTRACT_SLOTS_PROMPT,
            prompts.extract_slots_message(text, current, areas, cuisines, question, question_type),
            ExtractedSlots,
            lambda: self.fallback.extract_slots(text, current, areas, cuisines, question, question_type),
        )

    def classify_and_extract(self, text: str, today: date | None = None) -> Classification:
        today = today or date.today()
        return self._complete(
            prompts.CLASSIFY_PROMPT,
            prompts.classify_message(text, today),
            Classification,
            lambda: self.fallback.classify_and_extract(text, today=today),
        )

    def validate_slot(
        self,
        slot: str,
        reply: str,
        choices: list[str] | None = None,
        today: date | None = None,
    ) -> SlotValidation:
        today = today or date.today()
        return self._complete(
            prompts.VALIDATE_SLOT_PROMPT,
            prompts.validate_slot_message(slot, reply, choices, today),
            SlotValidation,
            lambda: self.fallback.validate_slot(slot, reply, choices, today=today),
            prepare=lambda data: {**data, "slot": slot},
        )

    def normalize_to_db(
        self,
        raw_area: str | None,
        raw_cuisine: str | None,
        areas: list[str],
        cuisines: list[str],
    ) -> DBNormalization:
        result = self._complete(
            prompts.NORMALIZE_PROMPT,
            prompts.normalize_message(raw_area, raw_cuisine, areas, cuisines),
            DBNormalization,
            lambda: self.fallback.normalize_to_db(raw_area, raw_cuisine, areas, cuisines),
        )
        # Matches outside the supported lists are treated as no match
        if result.area_match.matched and result.area_match.matched not in areas:
            result.area_match.matched = None
            result.area_match.confidence = 0.0
        if result.cuisine_match.matched and result.cuisine_match.matched not in cuisines:
            result.cuisine_match.matched = None
            result.cuisine_match.confidence = 0.0
        return result

    def analyze_answer(
        self,
        question: str,
        answer: str,
        question_type: str,
        available: list[str] | None = None,
    ) -> AnswerAnalysis:
        return self._complete(
            prompts.ANALYZE_ANSWER_PROMPT,
            prompts.analyze_answer_message(question, answer, question_type, available),
            AnswerAnalysis,
            lambda: self.fallback.analyze_answer(question, answer, question_type, available),
        )

    def parse_date(self, text: str, today: date | None = None) -> DateResolution:
        today = today or date.today()
        return self._complete(
            prompts.PARSE_DATE_PROMPT,
            prompts.parse_date_message(text, today),
            DateResolution,
            lambda: self.fallback.parse_date(text, today=today),
        )


def get_interpreter(config: LLMConfig = DEFAULT_LLM_CONFIG) -> Interpreter:
    """Groq-backed interpreter when an API key is configured, keywords otherwise."""
    if config.enabled and config.api_key:
        return GroqInterpreter(config)
    logger.info("GROQ_API_KEY not set, using keyword interpretation")
    return KeywordInterpreter()
