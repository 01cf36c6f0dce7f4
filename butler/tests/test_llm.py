import json
from datetime import date
from unittest.mock import MagicMock, patch

from butler.llm.config import LLMConfig
from butler.llm.groq_interpreter import GroqInterpreter, get_interpreter
from butler.nlu.keywords import KeywordInterpreter
from butler.nlu.models import Budget, Intent, MealTime

ENABLED_CONFIG = LLMConfig(api_key="test-key", enabled=True)
DISABLED_CONFIG = LLMConfig(api_key="test-key", enabled=False)
TODAY = date(2024, 1, 3)

AREAS = ["Hamra", "Gemmayze", "Beirut"]
CUISINES = ["Italian", "Lebanese", "Japanese"]


def _mock_groq_response(content: str) -> MagicMock:
    message = MagicMock()
    message.content = content
    choice = MagicMock()
    choice.message = message
    response = MagicMock()
    response.choices = [choice]
    return response


@patch("butler.llm.groq_interpreter.Groq")
def test_extract_slots_uses_llm_output(mock_groq_cls):
    llm_response = json.dumps({
        "area": "Hamra",
        "meal_time": "dinner",
        "party_size": 3,
        "budget": "cheap",
        "craving_cuisines": ["Lebanese"],
        "vibe": None,
        "dietary": [],
        "confidence": 0.85,
    })
    mock_groq_cls.return_value.chat.completions.create.return_value = _mock_groq_response(llm_response)

    result = GroqInterpreter(ENABLED_CONFIG).extract_slots("dinner for three, cheap lebanese in hamra")

    assert result.area == "Hamra"
    assert result.meal_time == MealTime.dinner
    assert result.party_size == 3
    assert result.budget == Budget.cheap
    assert result.confidence == 0.85
    kwargs = mock_groq_cls.return_value.chat.completions.create.call_args.kwargs
    assert kwargs["response_format"] == {"type": "json_object"}


@patch("butler.llm.groq_interpreter.Groq")
def test_fallback_on_api_error(mock_groq_cls):
    mock_groq_cls.return_value.chat.completions.create.side_effect = Exception("API timeout")

    result = GroqInterpreter(ENABLED_CONFIG).extract_slots("cheap lebanese in Hamra", areas=AREAS, cuisines=CUISINES)

    assert result == KeywordInterpreter().extract_slots("cheap lebanese in Hamra", areas=AREAS, cuisines=CUISINES)


@patch("butler.llm.groq_interpreter.Groq")
def test_fallback_on_bad_json(mock_groq_cls):
    mock_groq_cls.return_value.chat.completions.create.return_value = _mock_groq_response("not valid json{{{")

    result = GroqInterpreter(ENABLED_CONFIG).parse_date("tomorrow", today=TODAY)

    assert result.date == "2024-01-04"


@patch("butler.llm.groq_interpreter.Groq")
def test_fallback_on_wrong_shape(mock_groq_cls):
    llm_response = json.dumps({"intent": "ordering_pizza", "extracted": {}})
    mock_groq_cls.return_value.chat.completions.create.return_value = _mock_groq_response(llm_response)

    result = GroqInterpreter(ENABLED_CONFIG).classify_and_extract("hey", today=TODAY)

    assert result.intent == Intent.greeting_or_offtopic


@patch("butler.llm.groq_interpreter.Groq")
def test_disabled_never_calls_groq(mock_groq_cls):
    result = GroqInterpreter(DISABLED_CONFIG).validate_slot("budget", "fancy")

    mock_groq_cls.assert_not_called()
    assert result.normalized == 3


@patch("butler.llm.groq_interpreter.Groq")
def test_validate_slot_keeps_requested_slot(mock_groq_cls):
    llm_response = json.dumps({"slot": "time", "value": "half seven", "normalized": "19:30", "confidence": 0.8})
    mock_groq_cls.return_value.chat.completions.create.return_value = _mock_groq_response(llm_response)

    result = GroqInterpreter(ENABLED_CONFIG).validate_slot("time", "half seven", today=TODAY)

    assert result.slot == "time"
    assert result.normalized == "19:30"


@patch("butler.llm.groq_interpreter.Groq")
def test_normalize_drops_matches_outside_catalog(mock_groq_cls):
    llm_response = json.dumps({
        "area_match": {"input": "Ras Beirut", "matched": "Ras Beirut", "confidence": 0.9},
        "cuisine_match": {"input": "pasta", "matched": "Italian", "confidence": 0.9},
        "unavailable": {"area": False, "cuisine": False},
    })
    mock_groq_cls.return_value.chat.completions.create.return_value = _mock_groq_response(llm_response)

    result = GroqInterpreter(ENABLED_CONFIG).normalize_to_db("Ras Beirut", "pasta", AREAS, CUISINES)

    assert result.area_match.matched is None
    assert result.area_match.confidence == 0.0
    assert result.cuisine_match.matched == "Italian"


@patch("butler.llm.groq_interpreter.Groq")
def test_analyze_answer(mock_groq_cls):
    llm_response = json.dumps({
        "interpretation": None,
        "confidence": 0.2,
        "is_off_topic": True,
        "off_topic_confidence": 0.9,
        "message": "That sounds like a cuisine, not an area.",
    })
    mock_groq_cls.return_value.chat.completions.create.return_value = _mock_groq_response(llm_response)

    result = GroqInterpreter(ENABLED_CONFIG).analyze_answer("Which area?", "sushi", "area", AREAS)

    assert result.is_off_topic
    assert result.interpretation is None


def test_get_interpreter_without_key():
    assert isinstance(get_interpreter(LLMConfig(api_key="")), KeywordInterpreter)


def test_get_interpreter_with_key():
    assert isinstance(get_interpreter(ENABLED_CONFIG), GroqInterpreter)
