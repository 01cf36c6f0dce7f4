from datetime import date

from butler.nlu.keywords import (
    KeywordInterpreter,
    budget_label,
    budget_range,
    detect_cuisines,
    detect_meal_time,
    detect_party_size,
    is_greeting_or_ack,
)
from butler.nlu.models import Budget, Intent, MealTime, Vibe

interpreter = KeywordInterpreter()
TODAY = date(2024, 1, 3)


# ── Greeting guard ───────────────────────────────────────────────────────


class TestGreetingGuard:
    def test_bare_greetings(self):
        assert is_greeting_or_ack("hi")
        assert is_greeting_or_ack("Hey there")
        assert is_greeting_or_ack("thanks!")

    def test_longer_messages_are_not_greetings(self):
        assert not is_greeting_or_ack("thanks so much")
        assert not is_greeting_or_ack("hi, italian in hamra")

    def test_digits_are_never_greetings(self):
        assert not is_greeting_or_ack("2")
        assert not is_greeting_or_ack("ok 2")

    def test_empty(self):
        assert not is_greeting_or_ack("")


# ── Budget mapping ───────────────────────────────────────────────────────


class TestBudgetMapping:
    def test_words(self):
        assert budget_range("something cheap") == 1
        assert budget_range("mid-range please") == 2
        assert budget_range("fancy") == 3
        assert budget_range("fine dining") == 4

    def test_dollar_signs(self):
        assert budget_range("$$") == 2
        assert budget_range("$$$$") == 4

    def test_dollar_ranges_use_lower_bound(self):
        assert budget_range("$50-80") == 1
        assert budget_range("150 to 250") == 2
        assert budget_range("$300-500") == 3
        assert budget_range("400+") == 4

    def test_single_amount_uses_the_same_tiers(self):
        assert budget_range("my budget is $300") == 3
        assert budget_range("about 150 dollars") == 2
        assert budget_range("$40 a head") == 1

    def test_budget_word_alone_is_not_cheap(self):
        assert budget_range("what's the budget") is None
        assert budget_range("we're on a budget") == 1

    def test_numerals_only_when_allowed(self):
        assert budget_range("3") is None
        assert budget_range("3", allow_numeral=True) == 3

    def test_unknown(self):
        assert budget_range("whatever works") is None

    def test_labels(self):
        assert budget_label(1) == "low"
        assert budget_label(4) == "luxury"


# ── Detectors ────────────────────────────────────────────────────────────


class TestDetectors:
    def test_meal_time_words(self):
        assert detect_meal_time("lunch with friends") == MealTime.lunch
        assert detect_meal_time("tonight") == MealTime.dinner

    def test_late_night_wins_over_dinner(self):
        assert detect_meal_time("late dinner") == MealTime.late_night

    def test_meal_time_from_clock(self):
        assert detect_meal_time("around 8am") == MealTime.breakfast
        assert detect_meal_time("at 7pm") == MealTime.dinner

    def test_party_size_needs_context(self):
        assert detect_party_size("table for 4") == 4
        assert detect_party_size("3 people") == 3
        assert detect_party_size("just me") == 1
        assert detect_party_size("4") is None
        assert detect_party_size("4", bare_number=True) == 4

    def test_party_size_ignores_clock_times(self):
        assert detect_party_size("at 8pm", bare_number=True) is None

    def test_dish_hints(self):
        cuisines = ["Italian", "Japanese", "Lebanese"]
        assert detect_cuisines("craving sushi", cuisines) == ["Japanese"]
        assert detect_cuisines("pizza or shawarma", cuisines) == ["Italian", "Lebanese"]


# ── Keyword interpreter ──────────────────────────────────────────────────


class TestKeywordInterpreter:
    def test_extract_full_request(self):
        result = interpreter.extract_slots("romantic italian tonight in Beirut, mid budget")
        assert result.area == "Beirut"
        assert result.craving_cuisines == ["Italian"]
        assert result.vibe == Vibe.romantic
        assert result.meal_time == MealTime.dinner
        assert result.budget == Budget.mid
        assert result.party_size is None
        assert result.confidence == 0.9

    def test_extract_dollar_amount_budget(self):
        assert interpreter.extract_slots("dinner in Hamra, my budget is $300").budget == Budget.high

    def test_extract_greeting_is_empty(self):
        result = interpreter.extract_slots("hello")
        assert result.is_empty()
        assert result.confidence == 0.0

    def test_short_reply_to_area_question_is_kept_raw(self):
        result = interpreter.extract_slots("Paris", question_type="area")
        assert result.area == "Paris"

    def test_classify_restaurant_request(self):
        result = interpreter.classify_and_extract("Lebanese food in Hamra tomorrow at 8pm", today=TODAY)
        assert result.intent == Intent.restaurant_request
        assert result.extracted.area.value == "Hamra"
        assert result.extracted.cuisine.value == "Lebanese"
        assert result.extracted.date.value == "2024-01-04"
        assert result.extracted.time.value == "20:00"

    def test_classify_unknown_cuisine_phrase(self):
        result = interpreter.classify_and_extract("korean food please")
        assert result.extracted.cuisine.value == "Korean"
        assert result.extracted.cuisine.confidence == 0.6

    def test_classify_greeting(self):
        assert interpreter.classify_and_extract("hey").intent == Intent.greeting_or_offtopic

    def test_validate_budget(self):
        result = interpreter.validate_slot("budget", "2")
        assert result.normalized == 2
        assert result.confidence > 0.3

    def test_validate_miss_has_low_confidence(self):
        result = interpreter.validate_slot("time", "whenever")
        assert result.normalized is None
        assert result.confidence <= 0.3

    def test_normalize_flags_unavailable(self):
        result = interpreter.normalize_to_db("Paris", "sushi", ["Hamra"], ["Japanese"])
        assert result.unavailable.area is True
        assert result.cuisine_match.matched == "Japanese"
        assert result.unavailable.cuisine is False

    def test_analyze_cross_type_answer_is_off_topic(self):
        result = interpreter.analyze_answer("Which area?", "sushi", "area")
        assert result.is_off_topic
        assert result.interpretation is None

    def test_analyze_budget_answer(self):
        result = interpreter.analyze_answer("Budget?", "expensive", "budget")
        assert result.interpretation == "high"
        assert result.confidence > 0.5


def test_iso_dates_are_not_budgets():
    assert budget_range("2030-05-01") is None
    assert budget_range("cheap on 2030-05-01") == 1
