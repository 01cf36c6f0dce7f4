from butler.chat.extraction import extract, merge_slots
from butler.chat.models import Slots
from butler.nlu.keywords import KeywordInterpreter
from butler.nlu.models import Budget, ExtractedSlots, MealTime, SlotType, Vibe

interpreter = KeywordInterpreter()


class OverEagerInterpreter(KeywordInterpreter):
    """Claims values the message never states."""

    def extract_slots(self, text, current=None, areas=None, cuisines=None, question=None, question_type=None):
        return ExtractedSlots(
            area="Hamra",
            craving_cuisines=["Italian"],
            meal_time=MealTime.dinner,
            party_size=4,
            confidence=0.9,
        )


class TestExtract:
    def test_full_request(self):
        result = extract("romantic italian tonight in Beirut, mid budget", Slots(), interpreter)
        assert result.slots == {
            "area": "Beirut",
            "meal_time": MealTime.dinner,
            "budget": Budget.mid,
            "craving_cuisines": ["Italian"],
            "vibe": Vibe.romantic,
        }
        assert result.rejected == []

    def test_greeting_extracts_nothing(self):
        result = extract("hi there", Slots(), interpreter)
        assert result.slots == {}
        assert result.confidence == 0.0

    def test_answer_to_pending_question(self):
        result = extract("3", Slots(area="Hamra"), interpreter, "What's your budget?", SlotType.budget)
        assert result.slots == {"budget": Budget.high}
        assert result.answered == SlotType.budget

    def test_unsupported_values_are_rejected(self):
        result = extract("Hamra please", Slots(), OverEagerInterpreter())
        assert result.slots == {"area": "Hamra"}
        assert set(result.rejected) == {"craving_cuisines", "meal_time", "party_size"}

    def test_expected_slot_is_not_rejected(self):
        result = extract(
            "Hamra please",
            Slots(),
            OverEagerInterpreter(),
            "What type of cuisine?",
            SlotType.cuisine,
        )
        assert result.slots["craving_cuisines"] == ["Italian"]

    def test_unknown_area_is_unavailable(self):
        result = extract("Paris", Slots(), interpreter, "What area?", SlotType.area)
        assert result.unavailable == {"area": "Paris"}
        assert "area" not in result.slots

    def test_dish_resolves_to_cuisine(self):
        result = extract("craving some sushi tonight please", Slots(), interpreter)
        assert result.slots["craving_cuisines"] == ["Japanese"]


class TestMergeSlots:
    def test_scalars_are_kept(self):
        merged = merge_slots(Slots(area="Hamra"), {"area": "Gemmayze", "party_size": 2})
        assert merged.area == "Hamra"
        assert merged.party_size == 2

    def test_overwrite_replaces_scalars(self):
        merged = merge_slots(Slots(area="Hamra"), {"area": "Gemmayze"}, overwrite=True)
        assert merged.area == "Gemmayze"

    def test_lists_are_unioned(self):
        merged = merge_slots(Slots(craving_cuisines=["Italian"]), {"craving_cuisines": ["Italian", "French"]})
        assert merged.craving_cuisines == ["Italian", "French"]

    def test_overwrite_replaces_cuisines(self):
        merged = merge_slots(Slots(craving_cuisines=["Italian"]), {"craving_cuisines": ["French"]}, overwrite=True)
        assert merged.craving_cuisines == ["French"]

    def test_does_not_mutate_input(self):
        current = Slots()
        merge_slots(current, {"area": "Hamra"})
        assert current.area is None
