from butler.chat.discovery import QUESTIONS, next_express_question, next_question
from butler.chat.models import ActiveRequest, BudgetRange, Profile, Slots
from butler.nlu.models import Budget, ExpressSlot, MealTime, SlotType, Vibe

COMPLETE = Slots(area="Hamra", party_size=2, budget=Budget.cheap, meal_time=MealTime.lunch)


class TestNextQuestion:
    def test_area_first(self):
        question = next_question(Slots())
        assert question.slot_type == SlotType.area
        assert question.text == QUESTIONS[SlotType.area]

    def test_priority_order(self):
        slots = Slots(area="Hamra")
        assert next_question(slots).slot_type == SlotType.meal_time

        slots = Slots(area="Hamra", meal_time=MealTime.dinner)
        assert next_question(slots).slot_type == SlotType.party_size

        slots = Slots(area="Hamra", meal_time=MealTime.dinner, party_size=2)
        assert next_question(slots).slot_type == SlotType.budget

    def test_complete_slots_have_no_question(self):
        assert COMPLETE.is_complete()
        assert next_question(COMPLETE) is None

    def test_vibe_satisfies_completion(self):
        slots = Slots(area="Hamra", party_size=2, budget=Budget.mid, vibe=Vibe.quiet)
        assert slots.is_complete()

    def test_completion_agrees_with_discovery(self):
        cases = [
            Slots(),
            Slots(area="Hamra", party_size=2),
            Slots(area="Hamra", party_size=2, budget=Budget.mid),
            COMPLETE,
        ]
        for slots in cases:
            assert (next_question(slots) is None) == slots.is_complete()

    def test_optional_slots_after_completion(self):
        question = next_question(COMPLETE, include_optional=True)
        assert question.slot_type == SlotType.cuisine

        slots = COMPLETE.model_copy(update={"craving_cuisines": ["Lebanese"]})
        assert next_question(slots, include_optional=True).slot_type == SlotType.dietary

        slots = slots.model_copy(update={"dietary": []})
        assert next_question(slots, include_optional=True) is None

    def test_last_area_hint(self):
        question = next_question(Slots(), Profile(last_area="Gemmayze"))
        assert question.text.endswith("Last time you booked in Gemmayze.")


class TestExpressQuestions:
    def test_order(self):
        request = ActiveRequest()
        expected = [
            ("area", "Hamra"),
            ("cuisine", "Lebanese"),
            ("budget", BudgetRange(range=1, label="low")),
            ("date", "2024-01-04"),
            ("time", "20:00"),
            ("party_size", 2),
        ]
        for field, value in expected:
            assert next_express_question(request).slot == ExpressSlot(field)
            request = request.model_copy(update={field: value})
        assert next_express_question(request) is None
        assert request.is_complete()
