from datetime import date

from butler.chat import replies
from butler.chat.express import ExpressController
from butler.chat.models import Action, RequestMode, Session
from butler.nlu.keywords import KeywordInterpreter
from butler.nlu.models import ExpressSlot

TODAY = date(2024, 1, 3)

controller = ExpressController(KeywordInterpreter(), today=TODAY)


def _run(*messages, session=None):
    session = session or Session()
    result = None
    for text in messages:
        result = controller.handle_turn(session, text)
        session = result.session
    return result


HAMRA = ("Lebanese food in Hamra", "cheap", "tomorrow", "8pm", "2")
MARINA = ("Japanese in Dubai Marina", "high", "tomorrow", "19:30", "4")


class TestCollecting:
    def test_greeting(self):
        result = _run("hello")
        assert result.reply == f"{replies.GREETING_REPLY} Which area do you want to eat in?"
        assert result.session.pending_slot == ExpressSlot.area
        assert result.trace.action == Action.greet

    def test_asks_slots_in_order(self):
        result = _run(HAMRA[0])
        request = result.session.active_request
        assert (request.area, request.cuisine) == ("Hamra", "Lebanese")
        assert result.reply == "What budget are we aiming for?"
        assert result.session.pending_slot == ExpressSlot.budget

        result = _run(*HAMRA[:2])
        assert result.session.active_request.budget.range == 1
        assert result.session.active_request.budget.label == "low"
        assert result.reply == "Which day?"

        result = _run(*HAMRA[:4])
        assert result.session.active_request.date == "2024-01-04"
        assert result.session.active_request.time == "20:00"
        assert result.reply == "How many people?"

    def test_complete_request_recommends(self):
        result = _run(*HAMRA)
        assert result.session.mode == RequestMode.recommending
        assert result.session.active_request.party_size == 2
        assert result.recommendations.ids() == ["b4", "b12", "b8"]
        assert result.reply.startswith("Top pick:\n1) Beit Zaatar (Hamra)")

    def test_filled_slots_are_not_overwritten(self):
        result = _run("dinner in Hamra")
        assert result.session.pending_slot == ExpressSlot.cuisine

        result = _run("italian like the place in Gemmayze", session=result.session)
        request = result.session.active_request
        assert (request.area, request.cuisine) == ("Hamra", "Italian")

    def test_continue_allows_changing_filled_slots(self):
        result = _run(*HAMRA, "continue", "actually Gemmayze")
        assert result.session.active_request.area == "Gemmayze"

    def test_unknown_cuisine_reprompts(self):
        result = _run("korean food in Hamra")
        assert result.reply.startswith("I don't have Korean spots in my list yet.")
        assert result.session.pending_slot == ExpressSlot.cuisine
        assert result.session.active_request.area == "Hamra"
        assert result.session.active_request.cuisine is None

    def test_unknown_area_reprompts(self):
        result = _run("hello", "Paris")
        assert result.reply.startswith("I don't have Paris in my list yet.")
        assert result.session.pending_slot == ExpressSlot.area


class TestRecommending:
    def test_walk_in_pick_returns_to_collecting(self):
        result = _run(*HAMRA, "1")
        assert result.session.mode == RequestMode.collecting
        assert result.session.selected_restaurant_id is None
        assert "ZAATAR15" in result.reply
        assert result.trace.action == Action.walk_in

    def test_continue_keeps_slots(self):
        result = _run(*HAMRA, "continue")
        assert result.session.mode == RequestMode.collecting
        assert result.session.active_request.area == "Hamra"
        assert result.reply == replies.EXPRESS_CONTINUE

    def test_new_details_rerun_recommendations(self):
        result = _run(*HAMRA, "Indian instead")
        assert result.session.active_request.cuisine == "Indian"
        assert result.recommendations.top.restaurant.name == "Spice Route"


class TestConfirming:
    def test_pick_confirms_and_books(self):
        result = _run(*MARINA, "1")
        assert result.session.mode == RequestMode.confirming
        assert result.session.selected_restaurant_id == "d1"
        assert "Marina Sushi Bar" in result.reply

        result = _run("", session=result.session)
        assert result.reply == replies.NOTES_PROMPT
        assert result.session.mode == RequestMode.confirming

        result = _run("window seat please", session=result.session)
        session = result.session
        assert session.mode == RequestMode.collecting
        assert session.pending_slot == ExpressSlot.area
        assert session.active_request.area is None
        assert len(session.bookings) == 1
        booking = session.bookings[0]
        assert (booking.date, booking.time, booking.party_size) == ("2024-01-04", "19:30", 4)
        assert booking.notes == "window seat please"
        assert booking.confirmation_id in result.reply
        assert session.profile.cuisines_liked == {"Japanese": 1}
        assert session.profile.last_area == "Dubai Marina"

    def test_skip_notes(self):
        result = _run(*MARINA, "1", "Skip")
        assert result.session.bookings[0].notes is None

    def test_commands_are_rejected_while_confirming(self):
        result = _run(*MARINA, "1", "book 2")
        assert result.reply == replies.NOTES_PROMPT
        assert result.session.bookings == []


def test_reset_from_any_mode():
    result = _run(*MARINA, "1", "reset")
    session = result.session
    assert result.reply == replies.EXPRESS_RESET_REPLY
    assert session.mode == RequestMode.collecting
    assert session.pending_slot == ExpressSlot.area
    assert session.active_request.area is None
    assert session.selected_restaurant_id is None
