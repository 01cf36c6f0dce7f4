from __future__ import annotations

import logging
import re
from datetime import date

from ..catalog.data_store import get_restaurant
from ..catalog.vocabulary import list_areas, list_cuisines
from ..nlu.base import Interpreter
from ..nlu.dates import parse_booking_party_size, parse_booking_time, parse_relative_date
from ..nlu.models import SlotType
from ..recommendations.engine import recommend
from ..recommendations.models import Recommendations
from . import replies
from .bookings import create_booking, learn_from_booking
from .commands import Command, CommandKind, parse_command
from .discovery import Question, next_question, question_for
from .extraction import ExtractionResult, extract, merge_slots
from .models import (
    Action,
    BookingDraft,
    DecisionTrace,
    DialogueState,
    Flow,
    Message,
    Role,
    Session,
    TurnResult,
)

logger = logging.getLogger(__name__)

MAX_PREVIOUS_TOP_PICKS = 3

_REFINE_TARGETS: dict[str, SlotType] = {
    "area": SlotType.area,
    "location": SlotType.area,
    "neighborhood": SlotType.area,
    "neighbourhood": SlotType.area,
    "budget": SlotType.budget,
    "price": SlotType.budget,
    "cuisine": SlotType.cuisine,
    "food": SlotType.cuisine,
}
_REFINE_FILLERS = {"change", "the", "my", "a", "different", "another", "new", "other", "please", "i", "want"}
_REFINE_FIELDS = ("area", "budget", "craving_cuisines", "vibe")
_NO_NOTES = {"", "no", "n", "none", "nope", "nothing"}

Reply = tuple[str, Recommendations | None]


def welcome_message(session: Session) -> str:
    """Greeting for the chat window, welcoming back diners with history."""
    return replies.welcome_message(bool(session.messages or session.bookings))


class DialogueController:
    """State-machine dialogue: discover slots, recommend, then book.

    The controller is stateless; every turn takes a session and returns an
    updated copy inside a :class:`TurnResult`.
    """

    def __init__(self, interpreter: Interpreter, today: date | None = None):
        self.interpreter = interpreter
        self.today = today

    def handle_turn(self, session: Session, text: str) -> TurnResult:
        text = text or ""
        working = session.model_copy(deep=True)
        trace = DecisionTrace(flow=Flow.dialogue, state_before=working.state.value)

        try:
            reply, recs = self._dispatch(working, text.strip(), trace)
        except Exception:
            logger.exception("Dialogue turn failed in state %s", session.state.value)
            # Drop partial changes and keep only the history
            working = session.model_copy(deep=True)
            reply, recs = replies.APOLOGY, None
            trace.action = Action.error

        if working.state.value != trace.state_before:
            logger.info("Dialogue state %s -> %s", trace.state_before, working.state.value)
        trace.state_after = working.state.value
        working.trace = trace
        working.messages.append(Message(role=Role.user, text=text))
        working.messages.append(Message(role=Role.assistant, text=reply))
        return TurnResult(session=working, reply=reply, trace=trace, recommendations=recs)

    # ── Dispatch ────────────────────────────────────────────────────────────

    def _dispatch(self, session: Session, text: str, trace: DecisionTrace) -> Reply:
        command = parse_command(text)
        if command.kind != CommandKind.none:
            trace.command = command.kind.value

        if command.kind == CommandKind.reset:
            return self._reset(session, trace)
        if command.kind == CommandKind.profile:
            trace.action = Action.profile
            return replies.format_profile(session.profile), None

        state = session.state
        if state == DialogueState.RECOMMEND:
            return self._on_recommend(session, text, command, trace)
        if state == DialogueState.REFINE:
            return self._on_refine(session, text, trace)
        if state == DialogueState.BOOKING_COLLECT:
            return self._on_booking_collect(session, text, command, trace)
        if state == DialogueState.BOOKING_CONFIRM:
            return self._on_booking_confirm(session, command, trace)
        return self._on_discovery(session, text, trace)

    def _reset(self, session: Session, trace: DecisionTrace) -> Reply:
        fresh = Session(messages=session.messages, profile=session.profile, bookings=session.bookings)
        for field in Session.model_fields:
            setattr(session, field, getattr(fresh, field))
        session.state = DialogueState.DISCOVERY
        trace.action = Action.reset
        return replies.RESET_REPLY, None

    # ── Discovery ───────────────────────────────────────────────────────────

    def _on_discovery(self, session: Session, text: str, trace: DecisionTrace) -> Reply:
        if (
            session.state == DialogueState.DISCOVERY
            and session.slots.is_complete()
            and session.last_question_type is None
        ):
            return self._recommend(session, trace)

        scoped = session.state == DialogueState.DISCOVERY
        expected = session.last_question_type if scoped else None
        result = extract(
            text,
            session.slots,
            self.interpreter,
            last_question=session.last_question if scoped else None,
            expected_type=expected,
        )
        self._record(trace, result)

        update = dict(result.slots)
        if expected == SlotType.dietary and "dietary" not in update and not result.unavailable:
            # Anything that is not a dietary tag answers "none"
            update["dietary"] = []
        session.slots = merge_slots(session.slots, update)

        if result.unavailable:
            return self._reprompt_unavailable(session, result, trace)
        return self._advance(session, trace)

    def _advance(self, session: Session, trace: DecisionTrace) -> Reply:
        if session.slots.is_complete():
            return self._recommend(session, trace)
        question = next_question(session.slots, session.profile)
        if question is None:
            question = Question(text=replies.FALLBACK_QUESTION, slot_type=SlotType.cuisine)
        return self._ask(session, question, trace), None

    def _ask(self, session: Session, question: Question, trace: DecisionTrace, action: Action = Action.ask) -> str:
        session.state = DialogueState.DISCOVERY
        session.last_question = question.text
        session.last_question_type = question.slot_type
        trace.action = action
        trace.reasons = [f"missing {question.slot_type.value}"]
        return question.text

    def _reprompt_unavailable(self, session: Session, result: ExtractionResult, trace: DecisionTrace) -> Reply:
        if "area" in result.unavailable:
            slot_type = SlotType.area
            reply = replies.unavailable_area_reply(result.unavailable["area"], list_areas()[:3])
        else:
            slot_type = SlotType.cuisine
            reply = replies.unavailable_cuisine_reply(result.unavailable["cuisine"], list_cuisines()[:3])
        self._ask(session, question_for(slot_type), trace, action=Action.reprompt)
        return reply, None

    @staticmethod
    def _record(trace: DecisionTrace, result: ExtractionResult) -> None:
        trace.extracted = result.model_dump(mode="json")["slots"]
        trace.rejected = list(result.rejected)
        trace.unavailable = dict(result.unavailable)
        if result.answered is not None:
            trace.intent = "slot_answer"

    # ── Recommendations ─────────────────────────────────────────────────────

    def _recommend(self, session: Session, trace: DecisionTrace) -> Reply:
        recs = recommend(session.slots, session.profile)
        session.previous_top_pick_ids = [recs.top.restaurant.id]
        return self._show(session, recs, trace), recs

    def _show(self, session: Session, recs: Recommendations, trace: DecisionTrace, prefix: str = "") -> str:
        session.recommendations = recs
        session.state = DialogueState.RECOMMEND
        session.last_question = None
        session.last_question_type = None
        trace.action = Action.recommend
        trace.reasons = list(recs.top.reasons)
        return prefix + replies.format_recommendations(recs, session.slots) + "\n" + replies.OPTIONS_HELP

    def _on_recommend(self, session: Session, text: str, command: Command, trace: DecisionTrace) -> Reply:
        recs = session.recommendations

        if command.kind in (CommandKind.select, CommandKind.book) and recs is not None:
            restaurant = recs.pick(command.option)
            if restaurant is None:
                trace.action = Action.help
                return f"I only showed {len(recs.items())} options. {replies.OPTIONS_HELP}", None
            if not restaurant.booking_available:
                session.state = DialogueState.DISCOVERY
                session.last_question = None
                session.last_question_type = None
                trace.action = Action.walk_in
                return replies.walk_in_reply(restaurant), None
            if command.kind == CommandKind.select:
                trace.action = Action.select
                return replies.selection_reply(restaurant, command.option), None

            session.booking_draft = BookingDraft(restaurant_id=restaurant.id)
            session.state = DialogueState.BOOKING_COLLECT
            trace.action = Action.start_booking
            return f"Great! Let's book {restaurant.name}. {replies.BOOKING_DATE_QUESTION}", None

        if command.kind == CommandKind.more:
            previous = session.previous_top_pick_ids[-MAX_PREVIOUS_TOP_PICKS:]
            fresh = recommend(session.slots, session.profile, previous)
            if fresh.top.restaurant.id in previous:
                session.state = DialogueState.REFINE
                trace.action = Action.refine
                return replies.REFINE_STUCK, None
            session.previous_top_pick_ids.append(fresh.top.restaurant.id)
            return self._show(session, fresh, trace, prefix="Here are some other options:\n\n"), fresh

        if command.kind == CommandKind.reject:
            session.state = DialogueState.REFINE
            trace.action = Action.refine
            return replies.REFINE_REJECT, None

        question = next_question(session.slots, session.profile, include_optional=True)
        if question is not None:
            return self._ask(session, question, trace), None
        trace.action = Action.help
        return replies.OPTIONS_HELP, None

    # ── Refinement ──────────────────────────────────────────────────────────

    def _on_refine(self, session: Session, text: str, trace: DecisionTrace) -> Reply:
        words = [w for w in re.findall(r"[a-z]+", text.lower()) if w not in _REFINE_FILLERS]
        if len(words) == 1 and words[0] in _REFINE_TARGETS:
            slot_type = _REFINE_TARGETS[words[0]]
            if slot_type == SlotType.area:
                session.slots.area = None
            elif slot_type == SlotType.budget:
                session.slots.budget = None
            else:
                session.slots.craving_cuisines = []
            return self._ask(session, question_for(slot_type), trace, action=Action.refine), None

        result = extract(text, session.slots, self.interpreter)
        self._record(trace, result)
        update = {k: v for k, v in result.slots.items() if k in _REFINE_FIELDS}

        if result.unavailable:
            session.slots = merge_slots(session.slots, update, overwrite=True)
            return self._reprompt_unavailable(session, result, trace)
        if not update:
            trace.action = Action.help
            return replies.REFINE_HELP, None

        session.slots = merge_slots(session.slots, update, overwrite=True)
        return self._advance(session, trace)

    # ── Booking ─────────────────────────────────────────────────────────────

    def _on_booking_collect(self, session: Session, text: str, command: Command, trace: DecisionTrace) -> Reply:
        draft = session.booking_draft
        if draft is None:
            return self._advance(session, trace)

        # A bare number answers the time or party size question
        awaiting_number = draft.date is not None and (draft.time is None or draft.party_size is None)
        if command.kind == CommandKind.book or (command.kind == CommandKind.select and not awaiting_number):
            trace.action = Action.reprompt
            return replies.BOOKING_IN_PROGRESS, None
        if command.kind == CommandKind.cancel:
            session.booking_draft = None
            session.state = DialogueState.DISCOVERY
            session.last_question = None
            session.last_question_type = None
            trace.action = Action.cancel_booking
            return replies.BOOKING_CANCELLED, None

        trace.action = Action.collect_booking
        if draft.date is None:
            if not text:
                return replies.BOOKING_DATE_QUESTION, None
            draft.date = parse_relative_date(text, self.interpreter, self.today)
            return replies.BOOKING_TIME_QUESTION, None

        if draft.time is None:
            if not text:
                return replies.BOOKING_TIME_QUESTION, None
            draft.time = parse_booking_time(text)
            if draft.party_size is None and session.slots.party_size:
                draft.party_size = session.slots.party_size
            if draft.party_size is None:
                return replies.BOOKING_PARTY_QUESTION, None
            return replies.BOOKING_NOTES_QUESTION, None

        if draft.party_size is None:
            draft.party_size = parse_booking_party_size(text, session.slots.party_size)
            return replies.BOOKING_NOTES_QUESTION, None

        draft.notes = "" if text.lower() in _NO_NOTES else text
        session.state = DialogueState.BOOKING_CONFIRM
        trace.action = Action.confirm_booking
        return replies.booking_summary(draft, get_restaurant(draft.restaurant_id)), None

    def _on_booking_confirm(self, session: Session, command: Command, trace: DecisionTrace) -> Reply:
        draft = session.booking_draft
        if draft is None:
            return self._advance(session, trace)

        if command.kind == CommandKind.confirm:
            restaurant = get_restaurant(draft.restaurant_id)
            if restaurant is None:
                raise LookupError(f"Unknown restaurant {draft.restaurant_id!r} in booking draft")
            booking = create_booking(restaurant, draft.date, draft.time, draft.party_size, draft.notes)
            session.bookings.append(booking)
            session.profile = learn_from_booking(session.profile, restaurant)
            session.booking_draft = None
            session.state = DialogueState.DISCOVERY
            session.last_question = None
            session.last_question_type = None
            trace.action = Action.booking_saved
            return replies.booking_confirmed(booking), None

        if command.kind == CommandKind.change:
            draft.date = None
            draft.time = None
            draft.notes = None
            session.state = DialogueState.BOOKING_COLLECT
            trace.action = Action.collect_booking
            return replies.BOOKING_CHANGE, None

        trace.action = Action.reprompt
        return replies.BOOKING_CONFIRM_HELP, None
