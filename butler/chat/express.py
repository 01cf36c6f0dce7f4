from __future__ import annotations

import logging
from datetime import date
from typing import Any

from ..catalog.data_store import get_restaurant
from ..catalog.vocabulary import list_areas, list_cuisines, match_value
from ..nlu.base import Interpreter
from ..nlu.keywords import budget_label, is_greeting_or_ack
from ..nlu.models import Classification, ExpressSlot, Intent
from ..recommendations.engine import recommend_express
from ..recommendations.models import Recommendations
from . import replies
from .bookings import create_booking, learn_from_booking
from .commands import Command, CommandKind, parse_command
from .discovery import next_express_question
from .models import (
    Action,
    ActiveRequest,
    BudgetRange,
    DecisionTrace,
    Flow,
    Message,
    RequestMode,
    Role,
    Session,
    TurnResult,
)

logger = logging.getLogger(__name__)

VALIDATION_CONFIDENCE_CUTOFF = 0.3
MERGE_CONFIDENCE_CUTOFF = 0.5
SHORT_REPLY_TOKENS = 3
EXPRESS_OPTIONS_HELP = "Reply 1/2/3 to pick, or 'continue' to change something."

Reply = tuple[str, Recommendations | None]


class ExpressController:
    """Mode-driven flow that collects a full booking request up front.

    Asks for area, cuisine, budget, date, time and party size in that order,
    recommends once all are known, then books the chosen restaurant.
    """

    def __init__(self, interpreter: Interpreter, today: date | None = None):
        self.interpreter = interpreter
        self.today = today

    def handle_turn(self, session: Session, text: str) -> TurnResult:
        text = text or ""
        working = session.model_copy(deep=True)
        trace = DecisionTrace(flow=Flow.express, state_before=working.mode.value)

        try:
            reply, recs = self._dispatch(working, text.strip(), trace)
        except Exception:
            logger.exception("Express turn failed in mode %s", session.mode.value)
            working = session.model_copy(deep=True)
            reply, recs = replies.APOLOGY, None
            trace.action = Action.error

        if working.mode.value != trace.state_before:
            logger.info("Express mode %s -> %s", trace.state_before, working.mode.value)
        trace.state_after = working.mode.value
        working.trace = trace
        working.messages.append(Message(role=Role.user, text=text))
        working.messages.append(Message(role=Role.assistant, text=reply))
        return TurnResult(session=working, reply=reply, trace=trace, recommendations=recs)

    def _dispatch(self, session: Session, text: str, trace: DecisionTrace) -> Reply:
        command = parse_command(text)
        if command.kind != CommandKind.none:
            trace.command = command.kind.value

        if command.kind == CommandKind.reset:
            self._start_over(session)
            trace.action = Action.reset
            return replies.EXPRESS_RESET_REPLY, None
        if command.kind == CommandKind.profile:
            trace.action = Action.profile
            return replies.format_profile(session.profile), None

        if session.mode == RequestMode.confirming:
            return self._on_confirming(session, text, command, trace)
        if session.mode == RequestMode.recommending:
            reply = self._on_recommending(session, command, trace)
            if reply is not None:
                return reply
            # Anything else is a change to the request
            session.mode = RequestMode.collecting
            return self._on_collecting(session, text, trace, changing=True)
        return self._on_collecting(session, text, trace)

    @staticmethod
    def _start_over(session: Session) -> None:
        session.active_request = ActiveRequest()
        session.mode = RequestMode.collecting
        session.pending_slot = ExpressSlot.area
        session.selected_restaurant_id = None
        session.express_recommendations = None

    # ── Recommending ────────────────────────────────────────────────────────

    def _on_recommending(self, session: Session, command: Command, trace: DecisionTrace) -> Reply | None:
        if command.kind == CommandKind.continue_chat:
            session.mode = RequestMode.collecting
            session.pending_slot = None
            trace.action = Action.ask
            return replies.EXPRESS_CONTINUE, None

        recs = session.express_recommendations
        if command.kind not in (CommandKind.select, CommandKind.book) or recs is None:
            return None

        restaurant = recs.pick(command.option)
        if restaurant is None:
            trace.action = Action.help
            return f"I only showed {len(recs.items())} options. {EXPRESS_OPTIONS_HELP}", None

        if not restaurant.booking_available:
            session.mode = RequestMode.collecting
            session.selected_restaurant_id = None
            session.pending_slot = None
            trace.action = Action.walk_in
            return replies.walk_in_reply(restaurant), None

        request = session.active_request
        session.selected_restaurant_id = restaurant.id
        session.mode = RequestMode.confirming
        session.pending_slot = ExpressSlot.notes
        trace.action = Action.select
        return replies.express_confirm_prompt(restaurant, request.party_size, request.date, request.time), None

    # ── Confirming ──────────────────────────────────────────────────────────

    def _on_confirming(self, session: Session, text: str, command: Command, trace: DecisionTrace) -> Reply:
        skip = command.kind in (CommandKind.skip, CommandKind.change)
        if not text or (command.kind != CommandKind.none and not skip):
            trace.action = Action.reprompt
            return replies.NOTES_PROMPT, None

        restaurant = get_restaurant(session.selected_restaurant_id or "")
        if restaurant is None:
            raise LookupError(f"Unknown restaurant {session.selected_restaurant_id!r} selected")

        request = session.active_request
        booking = create_booking(
            restaurant,
            request.date or "",
            request.time or "",
            request.party_size or 2,
            None if skip else text,
        )
        session.bookings.append(booking)
        session.profile = learn_from_booking(session.profile, restaurant)
        self._start_over(session)
        trace.action = Action.booking_saved
        return f"{replies.EXPRESS_SAVED} Confirmation: {booking.confirmation_id}.", None

    # ── Collecting ──────────────────────────────────────────────────────────

    def _on_collecting(self, session: Session, text: str, trace: DecisionTrace, changing: bool = False) -> Reply:
        if not text or is_greeting_or_ack(text):
            trace.action = Action.greet
            return self._greeting(session), None

        classification = self.interpreter.classify_and_extract(text, today=self.today)
        trace.intent = classification.intent.value
        pending = session.pending_slot
        updates = self._classified_values(classification)
        # Filled slots only change after "continue" or while revising shown options
        if not changing and pending is not None:
            request = session.active_request
            updates = {k: v for k, v in updates.items() if getattr(request, k) is None}
        if pending is not None and pending != ExpressSlot.notes:
            choices = {ExpressSlot.area: list_areas(), ExpressSlot.cuisine: list_cuisines()}.get(pending)
            validation = self.interpreter.validate_slot(pending.value, text, choices, today=self.today)
            value = None
            if validation.normalized is not None and validation.confidence > VALIDATION_CONFIDENCE_CUTOFF:
                value = self._validated_value(pending, validation.normalized)
            if value is not None:
                updates[pending.value] = value
            elif choices is not None and not updates and len(text.split()) <= SHORT_REPLY_TOKENS:
                # Short unrecognised answer: check it against the catalog
                updates[pending.value] = text.strip(" .!?")

        if not updates and classification.intent == Intent.greeting_or_offtopic:
            trace.action = Action.greet
            return self._greeting(session), None

        unavailable = self._normalize(updates)
        trace.extracted = {k: (v.model_dump() if isinstance(v, BudgetRange) else v) for k, v in updates.items()}
        trace.unavailable = unavailable
        session.active_request = session.active_request.model_copy(update=updates)

        if "area" in unavailable:
            session.pending_slot = ExpressSlot.area
            trace.action = Action.reprompt
            return replies.unavailable_area_reply(unavailable["area"], list_areas()[:3]), None
        if "cuisine" in unavailable:
            session.pending_slot = ExpressSlot.cuisine
            trace.action = Action.reprompt
            return replies.unavailable_cuisine_reply(unavailable["cuisine"], list_cuisines()[:3]), None

        question = next_express_question(session.active_request)
        if question is None:
            return self._recommend(session, trace)

        session.pending_slot = question.slot
        trace.action = Action.ask
        trace.reasons = [f"missing {question.slot.value}"]
        return question.text, None

    def _greeting(self, session: Session) -> str:
        question = next_express_question(session.active_request)
        session.pending_slot = question.slot if question else None
        if question is None:
            return replies.GREETING_REPLY
        return f"{replies.GREETING_REPLY} {question.text}"

    @staticmethod
    def _classified_values(classification: Classification) -> dict[str, Any]:
        extracted = classification.extracted
        values: dict[str, Any] = {}
        for field in ("area", "cuisine", "date", "time"):
            valued = getattr(extracted, field)
            if valued.value and valued.confidence > MERGE_CONFIDENCE_CUTOFF:
                values[field] = valued.value
        if extracted.budget.range:
            values["budget"] = BudgetRange(
                range=extracted.budget.range,
                label=extracted.budget.label or budget_label(extracted.budget.range),
            )
        if extracted.party_size:
            values["party_size"] = extracted.party_size
        if extracted.notes:
            values["notes"] = extracted.notes
        return values

    @staticmethod
    def _validated_value(slot: ExpressSlot, normalized: str | int) -> Any:
        try:
            if slot == ExpressSlot.budget:
                range_value = int(normalized)
                return BudgetRange(range=range_value, label=budget_label(range_value))
            if slot == ExpressSlot.party_size:
                size = int(normalized)
                return size if size >= 1 else None
        except ValueError:
            logger.debug("Ignoring unusable %s value %r", slot.value, normalized)
            return None
        return str(normalized)

    def _normalize(self, updates: dict[str, Any]) -> dict[str, str]:
        """Map raw area and cuisine values onto catalog names in place."""
        raw_area = updates.get("area")
        raw_cuisine = updates.get("cuisine")
        if not raw_area and not raw_cuisine:
            return {}

        areas = list_areas()
        cuisines = list_cuisines()
        area = match_value(raw_area, areas) if raw_area else None
        cuisine = match_value(raw_cuisine, cuisines) if raw_cuisine else None

        if (raw_area and area is None) or (raw_cuisine and cuisine is None):
            normalized = self.interpreter.normalize_to_db(
                raw_area if area is None else None,
                raw_cuisine if cuisine is None else None,
                areas,
                cuisines,
            )
            match = normalized.area_match
            if area is None and match.matched in areas and match.confidence > MERGE_CONFIDENCE_CUTOFF:
                area = match.matched
            match = normalized.cuisine_match
            if cuisine is None and match.matched in cuisines and match.confidence > MERGE_CONFIDENCE_CUTOFF:
                cuisine = match.matched

        unavailable: dict[str, str] = {}
        for field, raw, resolved in (("area", raw_area, area), ("cuisine", raw_cuisine, cuisine)):
            if not raw:
                continue
            if resolved is None:
                unavailable[field] = updates.pop(field)
            else:
                updates[field] = resolved
        return unavailable

    def _recommend(self, session: Session, trace: DecisionTrace) -> Reply:
        recs = recommend_express(session.active_request)
        session.express_recommendations = recs
        session.mode = RequestMode.recommending
        session.pending_slot = None
        trace.action = Action.recommend
        trace.reasons = list(recs.top.reasons)
        reply = replies.format_recommendations(recs, with_vibe=False) + "\n" + EXPRESS_OPTIONS_HELP
        return reply, recs
