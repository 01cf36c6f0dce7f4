from __future__ import annotations

from ..catalog.models import Restaurant
from ..recommendations.models import RecommendationItem, Recommendations
from .models import Booking, BookingDraft, Profile, Slots

WELCOME_FIRST_VISIT = (
    "Hey there! I'm your restaurant butler, and I'm excited to help you find the perfect spot. "
    "What are you in the mood for and what area are you thinking?"
)
WELCOME_BACK = (
    "Welcome back! I'm here to help you find the perfect restaurant. "
    "What are you in the mood for and what area are you thinking?"
)
RESET_REPLY = "No problem! Let's start fresh. What are you in the mood for and what area are you thinking?"
EXPRESS_RESET_REPLY = "Starting fresh. Which area do you want to eat in?"
OPTIONS_HELP = "Reply 1/2/3 to pick. Reply 'book 1' to book. Reply 'more' for other options."
FALLBACK_QUESTION = "What else can you tell me to help you find the perfect restaurant?"
APOLOGY = "Sorry, I ran into a problem handling that. Please try again."
GREETING_REPLY = (
    "Hey! I'm your restaurant butler. Tell me what you're craving "
    "and I'll suggest the best spots from my list."
)
REFINE_STUCK = (
    "I don't have many other options with your current criteria. What would you like to change? "
    "You can say 'area', 'budget', or 'cuisine', or just tell me the new value (like 'Hamra' for area)."
)
REFINE_REJECT = "I'd love to help you find something better! Is it too far, too expensive, or the wrong vibe?"
REFINE_HELP = (
    "I'd love to help you adjust your preferences! You can change the area, budget, cuisine, "
    "or vibe. What would you like to change?"
)
BOOKING_DATE_QUESTION = (
    "What date would you like to book for? You can say things like 'tomorrow', "
    "'Friday', or a specific date like '2024-12-25'."
)
BOOKING_TIME_QUESTION = "Perfect! What time would you like? You can say things like '7pm', '19:00', or '7:30 PM'."
BOOKING_PARTY_QUESTION = "How many people will be joining?"
BOOKING_NOTES_QUESTION = "Any special notes or requests for the restaurant? If not, just say 'no'."
BOOKING_CHANGE = "No problem! Let's adjust that. What date would you like?"
BOOKING_CONFIRM_HELP = "Please reply 'confirm' to book or 'change' to modify your booking."
BOOKING_IN_PROGRESS = (
    "We're in the middle of a booking. Please answer the question above, "
    "or say 'cancel' to stop this booking."
)
BOOKING_CANCELLED = "Booking cancelled. What are you looking for?"
NOTES_PROMPT = "Please reply 'Skip' to skip notes, or type your note."
EXPRESS_CONTINUE = "What would you like to change?"
EXPRESS_SAVED = "Done. Your booking is saved."


def welcome_message(has_history: bool) -> str:
    return WELCOME_BACK if has_history else WELCOME_FIRST_VISIT


def _describe(option: int, item: RecommendationItem, with_vibe: bool = True) -> str:
    r = item.restaurant
    line = f"{option}) {r.name} ({r.area}) price: {r.price_symbol} | {', '.join(r.cuisines)}"
    if with_vibe and r.vibe:
        line += f" | {', '.join(r.vibe)}"
    return f"{line}\n   Why: {'; '.join(item.reasons)}\n"


def format_recommendations(recs: Recommendations, slots: Slots | None = None, with_vibe: bool = True) -> str:
    message = ""

    if slots is not None and slots.craving_cuisines:
        top_cuisines = [c.lower() for c in recs.top.restaurant.cuisines]
        has_match = any(
            want.lower() in c or c in want.lower()
            for want in slots.craving_cuisines
            for c in top_cuisines
        )
        if not has_match:
            message += (
                f"I couldn't find {' or '.join(slots.craving_cuisines)} restaurants matching "
                "your criteria. Here are some great alternatives:\n\n"
            )

    message += "Top pick:\n" + _describe(1, recs.top, with_vibe)
    if recs.alternatives:
        message += "\nAlternatives:\n"
        for offset, item in enumerate(recs.alternatives, start=2):
            message += _describe(offset, item, with_vibe)
    return message


def format_profile(profile: Profile) -> str:
    lines = ["Here's what I remember about your preferences:"]
    if profile.cuisines_liked:
        top = sorted(profile.cuisines_liked.items(), key=lambda kv: kv[1], reverse=True)[:5]
        lines.append(f"Cuisines you like: {', '.join(name for name, _ in top)}")
    if profile.vibe_prefs:
        top = sorted(profile.vibe_prefs.items(), key=lambda kv: kv[1], reverse=True)[:5]
        lines.append(f"Vibe preferences: {', '.join(name for name, _ in top)}")
    if profile.budget_default:
        lines.append(f"Your usual budget: {profile.budget_default.value}")
    if profile.dietary:
        lines.append(f"Dietary preferences: {', '.join(profile.dietary)}")
    if profile.last_area:
        lines.append(f"Last area you visited: {profile.last_area}")
    if len(lines) == 1:
        lines.append("Nothing yet. Book a table and I'll start learning what you like.")
    return "\n".join(lines)


def selection_reply(restaurant: Restaurant, option: int) -> str:
    return (
        f"Great choice! {restaurant.name} looks perfect. Would you like me to book it? "
        f"Just reply 'book {option}' to start, or 'more' to see other options."
    )


def walk_in_reply(restaurant: Restaurant) -> str:
    reply = f"{restaurant.name} is walk-in only. You can just head over, no booking needed."
    if restaurant.discount_code:
        reply += f" Present this code at the door for a discount: **{restaurant.discount_code}**"
    return reply


def booking_summary(draft: BookingDraft, restaurant: Restaurant | None) -> str:
    name = restaurant.name if restaurant else "Unknown"
    return (
        "Here's your booking summary:\n"
        f"Restaurant: {name}\n"
        f"Date: {draft.date}\n"
        f"Time: {draft.time}\n"
        f"Party: {draft.party_size} people\n"
        f"Notes: {draft.notes or 'None'}\n\n"
        "Does this look good? Reply 'confirm' to book or 'change' to modify."
    )


def booking_confirmed(booking: Booking) -> str:
    reply = (
        f"Perfect! Your booking is confirmed at {booking.restaurant_name} for {booking.party_size} "
        f"people on {booking.date} at {booking.time}. Confirmation: {booking.confirmation_id}."
    )
    if booking.notes:
        reply += f" I've noted: {booking.notes}"
    return reply + " Enjoy your meal!"


def express_confirm_prompt(restaurant: Restaurant, party_size: int | None, date: str | None, time: str | None) -> str:
    return (
        f"Cool. Confirming {restaurant.name} for {party_size or 'your party'} on "
        f"{date or 'your date'} at {time or 'your time'}. Reply 'Skip' to skip, or type your note."
    )


def unavailable_area_reply(raw: str, examples: list[str]) -> str:
    return f"I don't have {raw} in my list yet. Want one of these instead: {', '.join(examples)}?"


def unavailable_cuisine_reply(raw: str, examples: list[str]) -> str:
    return f"I don't have {raw} spots in my list yet. I do have: {', '.join(examples)}."
