from __future__ import annotations

import logging

from ..catalog.models import Restaurant
from ..catalog.vocabulary import vibe_category
from .models import Booking, Profile

logger = logging.getLogger(__name__)

_CONFIRMATION_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
_CONFIRMATION_LENGTH = 6


def _hash32(value: str) -> int:
    """31-multiplier string hash wrapped to a signed 32-bit integer."""
    h = 0
    for ch in value:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    return h - 0x100000000 if h >= 0x80000000 else h


def confirmation_id(restaurant_id: str, time: str) -> str:
    """Deterministic ``BK-XXXXXX`` code for a restaurant and time slot."""
    num = abs(_hash32(f"{restaurant_id}-{time}"))
    chars = []
    for _ in range(_CONFIRMATION_LENGTH):
        chars.append(_CONFIRMATION_ALPHABET[num % len(_CONFIRMATION_ALPHABET)])
        num //= len(_CONFIRMATION_ALPHABET)
    return "BK-" + "".join(chars)


def create_booking(
    restaurant: Restaurant,
    date: str,
    time: str,
    party_size: int,
    notes: str | None = None,
) -> Booking:
    booking = Booking(
        restaurant_id=restaurant.id,
        restaurant_name=restaurant.name,
        date=date,
        time=time,
        party_size=party_size,
        notes=notes or None,
        confirmation_id=confirmation_id(restaurant.id, time),
    )
    logger.info("Booked %s for %d on %s at %s (%s)", restaurant.id, party_size, date, time, booking.confirmation_id)
    return booking


def learn_from_booking(profile: Profile, restaurant: Restaurant) -> Profile:
    """Return ``profile`` with the booked restaurant's cuisines and vibes counted."""
    cuisines_liked = dict(profile.cuisines_liked)
    for cuisine in restaurant.cuisines:
        cuisines_liked[cuisine] = cuisines_liked.get(cuisine, 0) + 1

    vibe_prefs = dict(profile.vibe_prefs)
    for tag in restaurant.vibe:
        category = vibe_category(tag)
        if category:
            vibe_prefs[category] = vibe_prefs.get(category, 0) + 1

    return profile.model_copy(
        update={
            "cuisines_liked": cuisines_liked,
            "vibe_prefs": vibe_prefs,
            "last_area": restaurant.area,
        }
    )
