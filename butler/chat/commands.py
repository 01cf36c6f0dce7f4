from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum


class CommandKind(str, Enum):
    reset = "reset"
    profile = "profile"
    more = "more"
    book = "book"
    select = "select"
    confirm = "confirm"
    change = "change"
    reject = "reject"
    continue_chat = "continue"
    skip = "skip"
    cancel = "cancel"
    none = "none"


@dataclass(frozen=True)
class Command:
    kind: CommandKind
    option: int | None = None


_BOOK_RE = re.compile(r"^book\s+#?([123])$")
_SELECT_RE = re.compile(r"^(pick\s*#?\s*)?([123])$")
_REJECT_WORDS = ["no", "not", "don't", "dont", "wrong", "too", "reject"]
_REJECT_REASONS = ["far", "expensive", "vibe"]


def _is_word_command(lower: str, word: str) -> bool:
    return lower == word or lower.startswith(word + " ")


def parse_command(text: str) -> Command:
    """Recognise control commands before any interpretation happens."""
    lower = text.lower().strip()

    for kind in (CommandKind.reset, CommandKind.profile, CommandKind.more):
        if _is_word_command(lower, kind.value):
            return Command(kind)

    match = _BOOK_RE.match(lower)
    if match:
        return Command(CommandKind.book, int(match.group(1)))

    match = _SELECT_RE.match(lower)
    if match:
        return Command(CommandKind.select, int(match.group(2)))

    if lower in ("confirm", "yes", "y"):
        return Command(CommandKind.confirm)
    if lower in ("change", "no", "n"):
        return Command(CommandKind.change)
    if lower in ("continue", "continue chat"):
        return Command(CommandKind.continue_chat)
    if lower == "skip":
        return Command(CommandKind.skip)
    if lower in ("cancel", "cancel booking"):
        return Command(CommandKind.cancel)

    words = re.findall(r"[a-z']+", lower)
    if any(w in words for w in _REJECT_WORDS) and any(r in lower for r in _REJECT_REASONS):
        return Command(CommandKind.reject)

    return Command(CommandKind.none)
