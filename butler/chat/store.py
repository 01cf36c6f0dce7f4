from __future__ import annotations

from .models import Session

# Module-level in-memory session store keyed by account name.
# Last write wins; nothing is persisted across restarts.
_sessions: dict[str, Session] = {}


def load_session(account: str) -> Session:
    """Return a copy of the account's session, or a fresh one."""
    session = _sessions.get(account)
    if session is None:
        return Session()
    return session.model_copy(deep=True)


def save_session(account: str, session: Session) -> None:
    _sessions[account] = session.model_copy(deep=True)


def clear_session(account: str) -> None:
    _sessions.pop(account, None)


def clear_sessions() -> None:
    _sessions.clear()
