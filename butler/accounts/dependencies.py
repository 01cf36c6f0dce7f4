from __future__ import annotations

from fastapi import HTTPException, Request


def get_current_account(request: Request) -> str | None:
    """Return the selected account name from the session, or ``None``."""
    return request.session.get("account")


def require_account(request: Request) -> str:
    """Raise 401 if no account has been selected."""
    account = request.session.get("account")
    if not account:
        raise HTTPException(status_code=401, detail="No account selected")
    return account
