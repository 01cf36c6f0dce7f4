from __future__ import annotations

import os

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from starlette.middleware.sessions import SessionMiddleware

from .accounts.dependencies import require_account
from .catalog.data_store import get_restaurant, search
from .catalog.models import PriceLevel, Restaurant, RestaurantSearch
from .catalog.vocabulary import list_areas, list_cuisines, list_dietary, list_vibes
from .chat.dialogue import DialogueController, welcome_message
from .chat.express import ExpressController
from .chat.models import (
    AccountRequest,
    Booking,
    ChatRequest,
    ChatResponse,
    Profile,
    Session,
    TurnResult,
)
from .chat.store import clear_session, load_session, save_session
from .llm.groq_interpreter import get_interpreter

app = FastAPI(title="Restaurant Butler API", version="1.0.0")
app.add_middleware(
    SessionMiddleware,
    secret_key=os.environ.get("SESSION_SECRET", "restaurant-butler-secret-change-in-production"),
)

_interpreter = get_interpreter()
_dialogue = DialogueController(_interpreter)
_express = ExpressController(_interpreter)


def _respond(account: str, result: TurnResult) -> ChatResponse:
    save_session(account, result.session)
    return ChatResponse(
        reply=result.reply,
        state=result.session.state,
        mode=result.session.mode,
        recommendations=result.recommendations,
        trace=result.trace,
    )


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/metadata")
def metadata() -> dict:
    return {
        "areas": list_areas(),
        "cuisines": sorted(list_cuisines()),
        "vibes": sorted(list_vibes()),
        "dietary": sorted(list_dietary()),
    }


@app.get("/restaurants", response_model=list[Restaurant])
def restaurants(
    area: str | None = None,
    cuisine: str | None = None,
    price: PriceLevel | None = None,
    dietary: str | None = None,
    min_rating: float = Query(default=0.0, ge=0.0, le=5.0),
) -> list[Restaurant]:
    query = RestaurantSearch(area=area, cuisine=cuisine, price=price, dietary=dietary, min_rating=min_rating)
    return search(query)


@app.get("/restaurants/{restaurant_id}", response_model=Restaurant)
def restaurant_detail(restaurant_id: str) -> Restaurant:
    restaurant = get_restaurant(restaurant_id)
    if restaurant is None:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    return restaurant


# ── Account endpoints ────────────────────────────────────────────────────


@app.post("/account")
def select_account(body: AccountRequest, request: Request) -> dict:
    name = body.name.strip()
    if not name:
        raise HTTPException(status_code=422, detail="Account name must not be blank")
    request.session["account"] = name
    return {"status": "ok", "account": name}


@app.post("/account/logout")
def logout(request: Request) -> dict:
    request.session.clear()
    return {"status": "logged_out"}


# ── Chat endpoints ───────────────────────────────────────────────────────


@app.get("/chat/welcome")
def chat_welcome(account: str = Depends(require_account)) -> dict:
    return {"reply": welcome_message(load_session(account))}


@app.post("/chat", response_model=ChatResponse)
def chat(body: ChatRequest, account: str = Depends(require_account)) -> ChatResponse:
    result = _dialogue.handle_turn(load_session(account), body.message)
    return _respond(account, result)


@app.post("/chat/express", response_model=ChatResponse)
def chat_express(body: ChatRequest, account: str = Depends(require_account)) -> ChatResponse:
    result = _express.handle_turn(load_session(account), body.message)
    return _respond(account, result)


@app.get("/session", response_model=Session)
def get_session(account: str = Depends(require_account)) -> Session:
    return load_session(account)


@app.delete("/session")
def delete_session(account: str = Depends(require_account)) -> dict:
    clear_session(account)
    return {"status": "cleared"}


@app.get("/profile", response_model=Profile)
def profile(account: str = Depends(require_account)) -> Profile:
    return load_session(account).profile


@app.get("/bookings", response_model=list[Booking])
def bookings(account: str = Depends(require_account)) -> list[Booking]:
    return load_session(account).bookings
