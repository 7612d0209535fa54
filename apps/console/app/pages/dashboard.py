from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from .common import ANY_ROLE, PageContext, early_exit, page_context, render, run_guarded

router = APIRouter()

CARDS = (
    {"title": "Airlines", "href": "/airlines", "roles": ("ADMIN",)},
    {"title": "Flights", "href": "/flights", "roles": ANY_ROLE},
    {"title": "Passengers", "href": "/passengers", "roles": ("ADMIN",)},
    {"title": "Bookings", "href": "/bookings", "roles": ANY_ROLE},
)


@router.get("/", response_class=HTMLResponse)
async def dashboard(ctx: PageContext = Depends(page_context)):
    state = await run_guarded(ctx, "dashboard")
    early = await early_exit(ctx, state)
    if early is not None:
        return early

    role = state.get("role")
    cards = [c for c in CARDS if role in c["roles"]]
    return await render(ctx, "dashboard.html", title="Dashboard", cards=cards, role=role)
