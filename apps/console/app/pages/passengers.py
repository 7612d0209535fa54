from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from console_schemas.models import Passenger
from shared.logging import get_logger
from ..errors import NO_CHANGES_MESSAGE, map_message
from ..services import bookings as booking_service
from ..services import passengers as passenger_service
from ..validation import validate_passenger
from .common import (
    ADMIN_ONLY,
    PageContext,
    attempt,
    changed,
    early_exit,
    form_data,
    page_context,
    parse_int,
    redirect,
    render,
    run_guarded,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/passengers")

DENIED = "/flights"
EMAIL_TAKEN = "This email is already registered."
COLUMNS = ("Name", "Surname", "Email", "Loyalty Points")
BOOKING_COLUMNS = (
    "Flight",
    "Origin",
    "Destination",
    "Departure",
    "Arrival",
    "Seat",
    "Status",
    "Price",
    "Loyalty Earned",
)
FIELD_KEYS = ("name", "surname", "email")


def _fields(values: Dict[str, str]) -> List[Dict[str, Any]]:
    return [
        {"name": "name", "label": "First Name", "value": values.get("name", "")},
        {"name": "surname", "label": "Last Name", "value": values.get("surname", "")},
        {"name": "email", "label": "Email", "type": "email", "value": values.get("email", "")},
    ]


def _form_values(passenger: Passenger) -> Dict[str, str]:
    return {key: getattr(passenger, key) for key in FIELD_KEYS}


def _from_form(form: Dict[str, str], original: Optional[Passenger] = None) -> Passenger:
    return Passenger(
        id=original.id if original else None,
        name=form.get("name", "").strip(),
        surname=form.get("surname", "").strip(),
        email=form.get("email", "").strip(),
        loyalty_points=original.loyalty_points if original else 0,
    )


async def _load_all(api, role, params):
    return await passenger_service.get_passengers(api)


async def _load_passenger(api, role, params):
    return await passenger_service.get_passenger(api, params["passenger_id"])


async def _load_passenger_bookings(api, role, params):
    return await asyncio.gather(
        passenger_service.get_passenger(api, params["passenger_id"]),
        booking_service.get_passenger_bookings(api, params["passenger_id"]),
    )


async def _guard(ctx: PageContext, page: str, fetch=None, passenger_id: Optional[int] = None):
    params = {"back_href": "/passengers"}
    if passenger_id is not None:
        params["passenger_id"] = passenger_id
    return await run_guarded(
        ctx, page, ADMIN_ONLY, denied_redirect=DENIED, fetch=fetch, params=params
    )


@router.get("", response_class=HTMLResponse)
async def passenger_list(ctx: PageContext = Depends(page_context)):
    state = await _guard(ctx, "passengers", _load_all)
    early = await early_exit(ctx, state)
    if early is not None:
        return early

    rows = [
        {
            "cells": [p.name, p.surname, p.email, p.loyalty_points],
            "actions": [
                {"label": "Edit", "href": f"/passengers/{p.id}"},
                {"label": "Bookings", "href": f"/passengers/{p.id}/bookings"},
                {
                    "label": "Delete",
                    "post": f"/passengers/{p.id}/delete",
                    "confirm": f"Delete passenger {p.name} {p.surname}?",
                },
            ],
        }
        for p in state.get("data") or []
    ]
    return await render(
        ctx,
        "table.html",
        title="Passengers",
        columns=COLUMNS,
        rows=rows,
        empty_message="No passengers found.",
        create_href="/passengers/new",
        create_label="Add Passenger",
        notification=state.get("notification"),
    )


async def _passenger_form(ctx: PageContext, title: str, action: str, values, **context):
    return await render(
        ctx,
        "form.html",
        title=title,
        action=action,
        fields=_fields(values),
        submit_label="Save",
        cancel_href="/passengers",
        **context,
    )


def _loyalty_form(passenger: Passenger) -> Dict[str, Any]:
    return {
        "title": f"Loyalty points: {passenger.loyalty_points}",
        "action": f"/passengers/{passenger.id}/loyalty",
        "fields": [
            {"name": "delta", "label": "Adjust by", "type": "number", "value": ""},
        ],
        "submit_label": "Update points",
    }


@router.get("/new", response_class=HTMLResponse)
async def passenger_new(ctx: PageContext = Depends(page_context)):
    state = await _guard(ctx, "passenger-new")
    early = await early_exit(ctx, state)
    if early is not None:
        return early
    return await _passenger_form(ctx, "Add Passenger", "/passengers/new", {})


@router.post("/new")
async def passenger_create(request: Request, ctx: PageContext = Depends(page_context)):
    state = await _guard(ctx, "passenger-new")
    early = await early_exit(ctx, state)
    if early is not None:
        return early

    form = await form_data(request)
    errors = validate_passenger(form)
    if errors:
        return await _passenger_form(ctx, "Add Passenger", "/passengers/new", form, errors=errors)

    unique = await attempt(passenger_service.check_email_unique(ctx.api, form["email"].strip()))
    if unique.ok and not unique.value:
        return await _passenger_form(
            ctx, "Add Passenger", "/passengers/new", form, errors={"email": EMAIL_TAKEN}
        )

    outcome = await attempt(passenger_service.create_passenger(ctx.api, _from_form(form)), Passenger)
    if not outcome.ok:
        return await _passenger_form(
            ctx,
            "Add Passenger",
            "/passengers/new",
            form,
            errors=outcome.errors,
            notification=outcome.notification,
        )
    return redirect(ctx, "/passengers", flash="Passenger added successfully")


@router.get("/{passenger_id}", response_class=HTMLResponse)
async def passenger_edit(passenger_id: int, ctx: PageContext = Depends(page_context)):
    state = await _guard(ctx, "passenger-edit", _load_passenger, passenger_id)
    early = await early_exit(ctx, state)
    if early is not None:
        return early

    passenger = state.get("data")
    return await _passenger_form(
        ctx,
        "Edit Passenger",
        f"/passengers/{passenger_id}",
        _form_values(passenger) if passenger else {},
        extra_forms=[_loyalty_form(passenger)] if passenger else [],
        notification=state.get("notification"),
    )


@router.post("/{passenger_id}")
async def passenger_update(
    passenger_id: int, request: Request, ctx: PageContext = Depends(page_context)
):
    state = await _guard(ctx, "passenger-edit", _load_passenger, passenger_id)
    early = await early_exit(ctx, state)
    if early is not None:
        return early

    action = f"/passengers/{passenger_id}"
    form = await form_data(request)
    original: Optional[Passenger] = state.get("data")
    if original is None:
        return await _passenger_form(
            ctx, "Edit Passenger", action, form, notification=state.get("notification")
        )

    extra = [_loyalty_form(original)]
    errors = validate_passenger(form)
    if errors:
        return await _passenger_form(
            ctx, "Edit Passenger", action, form, errors=errors, extra_forms=extra
        )

    if not changed(_form_values(original), form):
        return await _passenger_form(
            ctx, "Edit Passenger", action, form, notification=NO_CHANGES_MESSAGE, extra_forms=extra
        )

    email = form["email"].strip()
    if email.lower() != original.email.lower():
        unique = await attempt(passenger_service.check_email_unique(ctx.api, email))
        if unique.ok and not unique.value:
            return await _passenger_form(
                ctx, "Edit Passenger", action, form, errors={"email": EMAIL_TAKEN}, extra_forms=extra
            )

    outcome = await attempt(
        passenger_service.update_passenger(ctx.api, passenger_id, _from_form(form, original)),
        Passenger,
    )
    if not outcome.ok:
        return await _passenger_form(
            ctx,
            "Edit Passenger",
            action,
            form,
            errors=outcome.errors,
            notification=outcome.notification,
            extra_forms=extra,
        )
    return redirect(ctx, "/passengers", flash="Passenger updated successfully")


@router.post("/{passenger_id}/loyalty")
async def passenger_loyalty(
    passenger_id: int, request: Request, ctx: PageContext = Depends(page_context)
):
    state = await _guard(ctx, "passenger-loyalty")
    early = await early_exit(ctx, state)
    if early is not None:
        return early

    back = f"/passengers/{passenger_id}"
    delta = parse_int((await form_data(request)).get("delta"))
    if not delta:
        return redirect(ctx, back, flash="Enter a non-zero whole number of points.", level="error")

    outcome = await attempt(passenger_service.update_loyalty_points(ctx.api, passenger_id, delta))
    if not outcome.ok:
        return redirect(ctx, back, flash=outcome.notification or map_message(), level="error")
    logger.info("loyalty points adjusted passenger=%s delta=%s", passenger_id, delta)
    return redirect(ctx, back, flash="Loyalty points updated")


@router.post("/{passenger_id}/delete")
async def passenger_delete(passenger_id: int, ctx: PageContext = Depends(page_context)):
    state = await _guard(ctx, "passenger-delete")
    early = await early_exit(ctx, state)
    if early is not None:
        return early

    outcome = await attempt(passenger_service.delete_passenger(ctx.api, passenger_id))
    if not outcome.ok:
        return redirect(
            ctx, "/passengers", flash=outcome.notification or map_message(), level="error"
        )
    return redirect(ctx, "/passengers", flash="Passenger deleted successfully")


@router.get("/{passenger_id}/bookings", response_class=HTMLResponse)
async def passenger_bookings(passenger_id: int, ctx: PageContext = Depends(page_context)):
    state = await _guard(ctx, "passenger-bookings", _load_passenger_bookings, passenger_id)
    early = await early_exit(ctx, state)
    if early is not None:
        return early

    passenger, bookings = state.get("data") or (None, [])
    rows = [
        {
            "cells": [
                b.flight_number,
                b.origin,
                b.destination,
                b.departure_time,
                b.arrival_time,
                b.seat_number,
                b.booking_status,
                f"{b.price:.2f}",
                b.loyalty_earned,
            ],
            "actions": [{"label": "View", "href": f"/bookings/{b.booking_id}"}],
        }
        for b in bookings
    ]
    title = f"Bookings of {passenger.name} {passenger.surname}" if passenger else "Bookings"
    return await render(
        ctx,
        "table.html",
        title=title,
        columns=BOOKING_COLUMNS,
        rows=rows,
        empty_message="This passenger has no bookings.",
        back_href="/passengers",
        notification=state.get("notification"),
    )
