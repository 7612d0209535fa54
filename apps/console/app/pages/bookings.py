from __future__ import annotations

import asyncio
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from console_schemas.models import Flight, Passenger
from console_schemas.requests import BookingCreateRequest
from shared.logging import get_logger
from ..errors import map_booking_message, map_message
from ..services import bookings as booking_service
from ..services import flights as flight_service
from ..services import passengers as passenger_service
from ..validation import is_overbooked, overbooking_limit, validate_booking
from .common import (
    ANY_ROLE,
    PageContext,
    attempt,
    early_exit,
    form_data,
    page_context,
    parse_int,
    redirect,
    render,
    run_guarded,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/bookings")

OPTIONS_SIZE = 1000
PRIVATE_PASSENGER = "Private Passenger"
ADMIN_COLUMNS = ("Flight", "Origin", "Destination", "Passenger", "Seat", "Status", "Price")
USER_COLUMNS = ("Flight", "Origin", "Destination", "Departure", "Seat", "Status", "Price")

# fromisoformat on 3.10 only takes 3 or 6 fraction digits
_FRACTION = re.compile(r"([T ]\d{2}:\d{2}:\d{2})\.(\d+)")


def _iso(value: str) -> str:
    value = value.replace("Z", "+00:00")
    return _FRACTION.sub(lambda m: f"{m.group(1)}.{m.group(2)[:6].ljust(6, '0')}", value)


def departs_in_future(flight: Flight, now: Optional[datetime] = None) -> bool:
    """Unparseable departure times are treated as not bookable."""
    try:
        departure = datetime.fromisoformat(_iso(flight.departure_time))
    except ValueError:
        return False
    if departure.tzinfo is not None:
        reference = now.astimezone(timezone.utc) if now and now.tzinfo else datetime.now(timezone.utc)
    else:
        reference = now.replace(tzinfo=None) if now else datetime.now()
    return departure > reference


def flight_option_label(flight: Flight) -> str:
    label = f"{flight.flight_number} · {flight.origin} → {flight.destination} ({flight.departure_time})"
    if flight.booked_seats is not None:
        label += f" {flight.booked_seats}/{flight.capacity} seats"
        if is_overbooked(flight):
            label += f" - full (limit {overbooking_limit(flight.capacity)})"
    return label


def _cancel_action(booking_id: int, status: str) -> List[Dict[str, Any]]:
    if status == "CANCELLED":
        return []
    return [
        {
            "label": "Cancel",
            "post": f"/bookings/{booking_id}/cancel",
            "confirm": "Cancel this booking?",
        }
    ]


async def _load_list(api, role, params):
    if role == "ADMIN":
        return await booking_service.get_admin_bookings(api)
    return await booking_service.get_my_bookings(api)


async def _load_options(api, role, params):
    if role != "ADMIN":
        flights = await flight_service.get_flights(api, 0, OPTIONS_SIZE)
        return [f for f in flights.content if departs_in_future(f)], []
    flights, passengers = await asyncio.gather(
        flight_service.get_flights(api, 0, OPTIONS_SIZE),
        passenger_service.get_passengers(api, 0, OPTIONS_SIZE),
    )
    return [f for f in flights.content if departs_in_future(f)], passengers


async def _load_detail(api, role, params):
    booking = await booking_service.get_booking(api, params["booking_id"])
    flight = await flight_service.get_flight(api, booking.flight_id)
    passenger: Optional[Passenger] = None
    if role == "ADMIN" and booking.passenger_id is not None:
        passenger = await passenger_service.get_passenger(api, booking.passenger_id)
    return booking, flight, passenger


@router.get("", response_class=HTMLResponse)
async def booking_list(ctx: PageContext = Depends(page_context)):
    state = await run_guarded(ctx, "bookings", ANY_ROLE, denied_redirect="/", fetch=_load_list)
    early = await early_exit(ctx, state)
    if early is not None:
        return early

    data = state.get("data")
    if state.get("role") == "ADMIN":
        columns = ADMIN_COLUMNS
        rows = [
            {
                "cells": [
                    b.flight_number,
                    b.origin,
                    b.destination,
                    b.passenger_name,
                    b.seat_number,
                    b.booking_status,
                    f"{b.price:.2f}",
                ],
                "actions": [{"label": "View", "href": f"/bookings/{b.id}"}]
                + _cancel_action(b.id, b.booking_status),
            }
            for b in (data.content if data else [])
        ]
    else:
        columns = USER_COLUMNS
        rows = [
            {
                "cells": [
                    b.flight_number,
                    b.origin,
                    b.destination,
                    b.departure_time,
                    b.seat_number,
                    b.booking_status,
                    f"{b.price:.2f}",
                ],
                "actions": [{"label": "View", "href": f"/bookings/{b.booking_id}"}]
                + _cancel_action(b.booking_id, b.booking_status),
            }
            for b in data or []
        ]

    return await render(
        ctx,
        "table.html",
        title="Bookings",
        columns=columns,
        rows=rows,
        empty_message="No bookings found.",
        create_href="/bookings/new",
        create_label="New Booking",
        notification=state.get("notification"),
    )


def _fields(
    values: Dict[str, str], flights: List[Flight], passengers: List[Passenger], is_admin: bool
) -> List[Dict[str, Any]]:
    fields: List[Dict[str, Any]] = [
        {
            "name": "flight_id",
            "label": "Flight",
            "type": "select",
            "placeholder": "Select a flight",
            "options": [{"value": str(f.id), "label": flight_option_label(f)} for f in flights],
            "value": values.get("flight_id", ""),
        },
        {"name": "seat_number", "label": "Seat Number", "value": values.get("seat_number", "")},
    ]
    if is_admin:
        fields.insert(
            0,
            {
                "name": "passenger_id",
                "label": "Passenger",
                "type": "select",
                "placeholder": "Select a passenger",
                "options": [
                    {"value": str(p.id), "label": f"{p.name} {p.surname} ({p.email})"}
                    for p in passengers
                ],
                "value": values.get("passenger_id", ""),
            },
        )
    return fields


async def _booking_form(ctx: PageContext, state, values, **context):
    flights, passengers = state.get("data") or ([], [])
    return await render(
        ctx,
        "form.html",
        title="New Booking",
        action="/bookings/new",
        fields=_fields(values, flights, passengers, state.get("role") == "ADMIN"),
        submit_label="Book",
        cancel_href="/bookings",
        **context,
    )


@router.get("/new", response_class=HTMLResponse)
async def booking_new(flight_id: Optional[str] = None, ctx: PageContext = Depends(page_context)):
    state = await run_guarded(
        ctx, "booking-new", ANY_ROLE, denied_redirect="/bookings", fetch=_load_options
    )
    early = await early_exit(ctx, state)
    if early is not None:
        return early
    return await _booking_form(
        ctx, state, {"flight_id": flight_id or ""}, notification=state.get("notification")
    )


@router.post("/new")
async def booking_create(request: Request, ctx: PageContext = Depends(page_context)):
    state = await run_guarded(
        ctx, "booking-new", ANY_ROLE, denied_redirect="/bookings", fetch=_load_options
    )
    early = await early_exit(ctx, state)
    if early is not None:
        return early

    form = await form_data(request)
    is_admin = state.get("role") == "ADMIN"
    flights, _ = state.get("data") or ([], [])
    flight_id = parse_int(form.get("flight_id"))
    passenger_id = parse_int(form.get("passenger_id")) if is_admin else None
    seat_number = form.get("seat_number", "").strip()
    selected = next((f for f in flights if f.id == flight_id), None)

    blocked = validate_booking(flight_id, seat_number, passenger_id, is_admin, selected)
    if blocked:
        return await _booking_form(ctx, state, form, notification=blocked)

    outcome = await attempt(
        booking_service.create_booking(ctx.api, flight_id, seat_number, passenger_id),
        BookingCreateRequest,
        mapper=map_booking_message,
    )
    if not outcome.ok:
        return await _booking_form(
            ctx, state, form, errors=outcome.errors, notification=outcome.notification
        )
    receipt = outcome.value
    logger.info("booking created id=%s status=%s", receipt.booking_id, receipt.status)
    return redirect(ctx, "/bookings", flash=receipt.message or "Booking created successfully")


@router.get("/{booking_id}", response_class=HTMLResponse)
async def booking_detail(booking_id: int, ctx: PageContext = Depends(page_context)):
    state = await run_guarded(
        ctx,
        "booking-detail",
        ANY_ROLE,
        denied_redirect="/bookings",
        fetch=_load_detail,
        params={"booking_id": booking_id, "back_href": "/bookings"},
    )
    early = await early_exit(ctx, state)
    if early is not None:
        return early

    sections = []
    actions: List[Dict[str, Any]] = []
    data = state.get("data")
    if data is not None:
        booking, flight, passenger = data
        if passenger is not None:
            passenger_name = f"{passenger.name} {passenger.surname}"
            passenger_email = passenger.email
        else:
            passenger_name, passenger_email = PRIVATE_PASSENGER, "-"
        sections = [
            {
                "title": f"Booking #{booking.id}",
                "entries": [
                    ("Seat", booking.seat_number),
                    ("Status", booking.booking_status),
                    ("Price", f"{booking.price:.2f}"),
                ],
            },
            {
                "title": f"Flight {flight.flight_number}",
                "entries": [
                    ("Origin", flight.origin),
                    ("Destination", flight.destination),
                    ("Departure", flight.departure_time),
                    ("Arrival", flight.arrival_time),
                ],
            },
            {
                "title": "Passenger",
                "entries": [("Name", passenger_name), ("Email", passenger_email)],
            },
        ]
        actions = _cancel_action(booking_id, booking.booking_status)

    return await render(
        ctx,
        "detail.html",
        title="Booking Details",
        sections=sections,
        actions=actions,
        back_href="/bookings",
        notification=state.get("notification"),
    )


@router.post("/{booking_id}/cancel")
async def booking_cancel(booking_id: int, ctx: PageContext = Depends(page_context)):
    state = await run_guarded(ctx, "booking-cancel", ANY_ROLE, denied_redirect="/bookings")
    early = await early_exit(ctx, state)
    if early is not None:
        return early

    outcome = await attempt(booking_service.cancel_booking(ctx.api, booking_id))
    if not outcome.ok:
        return redirect(
            ctx, "/bookings", flash=outcome.notification or map_message(), level="error"
        )
    return redirect(ctx, "/bookings", flash="Booking cancelled successfully")
