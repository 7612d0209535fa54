from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from console_schemas.models import Airline, Flight
from shared.logging import get_logger
from ..errors import NO_CHANGES_MESSAGE, map_message
from ..services import airlines as airline_service
from ..services import flights as flight_service
from ..validation import validate_flight
from .common import (
    ADMIN_ONLY,
    ANY_ROLE,
    PageContext,
    attempt,
    changed,
    early_exit,
    form_data,
    page_context,
    pager,
    parse_int,
    redirect,
    render,
    run_guarded,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/flights")

PAGE_SIZE = 20
AIRLINE_OPTIONS_SIZE = 100
COLUMNS = (
    "Flight No",
    "Origin",
    "Destination",
    "Departure",
    "Arrival",
    "Base Price",
    "Capacity",
    "Airline",
)


def _input_time(value: str) -> str:
    # datetime-local inputs take minutes precision
    return value[:16] if value else ""


def _form_values(flight: Flight) -> Dict[str, str]:
    return {
        "airline_id": str(flight.airline_id) if flight.airline_id is not None else "",
        "flight_number": flight.flight_number,
        "origin": flight.origin,
        "destination": flight.destination,
        "departure_time": _input_time(flight.departure_time),
        "arrival_time": _input_time(flight.arrival_time),
        "base_price": f"{flight.base_price:.2f}",
        "capacity": str(flight.capacity),
    }


def _from_form(form: Dict[str, str], flight_id: Optional[int] = None) -> Flight:
    return Flight(
        id=flight_id,
        airline_id=parse_int(form.get("airline_id")),
        flight_number=form.get("flight_number", "").strip().upper(),
        origin=form.get("origin", "").strip(),
        destination=form.get("destination", "").strip(),
        departure_time=form.get("departure_time", ""),
        arrival_time=form.get("arrival_time", ""),
        base_price=float(form.get("base_price", "0")),
        capacity=int(form.get("capacity", "0")),
    )


def _fields(values: Dict[str, str], airlines: List[Airline]) -> List[Dict[str, Any]]:
    options = [{"value": str(a.id), "label": f"{a.name} ({a.code_iata})"} for a in airlines]
    return [
        {
            "name": "airline_id",
            "label": "Airline",
            "type": "select",
            "placeholder": "Select an airline",
            "options": options,
            "value": values.get("airline_id", ""),
        },
        {"name": "flight_number", "label": "Flight Number", "value": values.get("flight_number", "")},
        {"name": "origin", "label": "Origin", "value": values.get("origin", "")},
        {"name": "destination", "label": "Destination", "value": values.get("destination", "")},
        {
            "name": "departure_time",
            "label": "Departure Time",
            "type": "datetime-local",
            "value": values.get("departure_time", ""),
        },
        {
            "name": "arrival_time",
            "label": "Arrival Time",
            "type": "datetime-local",
            "value": values.get("arrival_time", ""),
        },
        {
            "name": "base_price",
            "label": "Base Price",
            "type": "number",
            "step": "0.01",
            "value": values.get("base_price", ""),
        },
        {"name": "capacity", "label": "Capacity", "type": "number", "value": values.get("capacity", "")},
    ]


def airline_names(airlines: List[Airline]) -> Dict[int, str]:
    return {a.id: a.name for a in airlines if a.id is not None}


def airline_label(flight: Flight, names: Dict[int, str]) -> str:
    if flight.airline_name:
        return flight.airline_name
    if flight.airline_id is not None and flight.airline_id in names:
        return names[flight.airline_id]
    return "Unknown"


async def _load_list(api, role, params):
    if role != "ADMIN":
        return await flight_service.get_flights(api, params["page"], PAGE_SIZE, params.get("sort")), []
    flights, airlines = await asyncio.gather(
        flight_service.get_flights(api, params["page"], PAGE_SIZE, params.get("sort")),
        airline_service.get_airlines(api, 0, AIRLINE_OPTIONS_SIZE),
    )
    return flights, airlines.content


async def _load_airline_options(api, role, params):
    result = await airline_service.get_airlines(api, 0, AIRLINE_OPTIONS_SIZE)
    return result.content


async def _load_flight(api, role, params):
    flight = await flight_service.get_flight(api, params["flight_id"])
    if role != "ADMIN":
        return flight, []
    return flight, await _load_airline_options(api, role, params)


@router.get("", response_class=HTMLResponse)
async def flight_list(
    page: int = 0, sort: Optional[str] = None, ctx: PageContext = Depends(page_context)
):
    state = await run_guarded(
        ctx,
        "flights",
        ANY_ROLE,
        denied_redirect="/",
        fetch=_load_list,
        params={"page": max(page, 0), "sort": sort},
    )
    early = await early_exit(ctx, state)
    if early is not None:
        return early

    is_admin = state.get("role") == "ADMIN"
    result, airlines = state.get("data") or (None, [])
    names = airline_names(airlines)
    rows = []
    for flight in result.content if result else []:
        if is_admin:
            actions = [
                {"label": "Edit", "href": f"/flights/{flight.id}"},
                {
                    "label": "Delete",
                    "post": f"/flights/{flight.id}/delete",
                    "confirm": f"Delete flight {flight.flight_number}?",
                },
            ]
        else:
            actions = [{"label": "View", "href": f"/flights/{flight.id}"}]
        rows.append(
            {
                "cells": [
                    flight.flight_number,
                    flight.origin,
                    flight.destination,
                    flight.departure_time,
                    flight.arrival_time,
                    f"{flight.base_price:.2f}",
                    flight.capacity,
                    airline_label(flight, names),
                ],
                "actions": actions,
            }
        )

    return await render(
        ctx,
        "table.html",
        title="Flights",
        columns=COLUMNS,
        rows=rows,
        empty_message="No flights found.",
        create_href="/flights/new" if is_admin else None,
        create_label="Add Flight",
        pager=pager("/flights", result),
        notification=state.get("notification"),
    )


async def _flight_form(
    ctx: PageContext, title: str, action: str, values, airlines, **context
):
    return await render(
        ctx,
        "form.html",
        title=title,
        action=action,
        fields=_fields(values, airlines or []),
        submit_label="Save",
        cancel_href="/flights",
        **context,
    )


@router.get("/new", response_class=HTMLResponse)
async def flight_new(ctx: PageContext = Depends(page_context)):
    state = await run_guarded(
        ctx, "flight-new", ADMIN_ONLY, denied_redirect="/flights", fetch=_load_airline_options
    )
    early = await early_exit(ctx, state)
    if early is not None:
        return early
    return await _flight_form(
        ctx,
        "Add Flight",
        "/flights/new",
        {},
        state.get("data"),
        notification=state.get("notification"),
    )


@router.post("/new")
async def flight_create(request: Request, ctx: PageContext = Depends(page_context)):
    state = await run_guarded(
        ctx, "flight-new", ADMIN_ONLY, denied_redirect="/flights", fetch=_load_airline_options
    )
    early = await early_exit(ctx, state)
    if early is not None:
        return early

    airlines = state.get("data")
    form = await form_data(request)
    errors = validate_flight(form)
    if errors:
        return await _flight_form(ctx, "Add Flight", "/flights/new", form, airlines, errors=errors)

    outcome = await attempt(flight_service.create_flight(ctx.api, _from_form(form)), Flight)
    if not outcome.ok:
        return await _flight_form(
            ctx,
            "Add Flight",
            "/flights/new",
            form,
            airlines,
            errors=outcome.errors,
            notification=outcome.notification,
        )
    logger.info("flight created number=%s", form.get("flight_number"))
    return redirect(ctx, "/flights", flash="Flight created successfully")


@router.get("/{flight_id}", response_class=HTMLResponse)
async def flight_detail(flight_id: int, ctx: PageContext = Depends(page_context)):
    state = await run_guarded(
        ctx,
        "flight-detail",
        ANY_ROLE,
        denied_redirect="/flights",
        fetch=_load_flight,
        params={"flight_id": flight_id, "back_href": "/flights"},
    )
    early = await early_exit(ctx, state)
    if early is not None:
        return early

    flight, airlines = state.get("data") or (None, [])
    if state.get("role") == "ADMIN":
        return await _flight_form(
            ctx,
            "Edit Flight",
            f"/flights/{flight_id}",
            _form_values(flight) if flight else {},
            airlines,
            notification=state.get("notification"),
        )

    sections = []
    if flight is not None:
        sections.append(
            {
                "title": f"Flight {flight.flight_number}",
                "entries": [
                    ("Origin", flight.origin),
                    ("Destination", flight.destination),
                    ("Departure", flight.departure_time),
                    ("Arrival", flight.arrival_time),
                    ("Base Price", f"{flight.base_price:.2f}"),
                    ("Capacity", flight.capacity),
                    ("Airline", airline_label(flight, {})),
                ],
            }
        )
    return await render(
        ctx,
        "detail.html",
        title="Flight Details",
        sections=sections,
        back_href="/flights",
        actions=[{"label": "Book this flight", "href": f"/bookings/new?flight_id={flight_id}"}]
        if flight is not None
        else [],
        notification=state.get("notification"),
    )


@router.post("/{flight_id}")
async def flight_update(flight_id: int, request: Request, ctx: PageContext = Depends(page_context)):
    state = await run_guarded(
        ctx,
        "flight-edit",
        ADMIN_ONLY,
        denied_redirect="/flights",
        fetch=_load_flight,
        params={"flight_id": flight_id, "back_href": "/flights"},
    )
    early = await early_exit(ctx, state)
    if early is not None:
        return early

    action = f"/flights/{flight_id}"
    form = await form_data(request)
    original, airlines = state.get("data") or (None, [])
    if original is None:
        return await _flight_form(
            ctx, "Edit Flight", action, form, airlines, notification=state.get("notification")
        )

    errors = validate_flight(form)
    if errors:
        return await _flight_form(ctx, "Edit Flight", action, form, airlines, errors=errors)

    if not changed(_form_values(original), form):
        return await _flight_form(
            ctx, "Edit Flight", action, form, airlines, notification=NO_CHANGES_MESSAGE
        )

    outcome = await attempt(
        flight_service.update_flight(ctx.api, flight_id, _from_form(form, flight_id)), Flight
    )
    if not outcome.ok:
        return await _flight_form(
            ctx,
            "Edit Flight",
            action,
            form,
            airlines,
            errors=outcome.errors,
            notification=outcome.notification,
        )
    return redirect(ctx, "/flights", flash="Flight updated successfully")


@router.post("/{flight_id}/delete")
async def flight_delete(flight_id: int, ctx: PageContext = Depends(page_context)):
    state = await run_guarded(ctx, "flight-delete", ADMIN_ONLY, denied_redirect="/flights")
    early = await early_exit(ctx, state)
    if early is not None:
        return early

    outcome = await attempt(flight_service.delete_flight(ctx.api, flight_id))
    if not outcome.ok:
        return redirect(
            ctx, "/flights", flash=outcome.notification or map_message(), level="error"
        )
    return redirect(ctx, "/flights", flash="Flight deleted successfully")
