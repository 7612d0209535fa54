from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from console_schemas.models import Airline
from shared.logging import get_logger
from ..errors import NO_CHANGES_MESSAGE, map_message
from ..services import airlines as airline_service
from ..validation import validate_airline
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
    redirect,
    render,
    run_guarded,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/airlines")

PAGE_SIZE = 20
COLUMNS = ("IATA", "ICAO", "Name", "Country", "Fleet Size")
FIELD_KEYS = ("code_iata", "code_icao", "name", "country", "fleet_size")


def _fields(values: Dict[str, str]) -> List[Dict[str, Any]]:
    return [
        {"name": "code_iata", "label": "IATA Code", "value": values.get("code_iata", ""), "maxlength": 2},
        {"name": "code_icao", "label": "ICAO Code", "value": values.get("code_icao", ""), "maxlength": 3},
        {"name": "name", "label": "Name", "value": values.get("name", ""), "maxlength": 100},
        {"name": "country", "label": "Country", "value": values.get("country", ""), "maxlength": 60},
        {"name": "fleet_size", "label": "Fleet Size", "value": values.get("fleet_size", ""), "maxlength": 6},
    ]


def _form_values(airline: Airline) -> Dict[str, str]:
    return {key: str(getattr(airline, key) or "") for key in FIELD_KEYS}


def _from_form(form: Dict[str, str], airline_id=None) -> Airline:
    return Airline(id=airline_id, **{key: form.get(key, "").strip() for key in FIELD_KEYS})


async def _load_page(api, role, params):
    return await airline_service.get_airlines(api, params["page"], PAGE_SIZE)


async def _load_airline(api, role, params):
    return await airline_service.get_airline(api, params["airline_id"])


@router.get("", response_class=HTMLResponse)
async def airline_list(page: int = 0, ctx: PageContext = Depends(page_context)):
    state = await run_guarded(
        ctx, "airlines", ANY_ROLE, denied_redirect="/", fetch=_load_page, params={"page": max(page, 0)}
    )
    early = await early_exit(ctx, state)
    if early is not None:
        return early

    is_admin = state.get("role") == "ADMIN"
    result = state.get("data")
    rows = []
    for airline in result.content if result else []:
        actions = []
        if is_admin:
            actions = [
                {"label": "Edit", "href": f"/airlines/{airline.id}"},
                {
                    "label": "Delete",
                    "post": f"/airlines/{airline.id}/delete",
                    "confirm": f"Delete airline {airline.name}?",
                },
            ]
        rows.append(
            {
                "cells": [
                    airline.code_iata,
                    airline.code_icao,
                    airline.name,
                    airline.country,
                    airline.fleet_size,
                ],
                "actions": actions,
            }
        )

    return await render(
        ctx,
        "table.html",
        title="Airlines",
        columns=COLUMNS,
        rows=rows,
        empty_message="No airlines found.",
        create_href="/airlines/new" if is_admin else None,
        create_label="Add Airline",
        pager=pager("/airlines", result),
        notification=state.get("notification"),
    )


async def _airline_form(ctx: PageContext, title: str, action: str, values, **context):
    return await render(
        ctx,
        "form.html",
        title=title,
        action=action,
        fields=_fields(values),
        submit_label="Save",
        cancel_href="/airlines",
        **context,
    )


@router.get("/new", response_class=HTMLResponse)
async def airline_new(ctx: PageContext = Depends(page_context)):
    state = await run_guarded(ctx, "airline-new", ADMIN_ONLY, denied_redirect="/")
    early = await early_exit(ctx, state)
    if early is not None:
        return early
    return await _airline_form(ctx, "Add Airline", "/airlines/new", {})


@router.post("/new")
async def airline_create(request: Request, ctx: PageContext = Depends(page_context)):
    state = await run_guarded(ctx, "airline-new", ADMIN_ONLY, denied_redirect="/")
    early = await early_exit(ctx, state)
    if early is not None:
        return early

    form = await form_data(request)
    errors = validate_airline(form)
    if errors:
        return await _airline_form(ctx, "Add Airline", "/airlines/new", form, errors=errors)

    outcome = await attempt(airline_service.create_airline(ctx.api, _from_form(form)), Airline)
    if not outcome.ok:
        return await _airline_form(
            ctx,
            "Add Airline",
            "/airlines/new",
            form,
            errors=outcome.errors,
            notification=outcome.notification,
        )
    logger.info("airline created code=%s", form.get("code_iata"))
    return redirect(ctx, "/airlines", flash="New airline added successfully")


@router.get("/{airline_id}", response_class=HTMLResponse)
async def airline_edit(airline_id: int, ctx: PageContext = Depends(page_context)):
    state = await run_guarded(
        ctx,
        "airline-edit",
        ADMIN_ONLY,
        denied_redirect="/",
        fetch=_load_airline,
        params={"airline_id": airline_id, "back_href": "/airlines"},
    )
    early = await early_exit(ctx, state)
    if early is not None:
        return early

    airline = state.get("data")
    values = _form_values(airline) if airline else {}
    return await _airline_form(
        ctx,
        "Edit Airline",
        f"/airlines/{airline_id}",
        values,
        notification=state.get("notification"),
    )


@router.post("/{airline_id}")
async def airline_update(
    airline_id: int, request: Request, ctx: PageContext = Depends(page_context)
):
    state = await run_guarded(
        ctx,
        "airline-edit",
        ADMIN_ONLY,
        denied_redirect="/",
        fetch=_load_airline,
        params={"airline_id": airline_id, "back_href": "/airlines"},
    )
    early = await early_exit(ctx, state)
    if early is not None:
        return early

    action = f"/airlines/{airline_id}"
    form = await form_data(request)
    if state.get("status") == "error":
        return await _airline_form(
            ctx, "Edit Airline", action, form, notification=state.get("notification")
        )

    errors = validate_airline(form)
    if errors:
        return await _airline_form(ctx, "Edit Airline", action, form, errors=errors)

    original = state["data"]
    if not changed(_form_values(original), form):
        return await _airline_form(
            ctx, "Edit Airline", action, form, notification=NO_CHANGES_MESSAGE
        )

    airline = _from_form(form, airline_id)
    airline.flight_ids = original.flight_ids
    outcome = await attempt(airline_service.update_airline(ctx.api, airline_id, airline), Airline)
    if not outcome.ok:
        return await _airline_form(
            ctx,
            "Edit Airline",
            action,
            form,
            errors=outcome.errors,
            notification=outcome.notification,
        )
    return redirect(ctx, "/airlines", flash="Airline updated successfully")


@router.post("/{airline_id}/delete")
async def airline_delete(airline_id: int, ctx: PageContext = Depends(page_context)):
    state = await run_guarded(ctx, "airline-delete", ADMIN_ONLY, denied_redirect="/")
    early = await early_exit(ctx, state)
    if early is not None:
        return early

    outcome = await attempt(airline_service.delete_airline(ctx.api, airline_id))
    if not outcome.ok:
        return redirect(ctx, "/airlines", flash=outcome.notification or map_message(), level="error")
    return redirect(ctx, "/airlines", flash="Airline deleted successfully")
