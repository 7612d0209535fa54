from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from shared.logging import get_logger
from ..errors import AuthError, map_login_message, map_registration_message
from ..services import auth
from ..validation import validate_registration
from .common import PageContext, form_data, page_context, redirect, render

logger = get_logger(__name__)

router = APIRouter()

# where each role lands after signing in
HOME_BY_ROLE = {"ADMIN": "/airlines", "USER": "/flights"}


def _login_fields(email: str = "") -> List[Dict[str, Any]]:
    return [
        {"name": "email", "label": "Email", "type": "email", "value": email},
        {"name": "password", "label": "Password", "type": "password", "value": ""},
    ]


def _register_fields(form: Dict[str, str]) -> List[Dict[str, Any]]:
    return [
        {"name": "first_name", "label": "First name", "value": form.get("first_name", "")},
        {"name": "last_name", "label": "Last name", "value": form.get("last_name", "")},
        {"name": "email", "label": "Email", "type": "email", "value": form.get("email", "")},
        {"name": "password", "label": "Password", "type": "password", "value": ""},
    ]


async def _login_form(ctx: PageContext, email: str = "", **context: Any) -> HTMLResponse:
    return await render(
        ctx,
        "form.html",
        title="Login",
        action="/login",
        fields=_login_fields(email),
        submit_label="Login",
        footer_links=[{"label": "Don't have an account? Register", "href": "/register"}],
        **context,
    )


@router.get("/login", response_class=HTMLResponse)
async def login_page(ctx: PageContext = Depends(page_context)):
    return await _login_form(ctx)


@router.post("/login")
async def login_submit(request: Request, ctx: PageContext = Depends(page_context)):
    form = await form_data(request)
    email = form.get("email", "").strip()
    password = form.get("password", "")
    if not email or not password:
        return await _login_form(ctx, email, notification="Please fill in all fields.")

    try:
        await auth.login(ctx.api, email, password)
    except AuthError as e:
        logger.info("login rejected for %s status=%s", email, e.status_code)
        return await _login_form(
            ctx, email, notification=map_login_message(e.message, e.status_code)
        )

    role = await ctx.session.get_user_role()
    return redirect(ctx, HOME_BY_ROLE.get(role, "/"), flash="Login successful")


@router.get("/register", response_class=HTMLResponse)
async def register_page(ctx: PageContext = Depends(page_context)):
    return await render(
        ctx,
        "form.html",
        title="Register",
        action="/register",
        fields=_register_fields({}),
        submit_label="Register",
        footer_links=[{"label": "Already have an account? Login", "href": "/login"}],
    )


@router.post("/register")
async def register_submit(request: Request, ctx: PageContext = Depends(page_context)):
    form = await form_data(request)
    errors = validate_registration(form)
    context: Dict[str, Any] = {
        "title": "Register",
        "action": "/register",
        "fields": _register_fields(form),
        "submit_label": "Register",
        "footer_links": [{"label": "Already have an account? Login", "href": "/login"}],
    }
    if errors:
        return await render(ctx, "form.html", errors=errors, **context)

    try:
        await auth.register(
            ctx.api,
            first_name=form["first_name"].strip(),
            last_name=form["last_name"].strip(),
            email=form["email"].strip(),
            password=form["password"],
        )
    except AuthError as e:
        return await render(
            ctx, "form.html", notification=map_registration_message(e.message), **context
        )

    return redirect(ctx, "/login", flash="Registration successful. Please log in.")


@router.api_route("/logout", methods=["GET", "POST"])
async def logout(ctx: PageContext = Depends(page_context)):
    await auth.logout(ctx.api)
    return redirect(ctx, "/login")
