from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Iterable, List, Optional, Type
from urllib.parse import quote, unquote

import httpx
from fastapi import Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel
from starlette.responses import Response

from shared.logging import get_logger
from ..api_client import AbortSignal, ApiClient, RequestAborted
from ..config import LOGIN_PATH, ConsoleConfig
from ..errors import FieldErrorsFailure, display_message, map_message, normalize_error
from ..graph import guard
from ..session import SessionContext
from ..state import GuardState
from ..token_store import CookieTokenStore, RedisTokenStore, TokenStore

logger = get_logger(__name__)

TEMPLATES = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))

FLASH_COOKIE = "flash"
FLASH_LEVELS = ("success", "error")
ANY_ROLE = ("ADMIN", "USER")
ADMIN_ONLY = ("ADMIN",)

# (label, href, roles allowed to see it; None = every signed-in user)
NAV_LINKS = (
    ("Dashboard", "/", None),
    ("Airlines", "/airlines", ADMIN_ONLY),
    ("Passengers", "/passengers", ADMIN_ONLY),
    ("Flights", "/flights", None),
    ("Bookings", "/bookings", None),
)

Fetch = Callable[[ApiClient, Optional[str], Dict[str, Any]], Awaitable[Any]]


@dataclass
class PageContext:
    request: Request
    store: TokenStore
    session: SessionContext
    api: ApiClient
    signal: AbortSignal


def build_token_store(request: Request, config: ConsoleConfig) -> TokenStore:
    if config.token_store == "redis":
        return RedisTokenStore(
            request.app.state.redis.connection,
            request.cookies,
            cookie_name=config.token_cookie,
            ttl_seconds=config.session_ttl_seconds,
            secure=config.cookie_secure,
        )
    return CookieTokenStore(
        request.cookies,
        cookie_name=config.token_cookie,
        secure=config.cookie_secure,
        max_age=config.session_ttl_seconds,
    )


async def page_context(request: Request) -> AsyncIterator[PageContext]:
    """FastAPI dependency: a fresh session and API client for every request."""
    config: ConsoleConfig = request.app.state.config
    store = build_token_store(request, config)
    signal = AbortSignal()
    if config.page_load_timeout_seconds:
        signal.abort_after(config.page_load_timeout_seconds)
    api = ApiClient(
        request.app.state.http,
        store,
        current_path=request.url.path,
        login_path=LOGIN_PATH,
        signal=signal,
    )
    try:
        yield PageContext(
            request=request, store=store, session=SessionContext(store), api=api, signal=signal
        )
    finally:
        signal.dispose()


async def run_guarded(
    ctx: PageContext,
    page: str,
    roles: Iterable[str] = (),
    denied_redirect: str = "/",
    fetch: Optional[Fetch] = None,
    params: Optional[Dict[str, Any]] = None,
) -> GuardState:
    """Check the session and role, then load the page's data. Every call starts from scratch."""
    return await guard.ainvoke(
        {
            "page": page,
            "allowed_roles": list(roles),
            "denied_redirect": denied_redirect,
            "params": params or {},
            "status": "initializing",
        },
        config={"configurable": {"session": ctx.session, "api": ctx.api, "fetch": fetch}},
    )


async def form_data(request: Request) -> Dict[str, str]:
    form = await request.form()
    return {k: v for k, v in form.items() if isinstance(v, str)}


def parse_int(raw: Any) -> Optional[int]:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def wire_field_errors(model: Type[BaseModel], errors: Dict[str, str]) -> Dict[str, str]:
    """Backend field errors use wire names (flightNumber); forms use attribute names."""
    by_alias = {f.alias or name: name for name, f in model.model_fields.items()}
    return {by_alias.get(k, k): v for k, v in errors.items()}


async def navigation(ctx: PageContext) -> Dict[str, Any]:
    """Re-derived on every render. An expired token is dropped on sight."""
    authenticated = await ctx.session.is_authenticated()
    if not authenticated:
        if await ctx.session.token():
            await ctx.session.logout()
        return {"authenticated": False, "role": None, "username": None, "links": []}

    role = await ctx.session.get_user_role()
    path = ctx.request.url.path
    links: List[Dict[str, Any]] = []
    for label, href, roles in NAV_LINKS:
        if roles is not None and role not in roles:
            continue
        active = path == href if href == "/" else path.startswith(href)
        links.append({"label": label, "href": href, "active": active})
    return {
        "authenticated": True,
        "role": role,
        "username": await ctx.session.username(),
        "links": links,
    }


async def render(
    ctx: PageContext, template: str, status_code: int = 200, **context: Any
) -> HTMLResponse:
    flash = read_flash(ctx.request)
    context.setdefault("notification", None)
    context.setdefault("errors", {})
    response = TEMPLATES.TemplateResponse(
        ctx.request,
        template,
        {"nav": await navigation(ctx), "flash": flash, **context},
        status_code=status_code,
    )
    if flash:
        response.delete_cookie(FLASH_COOKIE, path="/")
    ctx.store.commit(response)
    return response


def read_flash(request: Request) -> Optional[Dict[str, str]]:
    raw = request.cookies.get(FLASH_COOKIE)
    if not raw:
        return None
    level, _, message = unquote(raw).partition(":")
    if level not in FLASH_LEVELS or not message:
        return None
    return {"level": level, "message": message}


def redirect(
    ctx: PageContext, url: str, flash: Optional[str] = None, level: str = "success"
) -> RedirectResponse:
    response = RedirectResponse(url, status_code=303)
    if flash:
        response.set_cookie(
            FLASH_COOKIE, quote(f"{level}:{flash}"), max_age=30, path="/", samesite="lax"
        )
    ctx.store.commit(response)
    return response


async def early_exit(ctx: PageContext, state: GuardState) -> Optional[Response]:
    """Redirect and not-found outcomes end the page; ready and error render it."""
    status = state.get("status")
    if status == "redirecting":
        return redirect(ctx, state.get("redirect_to") or LOGIN_PATH)
    if status == "not_found":
        return await render(
            ctx,
            "message.html",
            status_code=404,
            title="Not found",
            message=state.get("notification"),
            back_href=state.get("params", {}).get("back_href", "/"),
        )
    return None


@dataclass
class Outcome:
    ok: bool = True
    value: Any = None
    errors: Dict[str, str] = field(default_factory=dict)
    notification: Optional[str] = None


async def attempt(
    call: Awaitable[Any],
    model: Optional[Type[BaseModel]] = None,
    mapper: Callable[[Optional[str]], str] = map_message,
) -> Outcome:
    """
    Await a mutating service call. Backend field errors land next to their
    inputs; anything else becomes a single mapped notification.
    LoginRequired is not caught here.
    """
    try:
        return Outcome(value=await call)
    except (httpx.HTTPError, RequestAborted) as exc:
        failure = normalize_error(exc)
        logger.info("submit failed: %s", failure)

    if isinstance(failure, FieldErrorsFailure):
        errors = wire_field_errors(model, failure.errors) if model else dict(failure.errors)
        return Outcome(ok=False, errors=errors)
    return Outcome(ok=False, notification=display_message(failure, mapper))


def changed(original: Dict[str, str], form: Dict[str, str]) -> bool:
    return any(form.get(key, "") != value for key, value in original.items())


def pager(base: str, result: Any) -> Dict[str, Any]:
    if result is None or result.total_pages <= 1:
        return {}
    number = result.number
    return {
        "label": f"Page {number + 1} of {result.total_pages}",
        "prev": f"{base}?page={number - 1}" if number > 0 else None,
        "next": f"{base}?page={number + 1}" if number + 1 < result.total_pages else None,
    }
