# apps/console/app/nodes.py

from typing import Any, Dict

import httpx
from langchain_core.runnables import RunnableConfig
from pydantic import ValidationError

from shared.logging import get_logger
from .api_client import RequestAborted
from .config import LOGIN_PATH
from .errors import NOT_FOUND_MESSAGE, display_message, normalize_error
from .state import GuardState

logger = get_logger(__name__)


async def check_auth(state: GuardState, config: RunnableConfig) -> Dict[str, Any]:
    """
    Reads the session fresh from the token store and decides whether the
    page may load, or where the browser should go instead.
    """
    session = config["configurable"]["session"]
    page = state.get("page", "?")

    if not await session.is_authenticated():
        logger.info("page=%s unauthenticated, redirecting to login", page)
        return {"status": "redirecting", "redirect_to": LOGIN_PATH, "role": None}

    role = await session.get_user_role()
    allowed = state.get("allowed_roles") or []
    if allowed and role not in allowed:
        target = state.get("denied_redirect") or "/"
        logger.info("page=%s role=%s not allowed, redirecting to %s", page, role, target)
        return {"status": "redirecting", "redirect_to": target, "role": role}

    return {"status": "loading", "role": role}


async def load_data(state: GuardState, config: RunnableConfig) -> Dict[str, Any]:
    """Runs the page's fetch function and files the outcome as ready, not_found or error."""
    fetch = config["configurable"].get("fetch")
    if fetch is None:
        return {"status": "ready", "data": None}

    api = config["configurable"]["api"]
    try:
        data = await fetch(api, state.get("role"), state.get("params") or {})
    except httpx.HTTPStatusError as e:
        if e.response.status_code == 404:
            return {"status": "not_found", "notification": NOT_FOUND_MESSAGE}
        return {
            "status": "error",
            "notification": display_message(normalize_error(e)),
            "error": repr(e),
        }
    except (httpx.TransportError, RequestAborted, ValidationError) as e:
        logger.warning("page=%s load failed err=%r", state.get("page", "?"), e)
        return {
            "status": "error",
            "notification": display_message(normalize_error(e)),
            "error": repr(e),
        }

    return {"status": "ready", "data": data}


def should_load(state: GuardState) -> str:
    return "load" if state.get("status") == "loading" else "end"
