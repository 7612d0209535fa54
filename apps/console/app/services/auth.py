from __future__ import annotations

from typing import Optional

import httpx

from console_schemas.requests import RegisterRequest
from shared.logging import get_logger
from ..api_client import ApiClient
from ..errors import AuthError, body_message, response_body

logger = get_logger(__name__)


def _auth_error(exc: httpx.HTTPError, fallback: str) -> AuthError:
    if isinstance(exc, httpx.HTTPStatusError):
        message = body_message(response_body(exc.response))
        return AuthError(message or fallback, exc.response.status_code)
    return AuthError(fallback)


async def register(
    api: ApiClient, first_name: str, last_name: str, email: str, password: str
) -> Optional[str]:
    payload = RegisterRequest(
        first_name=first_name, last_name=last_name, email=email, password=password
    )
    try:
        res = await api.post("/auth/register", json=payload.to_wire())
    except httpx.HTTPError as exc:
        raise _auth_error(exc, "Registration failed") from exc
    body = response_body(res)
    return body if isinstance(body, str) else None


async def login(api: ApiClient, email: str, password: str) -> str:
    """Exchange credentials for a bearer token and persist it in the client's token store."""
    try:
        res = await api.post("/auth/login", params={"email": email, "password": password})
    except httpx.HTTPError as exc:
        raise _auth_error(exc, "Invalid email or password") from exc

    token = response_body(res)
    if not token or not isinstance(token, str):
        raise AuthError("No token received from server", res.status_code)

    await api.store.save(token)
    logger.info("login ok for %s", email)
    return token


async def logout(api: ApiClient) -> None:
    await api.store.clear()
