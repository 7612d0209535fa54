from __future__ import annotations

import uuid
from typing import Mapping, Optional, Protocol

import redis.asyncio as redis
from starlette.responses import Response

_UNSET = object()


class TokenStore(Protocol):
    """Origin-scoped storage for the bearer token. No expiry logic lives here."""

    async def save(self, token: str) -> None: ...

    async def read(self) -> Optional[str]: ...

    async def clear(self) -> None: ...

    def commit(self, response: Response) -> None: ...


class CookieTokenStore:
    """
    Keeps the token itself in an HTTP-only cookie.
    Writes made while handling a request are held until commit() copies them
    onto the outgoing response; reads see them immediately.
    """

    def __init__(
        self,
        cookies: Mapping[str, str],
        cookie_name: str = "token",
        secure: bool = False,
        max_age: Optional[int] = None,
    ):
        self._cookies = cookies
        self.cookie_name = cookie_name
        self._secure = secure
        self._max_age = max_age
        self._pending = _UNSET

    async def save(self, token: str) -> None:
        self._pending = token

    async def read(self) -> Optional[str]:
        if self._pending is not _UNSET:
            return self._pending
        return self._cookies.get(self.cookie_name) or None

    async def clear(self) -> None:
        self._pending = None

    def commit(self, response: Response) -> None:
        if self._pending is _UNSET:
            return
        if self._pending is None:
            response.delete_cookie(self.cookie_name, path="/")
        else:
            response.set_cookie(
                self.cookie_name,
                self._pending,
                max_age=self._max_age,
                path="/",
                httponly=True,
                samesite="lax",
                secure=self._secure,
            )


class RedisTokenStore:
    """
    Keeps the token server-side in Redis; the browser only holds an opaque
    session id cookie. Keys: console:token:{sid}
    """

    def __init__(
        self,
        r: redis.Redis,
        cookies: Mapping[str, str],
        cookie_name: str = "token",
        ttl_seconds: int = 7200,
        secure: bool = False,
    ):
        self.r = r
        self.cookie_name = cookie_name
        self.ttl_seconds = ttl_seconds
        self._secure = secure
        self._sid: Optional[str] = cookies.get(cookie_name) or None
        self._cookie_action: Optional[str] = None

    def _k(self, sid: str) -> str:
        return f"console:token:{sid}"

    async def save(self, token: str) -> None:
        if self._sid is None:
            self._sid = uuid.uuid4().hex
        await self.r.set(self._k(self._sid), token, ex=self.ttl_seconds)
        self._cookie_action = "set"

    async def read(self) -> Optional[str]:
        if self._sid is None:
            return None
        return await self.r.get(self._k(self._sid))

    async def clear(self) -> None:
        if self._sid is not None:
            await self.r.delete(self._k(self._sid))
        self._sid = None
        self._cookie_action = "delete"

    def commit(self, response: Response) -> None:
        if self._cookie_action == "delete":
            response.delete_cookie(self.cookie_name, path="/")
        elif self._cookie_action == "set" and self._sid is not None:
            response.set_cookie(
                self.cookie_name,
                self._sid,
                max_age=self.ttl_seconds,
                path="/",
                httponly=True,
                samesite="lax",
                secure=self._secure,
            )
