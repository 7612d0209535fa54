import json
import time
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import httpx
import pytest
from jose import jwt

API_BASE = "http://backend.test/api"


def make_token(
    role: Optional[str] = "ROLE_ADMIN",
    exp_offset: int = 3600,
    sub: str = "admin@example.com",
) -> str:
    claims: Dict[str, Any] = {"sub": sub, "exp": int(time.time()) + exp_offset}
    if role is not None:
        claims["role"] = role
    return jwt.encode(claims, "test-secret", algorithm="HS256")


class MemoryTokenStore:
    def __init__(self, token: Optional[str] = None):
        self.token = token
        self.cleared = False

    async def save(self, token: str) -> None:
        self.token = token

    async def read(self) -> Optional[str]:
        return self.token

    async def clear(self) -> None:
        self.token = None
        self.cleared = True

    def commit(self, response) -> None:
        pass


class FakeRedis:
    def __init__(self):
        self.data: Dict[str, str] = {}
        self.ttls: Dict[str, Optional[int]] = {}

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def set(self, key: str, value: str, ex: Optional[int] = None) -> bool:
        self.data[key] = value
        self.ttls[key] = ex
        return True

    async def delete(self, key: str) -> int:
        self.ttls.pop(key, None)
        return 1 if self.data.pop(key, None) is not None else 0


Reply = Union[Tuple[int, Any], Callable[[httpx.Request], httpx.Response]]


class FakeBackend:
    """Routes keyed by (method, path below /api). Unknown routes answer 404."""

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Reply] = {}
        self.requests: List[httpx.Request] = []

    def add(self, method: str, path: str, status: int = 200, body: Any = None) -> None:
        self.routes[(method, path)] = (status, body)

    def add_handler(self, method: str, path: str, handler: Callable) -> None:
        self.routes[(method, path)] = handler

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and _path(r) == path]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        reply = self.routes.get((request.method, _path(request)))
        if reply is None:
            return httpx.Response(404, json={"message": "Resource not found"})
        if callable(reply):
            return reply(request)
        status, body = reply
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self), base_url=API_BASE)


def _path(request: httpx.Request) -> str:
    path = request.url.path
    return path[len("/api"):] if path.startswith("/api") else path


def sent_json(request: httpx.Request) -> Any:
    return json.loads(request.content)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def admin_token() -> str:
    return make_token("ROLE_ADMIN", sub="admin@example.com")


@pytest.fixture
def user_token() -> str:
    return make_token("ROLE_USER", sub="user@example.com")
