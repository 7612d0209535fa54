import httpx
import pytest

from app.api_client import ApiClient, LoginRequired
from app.errors import FALLBACK_MESSAGE, NOT_FOUND_MESSAGE
from app.graph import guard
from app.session import SessionContext
from conftest import MemoryTokenStore, make_token


def _status_error(status: int, **kwargs) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "http://backend.test/api/airlines/1")
    response = httpx.Response(status, request=request, **kwargs)
    return httpx.HTTPStatusError("failed", request=request, response=response)


class Recorder:
    def __init__(self, result=None, error=None):
        self.calls = []
        self.result = result
        self.error = error

    async def __call__(self, api, role, params):
        self.calls.append((role, params))
        if self.error is not None:
            raise self.error
        return self.result


async def _run(token, fetch=None, roles=(), denied="/", params=None, backend=None):
    store = MemoryTokenStore(token)
    http = backend.client() if backend else httpx.AsyncClient(base_url="http://backend.test/api")
    api = ApiClient(http, store, current_path="/somewhere")
    return await guard.ainvoke(
        {
            "page": "test",
            "allowed_roles": list(roles),
            "denied_redirect": denied,
            "params": params or {},
            "status": "initializing",
        },
        config={"configurable": {"session": SessionContext(store), "api": api, "fetch": fetch}},
    )


async def test_unauthenticated_redirects_to_login_without_fetching():
    fetch = Recorder(result=[])
    state = await _run(None, fetch)

    assert state["status"] == "redirecting"
    assert state["redirect_to"] == "/login"
    assert fetch.calls == []


async def test_expired_token_redirects_to_login():
    state = await _run(make_token(exp_offset=-5), Recorder(result=[]))
    assert state["redirect_to"] == "/login"


async def test_wrong_role_goes_to_denied_target():
    fetch = Recorder(result=[])
    state = await _run(make_token("ROLE_USER"), fetch, roles=("ADMIN",), denied="/flights")

    assert state["status"] == "redirecting"
    assert state["redirect_to"] == "/flights"
    assert state["role"] == "USER"
    assert fetch.calls == []


async def test_allowed_role_loads_data():
    fetch = Recorder(result=["a", "b"])
    state = await _run(make_token("ROLE_ADMIN"), fetch, roles=("ADMIN",), params={"page": 2})

    assert state["status"] == "ready"
    assert state["data"] == ["a", "b"]
    assert fetch.calls == [("ADMIN", {"page": 2})]


async def test_no_fetch_is_ready_immediately():
    state = await _run(make_token("ROLE_USER"))
    assert state["status"] == "ready"


async def test_missing_record_is_not_found():
    state = await _run(make_token(), Recorder(error=_status_error(404)))

    assert state["status"] == "not_found"
    assert state["notification"] == NOT_FOUND_MESSAGE


async def test_backend_failure_is_mapped():
    fetch = Recorder(error=_status_error(400, json={"message": "Validation failed"}))
    state = await _run(make_token(), fetch)

    assert state["status"] == "error"
    assert state["notification"] == "Some of the entered data is invalid. Please check your inputs."


async def test_network_failure_uses_fallback():
    state = await _run(make_token(), Recorder(error=httpx.ConnectError("refused")))

    assert state["status"] == "error"
    assert state["notification"] == FALLBACK_MESSAGE


async def test_login_required_propagates(backend):
    backend.add("GET", "/airlines", status=401)

    async def fetch(api, role, params):
        return await api.get("/airlines")

    with pytest.raises(LoginRequired):
        await _run(make_token(), fetch, backend=backend)
