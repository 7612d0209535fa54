from starlette.responses import Response

from app.token_store import CookieTokenStore, RedisTokenStore
from conftest import FakeRedis


def _set_cookies(response: Response):
    return response.headers.getlist("set-cookie")


async def test_cookie_store_reads_request_cookie():
    store = CookieTokenStore({"token": "abc"})
    assert await store.read() == "abc"


async def test_cookie_store_write_is_visible_before_commit():
    store = CookieTokenStore({})
    await store.save("fresh")
    assert await store.read() == "fresh"

    response = Response()
    store.commit(response)
    [header] = _set_cookies(response)
    assert header.startswith("token=fresh")
    assert "httponly" in header.lower()


async def test_cookie_store_clear_deletes_cookie():
    store = CookieTokenStore({"token": "abc"})
    await store.clear()
    assert await store.read() is None

    response = Response()
    store.commit(response)
    [header] = _set_cookies(response)
    assert header.startswith("token=")
    assert "Max-Age=0" in header


async def test_cookie_store_untouched_commits_nothing():
    store = CookieTokenStore({"token": "abc"})
    response = Response()
    store.commit(response)
    assert _set_cookies(response) == []


async def test_redis_store_keeps_token_server_side():
    r = FakeRedis()
    store = RedisTokenStore(r, {}, ttl_seconds=60)
    await store.save("jwt-value")

    response = Response()
    store.commit(response)
    [header] = _set_cookies(response)
    sid = header.split(";")[0].split("=", 1)[1]

    assert "jwt-value" not in header
    assert r.data[f"console:token:{sid}"] == "jwt-value"
    assert r.ttls[f"console:token:{sid}"] == 60

    follow_up = RedisTokenStore(r, {"token": sid})
    assert await follow_up.read() == "jwt-value"


async def test_redis_store_clear_removes_key():
    r = FakeRedis()
    r.data["console:token:s1"] = "jwt-value"
    store = RedisTokenStore(r, {"token": "s1"})

    await store.clear()

    assert r.data == {}
    assert await store.read() is None
    response = Response()
    store.commit(response)
    assert "Max-Age=0" in _set_cookies(response)[0]


async def test_redis_store_without_cookie_reads_none():
    store = RedisTokenStore(FakeRedis(), {})
    assert await store.read() is None
