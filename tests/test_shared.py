import io
import logging

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from shared import redis_client
from shared.logging import configure_logging, get_logger, resolve_level
from shared.redis_client import TokenRedis, TokenRedisSettings


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)


def test_level_names_resolve():
    assert resolve_level("debug") == logging.DEBUG
    assert resolve_level(" Warning ") == logging.WARNING
    assert resolve_level(logging.ERROR) == logging.ERROR
    assert resolve_level("chatty") == logging.INFO
    assert resolve_level(None) == logging.INFO


def test_logging_installs_one_handler(root_logger):
    buf = io.StringIO()
    before = len(root_logger.handlers)

    configure_logging("info", stream=buf)
    configure_logging("warning", stream=io.StringIO())

    assert len(root_logger.handlers) == before + 1
    assert root_logger.level == logging.WARNING

    get_logger("app.pages").warning("flight %s deleted", "TK1")
    line = buf.getvalue().strip()
    assert line.endswith("WARNING console [app.pages] flight TK1 deleted")
    assert logging.getLogger("httpx").level == logging.WARNING


def test_redis_settings_from_env(monkeypatch):
    monkeypatch.setenv("REDIS_URL", "redis://cache:6380/2")
    monkeypatch.setenv("REDIS_TIMEOUT_SECONDS", "0.5")

    settings = TokenRedisSettings.from_env()

    assert settings.url == "redis://cache:6380/2"
    assert settings.timeout_seconds == 0.5


def test_redis_settings_defaults(monkeypatch):
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.delenv("REDIS_TIMEOUT_SECONDS", raising=False)

    assert TokenRedisSettings.from_env() == TokenRedisSettings()


class StubConnection:
    def __init__(self, fail=False):
        self.fail = fail
        self.closed = False

    async def ping(self):
        if self.fail:
            raise RedisConnectionError("refused")
        return True

    async def aclose(self):
        self.closed = True


async def test_token_redis_connects_lazily_once(monkeypatch):
    calls = []

    def from_url(url, **kwargs):
        calls.append((url, kwargs))
        return StubConnection()

    monkeypatch.setattr(redis_client.redis, "from_url", from_url)
    tokens = TokenRedis(TokenRedisSettings(url="redis://cache:6379/0", timeout_seconds=2.0))

    assert calls == []
    first = tokens.connection
    assert tokens.connection is first
    assert await tokens.available()

    [(url, kwargs)] = calls
    assert url == "redis://cache:6379/0"
    assert kwargs["decode_responses"] is True
    assert kwargs["socket_timeout"] == 2.0

    await tokens.close()
    assert first.closed


async def test_unreachable_redis_is_reported_not_raised(monkeypatch):
    monkeypatch.setattr(redis_client.redis, "from_url", lambda url, **kw: StubConnection(fail=True))

    assert not await TokenRedis(TokenRedisSettings()).available()


async def test_close_without_connection_is_a_no_op():
    await TokenRedis(TokenRedisSettings()).close()
