"""Redis connection behind the server-side token store (TOKEN_STORE=redis)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError


@dataclass(frozen=True)
class TokenRedisSettings:
    url: str = "redis://localhost:6379/0"
    timeout_seconds: float = 1.0

    @classmethod
    def from_env(cls) -> "TokenRedisSettings":
        return cls(
            url=os.getenv("REDIS_URL", cls.url),
            timeout_seconds=float(os.getenv("REDIS_TIMEOUT_SECONDS", str(cls.timeout_seconds))),
        )


class TokenRedis:
    """
    One pooled connection per process. Nothing is dialled until the first
    command, so a console started with Redis down still serves the login page.
    """

    def __init__(self, settings: TokenRedisSettings):
        self.settings = settings
        self._conn: Optional[redis.Redis] = None

    @classmethod
    def from_env(cls) -> "TokenRedis":
        return cls(TokenRedisSettings.from_env())

    @property
    def connection(self) -> redis.Redis:
        if self._conn is None:
            # tokens are stored as text
            self._conn = redis.from_url(
                self.settings.url,
                decode_responses=True,
                socket_timeout=self.settings.timeout_seconds,
                socket_connect_timeout=self.settings.timeout_seconds,
            )
        return self._conn

    async def available(self) -> bool:
        try:
            return bool(await self.connection.ping())
        except (RedisError, OSError):
            return False

    async def close(self) -> None:
        if self._conn is not None:
            await self._conn.aclose()
            self._conn = None
