from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8080/api")
API_TIMEOUT_SECONDS = float(os.getenv("API_TIMEOUT_SECONDS", "10"))

LOGIN_PATH = "/login"


def _optional_float(name: str) -> Optional[float]:
    raw = os.getenv(name)
    return float(raw) if raw else None


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class ConsoleConfig:
    api_base_url: str = API_BASE_URL
    api_timeout_seconds: float = API_TIMEOUT_SECONDS
    page_load_timeout_seconds: Optional[float] = None
    token_store: str = "cookie"
    token_cookie: str = "token"
    cookie_secure: bool = False
    session_ttl_seconds: int = 7200

    @classmethod
    def from_env(cls) -> "ConsoleConfig":
        return cls(
            api_base_url=os.getenv("API_BASE_URL", API_BASE_URL),
            api_timeout_seconds=float(os.getenv("API_TIMEOUT_SECONDS", str(API_TIMEOUT_SECONDS))),
            page_load_timeout_seconds=_optional_float("PAGE_LOAD_TIMEOUT_SECONDS"),
            token_store=os.getenv("TOKEN_STORE", "cookie").lower(),
            token_cookie=os.getenv("TOKEN_COOKIE", "token"),
            cookie_secure=_flag("COOKIE_SECURE"),
            session_ttl_seconds=int(os.getenv("SESSION_TTL_SECONDS", "7200")),
        )
