from __future__ import annotations

import json
import math
import time
from typing import Any, Dict, Optional

from jose.utils import base64url_decode

from console_schemas.models import Role, Session
from .token_store import TokenStore

ROLE_PREFIX = "ROLE_"
KNOWN_ROLES = ("ADMIN", "USER")


def now_millis() -> int:
    return int(time.time() * 1000)


def _claims(token: Optional[str]) -> Optional[Dict[str, Any]]:
    # Only the payload segment is read; header and signature are the backend's business.
    if not token:
        return None
    segments = token.split(".")
    if len(segments) != 3:
        return None
    try:
        claims = json.loads(base64url_decode(segments[1].encode("ascii")))
    except (ValueError, UnicodeError):
        return None
    return claims if isinstance(claims, dict) else None


def _role(raw: Any) -> Optional[Role]:
    if not isinstance(raw, str):
        return None
    if raw.startswith(ROLE_PREFIX):
        raw = raw[len(ROLE_PREFIX):]
    return raw if raw in KNOWN_ROLES else None


def _expiry_millis(raw: Any) -> int:
    if raw is None or isinstance(raw, bool):
        return 0
    try:
        seconds = float(raw)
    except (TypeError, ValueError):
        return 0
    millis = seconds * 1000
    if not math.isfinite(millis):
        return 0
    return int(millis)


def decode_session(token: Optional[str]) -> Optional[Session]:
    """Decode role/expiry/subject claims. Returns None for absent or unreadable tokens."""
    claims = _claims(token)
    if claims is None:
        return None
    sub = claims.get("sub")
    return Session(
        role=_role(claims.get("role")),
        expires_at_millis=_expiry_millis(claims.get("exp")),
        subject=str(sub) if sub is not None else None,
    )


def is_authenticated(token: Optional[str], at_millis: Optional[int] = None) -> bool:
    session = decode_session(token)
    if session is None:
        return False
    return session.is_valid(now_millis() if at_millis is None else at_millis)


def get_user_role(token: Optional[str]) -> Optional[Role]:
    session = decode_session(token)
    return session.role if session else None


class SessionContext:
    """
    Per-request view of the signed-in user.
    Nothing is cached: every call goes back to the token store.
    """

    def __init__(self, store: TokenStore):
        self.store = store

    async def token(self) -> Optional[str]:
        return await self.store.read()

    async def current(self) -> Optional[Session]:
        return decode_session(await self.store.read())

    async def is_authenticated(self) -> bool:
        return is_authenticated(await self.store.read())

    async def get_user_role(self) -> Optional[Role]:
        return get_user_role(await self.store.read())

    async def username(self) -> Optional[str]:
        session = await self.current()
        return session.subject if session else None

    async def logout(self) -> None:
        await self.store.clear()
