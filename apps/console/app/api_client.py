from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

import httpx

from shared.logging import get_logger
from .config import LOGIN_PATH
from .token_store import TokenStore

logger = get_logger(__name__)


class LoginRequired(Exception):
    """The backend rejected the session; the browser must go to the login page."""

    def __init__(self, login_path: str = LOGIN_PATH):
        super().__init__(f"login required: redirect to {login_path}")
        self.login_path = login_path


class RequestAborted(Exception):
    pass


class AbortSignal:
    """
    Cancellation token for the requests of one page load.
    Once aborted it stays aborted; in-flight and later sends fail fast.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._timer: Optional[asyncio.TimerHandle] = None
        self.reason: Optional[str] = None

    @property
    def aborted(self) -> bool:
        return self._event.is_set()

    def abort(self, reason: str = "aborted") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    def abort_after(self, seconds: float) -> None:
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(seconds, self.abort, f"deadline of {seconds}s exceeded")

    def dispose(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def raise_if_aborted(self) -> None:
        if self.aborted:
            raise RequestAborted(self.reason)

    async def wait(self) -> None:
        await self._event.wait()


class ApiClient:
    """
    Per-request wrapper around the process-wide httpx client.
    Attaches the bearer token on the way out; on the way back a 401 clears
    the token and raises LoginRequired unless we are already on the login page.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        store: TokenStore,
        current_path: str = "/",
        login_path: str = LOGIN_PATH,
        signal: Optional[AbortSignal] = None,
    ):
        self._http = http
        self.store = store
        self.current_path = current_path
        self.login_path = login_path
        self.signal = signal

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
    ) -> httpx.Response:
        request = self._http.build_request(method, url, params=params, json=json)
        await self._attach_token(request)
        logger.debug("api %s %s", method, request.url)

        response = await self._send(request)
        await self._check_response(response)
        return response

    async def get(self, url: str, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        return await self.request("GET", url, params=params)

    async def post(
        self, url: str, json: Any = None, params: Optional[Dict[str, Any]] = None
    ) -> httpx.Response:
        return await self.request("POST", url, params=params, json=json)

    async def put(self, url: str, json: Any = None) -> httpx.Response:
        return await self.request("PUT", url, json=json)

    async def patch(self, url: str, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        return await self.request("PATCH", url, params=params)

    async def delete(self, url: str) -> httpx.Response:
        return await self.request("DELETE", url)

    async def _attach_token(self, request: httpx.Request) -> None:
        token = await self.store.read()
        if token:
            request.headers["Authorization"] = f"Bearer {token}"

    async def _send(self, request: httpx.Request) -> httpx.Response:
        if self.signal is None:
            return await self._http.send(request)

        self.signal.raise_if_aborted()
        send = asyncio.ensure_future(self._http.send(request))
        aborted = asyncio.ensure_future(self.signal.wait())
        try:
            done, _ = await asyncio.wait({send, aborted}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            send.cancel()
            raise
        finally:
            aborted.cancel()
        if send in done:
            return send.result()

        send.cancel()
        logger.info("api %s %s aborted: %s", request.method, request.url, self.signal.reason)
        raise RequestAborted(self.signal.reason)

    async def _check_response(self, response: httpx.Response) -> None:
        if response.status_code == 401 and self.current_path != self.login_path:
            logger.info("api 401 on %s, clearing session", response.request.url)
            await self.store.clear()
            raise LoginRequired(self.login_path)

        if response.is_error:
            logger.warning(
                "api_call_failed method=%s url=%s status=%s",
                response.request.method,
                response.request.url,
                response.status_code,
            )
        response.raise_for_status()
