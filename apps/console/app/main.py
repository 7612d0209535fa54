from __future__ import annotations

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import RedirectResponse

from shared.logging import configure_logging, get_logger
from shared.redis_client import TokenRedis
from .api_client import LoginRequired
from .config import LOG_LEVEL, ConsoleConfig
from .pages import airlines, auth, bookings, dashboard, flights, passengers

logger = get_logger(__name__)

app = FastAPI(title="airline-console", version="0.1.0")
app.state.config = ConsoleConfig.from_env()
app.state.redis = None

app.include_router(auth.router)
app.include_router(dashboard.router)
app.include_router(airlines.router)
app.include_router(flights.router)
app.include_router(passengers.router)
app.include_router(bookings.router)


@app.on_event("startup")
async def startup() -> None:
    configure_logging(LOG_LEVEL)
    config: ConsoleConfig = app.state.config
    logger.info("console starting api=%s token_store=%s", config.api_base_url, config.token_store)

    app.state.http = httpx.AsyncClient(
        base_url=config.api_base_url, timeout=config.api_timeout_seconds
    )

    if config.token_store == "redis":
        app.state.redis = TokenRedis.from_env()
        ok = await app.state.redis.available()
        logger.info("token redis reachable=%s", ok)


@app.on_event("shutdown")
async def shutdown() -> None:
    await app.state.http.aclose()
    if app.state.redis is not None:
        await app.state.redis.close()


@app.exception_handler(LoginRequired)
async def login_required(request: Request, exc: LoginRequired) -> RedirectResponse:
    # the token store was already cleared; drop the cookie that pointed at it
    response = RedirectResponse(exc.login_path, status_code=303)
    response.delete_cookie(request.app.state.config.token_cookie, path="/")
    return response


@app.get("/health")
async def health() -> dict:
    return {"ok": True, "service": "airline-console"}
