"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.om_account.api.router import router as account_router
from src.om_common.database import async_session_factory, engine
from src.om_common.errors import AppError
from src.om_common.response import error_response
from src.om_gateway.middleware.request_log import RequestLogMiddleware
from src.om_idempotency.application.sweeper import IdempotencySweeper
from src.om_notification.api.router import router as notification_router
from src.om_purchase.api.router import router as purchase_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB, start the idempotency sweeper. Shutdown: stop, dispose."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    sweeper = IdempotencySweeper(async_session_factory)
    sweeper.start()
    yield
    await sweeper.stop()
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message, exc.details, request=request)
    headers = {"Retry-After": "1"} if getattr(exc, "retryable", False) else None
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
        headers=headers,
    )


app.include_router(account_router, prefix="/api/v1")
app.include_router(purchase_router, prefix="/api/v1")
app.include_router(notification_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
