import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import Callable

from fastapi import FastAPI

from app.api.v1.endpoints import telegram_webhook
from app.bot.runtime import BotRuntime, build_runtime, install_fatal_handler
from app.core.config import settings, validate_required_settings
from app.core.logging_config import setup_logging

logger = logging.getLogger(__name__)


async def terminate(runtime: BotRuntime, exit_process: Callable[[int], None] = os._exit) -> None:
    """Close clients and end the process with status 1."""
    try:
        await runtime.aclose()
    except Exception:
        logger.exception("Cleanup failed during fatal shutdown")
    for handler in logging.getLogger().handlers:
        handler.flush()
    exit_process(1)


# ============================================================
# LIFESPAN
# ============================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()

    # missing credentials abort startup; uvicorn exits non-zero
    validate_required_settings()

    runtime = await build_runtime(settings)
    app.state.runtime = runtime

    loop = asyncio.get_running_loop()
    install_fatal_handler(loop, lambda: loop.create_task(terminate(runtime)))

    if settings.TELEGRAM_WEBHOOK_URL:
        webhook_url = f"{settings.TELEGRAM_WEBHOOK_URL.rstrip('/')}{settings.API_V1_STR}/telegram/webhook"
        await runtime.bot.set_webhook(
            webhook_url,
            secret_token=settings.TELEGRAM_WEBHOOK_SECRET,
            allowed_updates=runtime.dispatcher.resolve_used_update_types(),
        )
        logger.info(f"Webhook registered at {webhook_url}")

    logger.info("Application startup complete")
    try:
        yield
    finally:
        loop.set_exception_handler(None)
        await runtime.aclose()
        logger.info("Application shutdown complete")


# ============================================================
# FASTAPI APP SETUP
# ============================================================
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="""
    Telegram bot for cheapest direct flight prices.

    ## Features
    * Departure / arrival airport lookup by city name
    * Multi-date calendar picker
    * Cheapest fare per selected date
    """,
    version=settings.VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    lifespan=lifespan,
)


# ============================================================
# API ROUTERS
# ============================================================
app.include_router(telegram_webhook.router, prefix=f"{settings.API_V1_STR}/telegram", tags=["telegram"])


# ============================================================
# ROOT ENDPOINT
# ============================================================
@app.get("/")
def read_root():
    return {"service": settings.PROJECT_NAME, "status": "ok"}
