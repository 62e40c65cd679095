# app/bot/runtime.py
"""Wiring of the bot's services, shared by the polling and webhook entry points."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable

from aiogram import Bot, Dispatcher
from aiogram.client.session.aiohttp import AiohttpSession
from aiogram.client.telegram import TelegramAPIServer

from app.bot.dispatcher import build_dispatcher
from app.conversation.state_machine import ConversationStateMachine
from app.core.config import Settings, settings
from app.db.redis_client import close_redis, init_redis
from app.infrastructure.cache import get_cache_adapter
from services.airport_service import AirportService
from services.session_store import SessionStore
from services.travelpayouts_service import TravelPayoutsService

logger = logging.getLogger(__name__)


@dataclass
class BotRuntime:
    bot: Bot
    dispatcher: Dispatcher
    airports: AirportService
    fares: TravelPayoutsService
    sessions: SessionStore
    uses_redis: bool = False

    async def aclose(self) -> None:
        for service in (self.airports, self.fares):
            await service.close()
        await self.bot.session.close()
        if self.uses_redis:
            await close_redis()
        logger.info("Bot services closed")


def create_bot(config: Settings = settings) -> Bot:
    session = AiohttpSession(
        api=TelegramAPIServer.from_base(config.TELEGRAM_API_URL.rstrip("/")),
        timeout=config.HTTP_TIMEOUT_SECONDS,
    )
    return Bot(token=config.BOT_TOKEN, session=session)


async def build_runtime(config: Settings = settings) -> BotRuntime:
    """Create clients, session storage and the dispatcher from settings."""
    uses_redis = config.SESSION_BACKEND == "redis"
    if uses_redis:
        await init_redis()

    cache = get_cache_adapter(config.SESSION_BACKEND, max_size=config.SESSION_MAX_ENTRIES)
    sessions = SessionStore(cache, ttl_seconds=config.SESSION_TTL_SECONDS)

    airports = AirportService(config.TRAVELPAYOUTS_API_TOKEN)
    fares = TravelPayoutsService(config.TRAVELPAYOUTS_API_TOKEN)

    state_machine = ConversationStateMachine(airport_resolver=airports, fare_tracker=fares)

    logger.info(f"Bot runtime ready (session backend: {config.SESSION_BACKEND})")
    return BotRuntime(
        bot=create_bot(config),
        dispatcher=build_dispatcher(state_machine, sessions),
        airports=airports,
        fares=fares,
        sessions=sessions,
        uses_redis=uses_redis,
    )


# ============================================================
# FATAL ERRORS
# ============================================================

def install_fatal_handler(loop: asyncio.AbstractEventLoop, on_fatal: Callable[[], None]) -> None:
    """
    Treat errors nobody awaited (failed background tasks, loop callbacks)
    as fatal: log them and let on_fatal bring the process down.
    """

    def handle(_loop: asyncio.AbstractEventLoop, context: dict) -> None:
        logger.critical(
            f"Unhandled async failure: {context.get('message')}",
            exc_info=context.get("exception"),
        )
        on_fatal()

    loop.set_exception_handler(handle)
