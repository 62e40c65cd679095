# app/bot/polling.py
"""
Long-polling entry point.

aiogram fetches updates and handles them strictly one after another
(handle_as_tasks=False), so no two events of any chat run concurrently
in this mode.

Process policy:
- missing credentials: log and exit 1
- SIGINT / SIGTERM: stop polling, close clients, exit 0
- unhandled error in the loop or in a background task: log and exit 1
"""

import asyncio
import logging
import sys

from aiogram import Dispatcher

from app.bot.runtime import build_runtime, install_fatal_handler
from app.core.config import settings, validate_required_settings
from app.core.logging_config import setup_logging
from services.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


async def stop_polling(dispatcher: Dispatcher) -> None:
    try:
        await dispatcher.stop_polling()
    except RuntimeError:
        logger.debug("Polling was not running")


async def run_polling() -> int:
    loop = asyncio.get_running_loop()
    runtime = await build_runtime(settings)
    fatal: list = []

    def on_fatal() -> None:
        fatal.append(True)
        loop.create_task(stop_polling(runtime.dispatcher))

    install_fatal_handler(loop, on_fatal)

    try:
        me = await runtime.bot.get_me()
        logger.info(f"Bot launched successfully as @{me.username}")
        # a registered webhook blocks getUpdates
        await runtime.bot.delete_webhook()
        await runtime.dispatcher.start_polling(
            runtime.bot,
            polling_timeout=settings.POLLING_TIMEOUT_SECONDS,
            handle_as_tasks=False,
            handle_signals=True,
            close_bot_session=False,
            allowed_updates=runtime.dispatcher.resolve_used_update_types(),
        )
    finally:
        await runtime.aclose()

    return 1 if fatal else 0


def main() -> None:
    setup_logging()

    try:
        validate_required_settings()
    except ConfigurationError as e:
        logger.error(f"{e}")
        sys.exit(1)

    try:
        exit_code = asyncio.run(run_polling())
    except Exception:
        logger.exception("Unhandled exception, shutting down")
        sys.exit(1)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
