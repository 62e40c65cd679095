# app/bot/dispatcher.py
"""
aiogram routing for the bot.

Every event of a chat runs under that chat's session lock: the session is
loaded, handed to the state machine and saved back when the handler ends,
whether it succeeded or not. The state machine and the session store reach
the handlers as Dispatcher workflow data.
"""

import logging
from typing import Optional

from aiogram import Bot, Dispatcher, F, Router
from aiogram.exceptions import TelegramAPIError, TelegramBadRequest
from aiogram.filters import CommandStart
from aiogram.types import CallbackQuery, ErrorEvent, InlineKeyboardMarkup, Message

from app.conversation.actions import parse_callback_data
from app.conversation.models import SessionData
from app.conversation.state_machine import ConversationStateMachine, ReplyMarkup
from services.exceptions import WidgetUpdateError
from services.session_store import SessionStore

logger = logging.getLogger(__name__)


class TelegramReplyChannel:
    """Replies into one chat; edits target the message whose button was pressed."""

    def __init__(self, bot: Bot, chat_id: Optional[int], message_id: Optional[int] = None):
        self.bot = bot
        self.chat_id = chat_id
        self.message_id = message_id

    async def send(self, text: str, reply_markup: Optional[ReplyMarkup] = None) -> None:
        if self.chat_id is None:
            logger.warning("No chat to reply to, message dropped")
            return
        await self.bot.send_message(chat_id=self.chat_id, text=text, reply_markup=reply_markup)

    async def edit_reply_markup(self, reply_markup: InlineKeyboardMarkup) -> None:
        if self.chat_id is None or self.message_id is None:
            raise WidgetUpdateError("no message to edit")
        try:
            await self.bot.edit_message_reply_markup(
                chat_id=self.chat_id,
                message_id=self.message_id,
                reply_markup=reply_markup,
            )
        except TelegramBadRequest as e:
            raise WidgetUpdateError(e.message) from e


# ============================================================
# HANDLERS
# ============================================================

async def on_start(
    message: Message,
    bot: Bot,
    state_machine: ConversationStateMachine,
    session_store: SessionStore,
) -> None:
    chat_id = message.chat.id
    async with session_store.session(chat_id) as session:
        await state_machine.handle_start(session, TelegramReplyChannel(bot, chat_id))


async def on_text(
    message: Message,
    bot: Bot,
    state_machine: ConversationStateMachine,
    session_store: SessionStore,
) -> None:
    chat_id = message.chat.id
    async with session_store.session(chat_id) as session:
        await state_machine.handle_text(session, message.text, TelegramReplyChannel(bot, chat_id))


async def on_callback(
    callback: CallbackQuery,
    bot: Bot,
    state_machine: ConversationStateMachine,
    session_store: SessionStore,
) -> None:
    # stop the client's spinner before any slow work
    try:
        await callback.answer()
    except TelegramAPIError as e:
        logger.warning(f"answerCallbackQuery failed: {e}")

    action = parse_callback_data(callback.data)
    if action is None:
        logger.warning(f"Unknown callback data: {callback.data!r}")
        return

    message = callback.message
    if message is None:
        # inline-mode callbacks carry no chat; there is no session to bind
        logger.warning(f"Callback {callback.id} has no message")
        await state_machine.handle_action(SessionData(), action, TelegramReplyChannel(bot, None))
        return

    chat_id = message.chat.id
    channel = TelegramReplyChannel(bot, chat_id, message.message_id)
    async with session_store.session(chat_id) as session:
        await state_machine.handle_action(session, action, channel)


async def on_error(event: ErrorEvent) -> bool:
    """Log and swallow, so a broken update is not redelivered forever."""
    logger.error(
        f"Failed to handle update {event.update.update_id}: {event.exception}",
        exc_info=event.exception,
    )
    return True


def create_router() -> Router:
    router = Router(name="fare_search")
    router.message.register(on_start, CommandStart())
    router.message.register(on_text, F.text)
    router.callback_query.register(on_callback)
    return router


def build_dispatcher(state_machine: ConversationStateMachine, session_store: SessionStore) -> Dispatcher:
    dispatcher = Dispatcher(state_machine=state_machine, session_store=session_store)
    dispatcher.include_router(create_router())
    dispatcher.errors.register(on_error)
    return dispatcher


__all__ = [
    "TelegramReplyChannel",
    "build_dispatcher",
    "create_router",
]
