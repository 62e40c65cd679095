# app/conversation/state_machine.py
"""
State Machine for the flight price conversation.

Flow:
    from_city -> from_airport_selection -> to_city -> to_airport_selection
    -> select_date -> completed

Each inbound event (/start, free text, selection action) is applied to the
chat's SessionData; replies go out through a ReplyChannel as they are
produced, so per-date fare results reach the user one by one.
"""

import logging
from datetime import date
from typing import Callable, List, Optional, Protocol, Union

from aiogram.types import (
    InlineKeyboardButton,
    InlineKeyboardMarkup,
    KeyboardButton,
    ReplyKeyboardMarkup,
    ReplyKeyboardRemove,
)

from app.conversation import messages
from app.conversation.actions import ActionKind, SelectionAction
from app.conversation.calendar_keyboard import build_calendar, next_month, prev_month
from app.conversation.models import Airport, ConversationStep, SessionData, find_by_code
from services.exceptions import WidgetUpdateError

logger = logging.getLogger(__name__)

ReplyMarkup = Union[InlineKeyboardMarkup, ReplyKeyboardMarkup, ReplyKeyboardRemove]


# ============================================================
# COLLABORATORS
# ============================================================

class AirportResolver(Protocol):
    async def resolve(self, city: str) -> List[Airport]: ...


class FareTracker(Protocol):
    async def track(self, origin: str, destination: str, departure_date: str) -> str: ...


class ReplyChannel(Protocol):
    """Where replies for the current event go."""

    async def send(self, text: str, reply_markup: Optional[ReplyMarkup] = None) -> None: ...

    async def edit_reply_markup(self, reply_markup: InlineKeyboardMarkup) -> None:
        """Replace the keyboard of the message that triggered the event.

        Raises:
            WidgetUpdateError: the message can no longer be edited
        """
        ...


# ============================================================
# STATE MACHINE
# ============================================================

class ConversationStateMachine:
    """
    Applies user events to a session.

    The session is mutated in place; persisting it is the caller's job.
    Unexpected errors inside a step are logged and turned into a generic
    retry reply, leaving the session as it was at the failure point.
    """

    def __init__(
        self,
        airport_resolver: AirportResolver,
        fare_tracker: FareTracker,
        today: Optional[Callable[[], date]] = None,
    ):
        self.airport_resolver = airport_resolver
        self.fare_tracker = fare_tracker
        self.today = today or date.today

        self._text_handlers = {
            ConversationStep.FROM_CITY: self._on_from_city,
            ConversationStep.FROM_AIRPORT_SELECTION: self._on_from_airport,
            ConversationStep.TO_CITY: self._on_to_city,
            ConversationStep.TO_AIRPORT_SELECTION: self._on_to_airport,
            ConversationStep.SELECT_DATE: self._on_text_while_selecting_dates,
        }
        self._action_handlers = {
            ActionKind.START_SEARCH: self._on_start_search,
            ActionKind.SELECT_FROM: self._on_select_from_code,
            ActionKind.SELECT_TO: self._on_select_to_code,
            ActionKind.SELECT_DATE: self._on_select_date,
            ActionKind.PREV_MONTH: self._on_prev_month,
            ActionKind.NEXT_MONTH: self._on_next_month,
            ActionKind.DONE: self._on_done,
        }

    # ---------- Entry points ----------

    async def handle_start(self, session: SessionData, channel: ReplyChannel) -> None:
        """/start: greet and offer the search button. No state change."""
        keyboard = InlineKeyboardMarkup(
            inline_keyboard=[[
                InlineKeyboardButton(
                    text=messages.START_SEARCH_BUTTON,
                    callback_data=ActionKind.START_SEARCH.value,
                )
            ]]
        )
        try:
            await channel.send(messages.WELCOME, keyboard)
        except Exception:
            logger.exception("Failed to send welcome message")

    async def handle_text(self, session: SessionData, text: str, channel: ReplyChannel) -> None:
        handler = self._text_handlers.get(session.step)
        if handler is None:
            await channel.send(messages.FOLLOW_INSTRUCTIONS)
            return

        logger.debug(f"Text in step {session.step}: {text!r}")
        await self._guarded(handler, session, text, channel)

    async def handle_action(self, session: SessionData, action: SelectionAction, channel: ReplyChannel) -> None:
        if action.kind == ActionKind.IGNORE:
            return

        handler = self._action_handlers[action.kind]
        logger.debug(f"Action {action.kind.value} in step {session.step}")
        await self._guarded(handler, session, action, channel)

    async def _guarded(self, handler, session: SessionData, payload, channel: ReplyChannel) -> None:
        try:
            await handler(session, payload, channel)
        except Exception:
            logger.exception(f"Error while handling step {session.step}")
            await channel.send(messages.GENERIC_ERROR)

    # ---------- Text steps ----------

    async def _on_from_city(self, session: SessionData, text: str, channel: ReplyChannel) -> None:
        city = text.strip()
        if not city:
            logger.warning("Departure city was not specified")
            await channel.send(messages.EMPTY_FROM_CITY)
            return

        logger.info(f"Departure city: {city}")
        airports = await self._resolve(city, channel)
        if not airports:
            return

        session.from_city = city
        session.airports_from = airports
        session.step = ConversationStep.FROM_AIRPORT_SELECTION
        await channel.send(messages.CHOOSE_FROM_AIRPORT, _airport_keyboard(airports))

    async def _on_from_airport(self, session: SessionData, text: str, channel: ReplyChannel) -> None:
        airport = session.find_departure_airport(text)
        if airport is None:
            await channel.send(messages.CHOOSE_FROM_LIST)
            return
        await self._accept_departure(session, airport, channel)

    async def _on_to_city(self, session: SessionData, text: str, channel: ReplyChannel) -> None:
        city = text.strip()
        if not city:
            logger.warning("Arrival city was not specified")
            await channel.send(messages.EMPTY_TO_CITY)
            return

        logger.info(f"Arrival city: {city}")
        airports = await self._resolve(city, channel)
        if not airports:
            return

        session.to_city = city
        session.airports_to = airports
        session.step = ConversationStep.TO_AIRPORT_SELECTION
        await channel.send(messages.CHOOSE_TO_AIRPORT, _airport_keyboard(airports))

    async def _on_to_airport(self, session: SessionData, text: str, channel: ReplyChannel) -> None:
        airport = session.find_arrival_airport(text)
        if airport is None:
            await channel.send(messages.CHOOSE_FROM_LIST)
            return
        await self._accept_arrival(session, airport, channel)

    async def _on_text_while_selecting_dates(self, session: SessionData, text: str, channel: ReplyChannel) -> None:
        await channel.send(messages.USE_CALENDAR)

    # ---------- Actions ----------

    async def _on_start_search(self, session: SessionData, action: SelectionAction, channel: ReplyChannel) -> None:
        logger.info("Search started")
        session.step = ConversationStep.FROM_CITY
        await channel.send(messages.ASK_FROM_CITY)

    async def _on_select_from_code(self, session: SessionData, action: SelectionAction, channel: ReplyChannel) -> None:
        if session.step != ConversationStep.FROM_AIRPORT_SELECTION:
            await channel.send(messages.FOLLOW_INSTRUCTIONS)
            return

        airport = find_by_code(session.airports_from, action.airport_code)
        if airport is None:
            await channel.send(messages.CHOOSE_FROM_LIST)
            return
        await self._accept_departure(session, airport, channel)

    async def _on_select_to_code(self, session: SessionData, action: SelectionAction, channel: ReplyChannel) -> None:
        if session.step != ConversationStep.TO_AIRPORT_SELECTION:
            await channel.send(messages.FOLLOW_INSTRUCTIONS)
            return

        airport = find_by_code(session.airports_to, action.airport_code)
        if airport is None:
            await channel.send(messages.CHOOSE_FROM_LIST)
            return
        await self._accept_arrival(session, airport, channel)

    async def _on_select_date(self, session: SessionData, action: SelectionAction, channel: ReplyChannel) -> None:
        if not await self._in_date_selection(session, channel):
            return

        selected = session.toggle_date(action.date)
        logger.info(f"{'Added' if selected else 'Removed'} date {action.date}")
        await self._refresh_calendar(session, channel)

    async def _on_prev_month(self, session: SessionData, action: SelectionAction, channel: ReplyChannel) -> None:
        if not await self._in_date_selection(session, channel):
            return

        session.show_month(*prev_month(action.year, action.month))
        await self._refresh_calendar(session, channel)

    async def _on_next_month(self, session: SessionData, action: SelectionAction, channel: ReplyChannel) -> None:
        if not await self._in_date_selection(session, channel):
            return

        session.show_month(*next_month(action.year, action.month))
        await self._refresh_calendar(session, channel)

    async def _on_done(self, session: SessionData, action: SelectionAction, channel: ReplyChannel) -> None:
        if not await self._in_date_selection(session, channel):
            return

        if not session.selected_dates:
            await channel.send(messages.NO_DATES_SELECTED)
            return

        if not session.from_airport or not session.to_airport:
            logger.error("from_airport or to_airport missing in session")
            await channel.send(messages.AIRPORTS_MISSING)
            return

        logger.info(
            f"Searching {session.from_airport}→{session.to_airport} "
            f"for {len(session.selected_dates)} date(s)"
        )
        for departure_date in list(session.selected_dates):
            try:
                result = await self.fare_tracker.track(session.from_airport, session.to_airport, departure_date)
                await channel.send(messages.SEARCH_RESULT.format(date=departure_date, result=result))
            except Exception:
                logger.exception(f"Fare lookup failed for {departure_date}")
                await channel.send(messages.SEARCH_FAILED_FOR_DATE.format(date=departure_date))

        session.reset_calendar(self.today())
        session.step = ConversationStep.COMPLETED
        logger.debug("Search completed")

    # ---------- Helpers ----------

    async def _resolve(self, city: str, channel: ReplyChannel) -> List[Airport]:
        """Resolve a city; replies and returns [] when nothing usable came back."""
        try:
            airports = await self.airport_resolver.resolve(city)
        except Exception:
            logger.exception(f"Airport lookup failed for {city!r}")
            await channel.send(messages.AIRPORT_LOOKUP_FAILED)
            return []

        if not airports:
            logger.warning(f"No airports for {city!r}")
            await channel.send(messages.AIRPORTS_NOT_FOUND)
            return []
        return list(airports)

    async def _accept_departure(self, session: SessionData, airport: Airport, channel: ReplyChannel) -> None:
        logger.info(f"Departure airport: {airport.code}")
        session.from_airport = airport.code
        session.step = ConversationStep.TO_CITY
        await channel.send(messages.ASK_TO_CITY, ReplyKeyboardRemove())

    async def _accept_arrival(self, session: SessionData, airport: Airport, channel: ReplyChannel) -> None:
        logger.info(f"Arrival airport: {airport.code}")
        session.to_airport = airport.code
        session.step = ConversationStep.SELECT_DATE
        await channel.send(messages.ASK_DATES_INTRO, ReplyKeyboardRemove())
        await channel.send(
            messages.ASK_DATES,
            build_calendar(session.selected_dates, session.calendar_year, session.calendar_month),
        )

    async def _in_date_selection(self, session: SessionData, channel: ReplyChannel) -> bool:
        if session.step == ConversationStep.SELECT_DATE:
            return True
        logger.info(f"Calendar action ignored in step {session.step}")
        await channel.send(messages.FOLLOW_INSTRUCTIONS)
        return False

    async def _refresh_calendar(self, session: SessionData, channel: ReplyChannel) -> None:
        markup = build_calendar(session.selected_dates, session.calendar_year, session.calendar_month)
        try:
            await channel.edit_reply_markup(markup)
        except WidgetUpdateError as e:
            logger.error(f"Calendar update failed: {e}")
            await channel.send(messages.CALENDAR_UPDATE_FAILED)


def _airport_keyboard(airports: List[Airport]) -> ReplyKeyboardMarkup:
    return ReplyKeyboardMarkup(
        keyboard=[[KeyboardButton(text=airport.name)] for airport in airports],
        resize_keyboard=True,
        one_time_keyboard=True,
    )


__all__ = [
    "AirportResolver",
    "FareTracker",
    "ReplyChannel",
    "ReplyMarkup",
    "ConversationStateMachine",
]
