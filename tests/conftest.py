"""
Shared test doubles
===================
In-process fakes for the airport resolver, fare tracker, reply channel and
aiogram Bot, so conversation tests never touch the network.
"""

from datetime import date
from typing import Dict, List, Optional

import pytest
from aiogram.methods import AnswerCallbackQuery
from aiogram.types import User

from app.conversation.models import Airport
from app.conversation.state_machine import ConversationStateMachine
from app.infrastructure.cache import InMemoryCache
from services.exceptions import WidgetUpdateError
from services.session_store import SessionStore

TODAY = date(2026, 10, 19)


class FakeResolver:
    def __init__(self, airports: Optional[Dict[str, List[Airport]]] = None, error: Optional[Exception] = None):
        self.airports = airports or {}
        self.error = error
        self.calls: List[str] = []

    async def resolve(self, city: str) -> List[Airport]:
        self.calls.append(city)
        if self.error:
            raise self.error
        return self.airports.get(city, [])


class FakeTracker:
    def __init__(self, failing_dates=()):
        self.failing_dates = set(failing_dates)
        self.calls: List[tuple] = []

    async def track(self, origin: str, destination: str, departure_date: str) -> str:
        self.calls.append((origin, destination, departure_date))
        if departure_date in self.failing_dates:
            raise RuntimeError("upstream exploded")
        return f"{origin}-{destination} {departure_date}: 3120 руб."


class RecordingChannel:
    def __init__(self, edit_error: Optional[Exception] = None):
        self.sent: List[tuple] = []
        self.edits: List = []
        self.edit_error = edit_error

    async def send(self, text, reply_markup=None):
        self.sent.append((text, reply_markup))

    async def edit_reply_markup(self, reply_markup):
        if self.edit_error:
            raise self.edit_error
        self.edits.append(reply_markup)

    @property
    def texts(self) -> List[str]:
        return [text for text, _ in self.sent]


class FakeBot:
    """
    Stands in for aiogram's Bot: records outgoing calls.

    Bound shortcuts such as CallbackQuery.answer() reach the bot through
    __call__ with a method object; those are kept in `calls`.
    """

    id = 123456

    def __init__(self, edit_error: Optional[Exception] = None):
        self.messages: List[tuple] = []
        self.edits: List[tuple] = []
        self.calls: List = []
        self.edit_error = edit_error

    async def __call__(self, method, request_timeout=None):
        self.calls.append(method)
        return True

    async def me(self):
        return User(id=self.id, is_bot=True, first_name="Fare Scout", username="FareScoutBot")

    async def send_message(self, chat_id, text, reply_markup=None, **kwargs):
        self.messages.append((chat_id, text, reply_markup))

    async def edit_message_reply_markup(self, chat_id=None, message_id=None, reply_markup=None, **kwargs):
        if self.edit_error:
            raise self.edit_error
        self.edits.append((chat_id, message_id, reply_markup))
        return True

    @property
    def answered(self) -> List[str]:
        return [call.callback_query_id for call in self.calls if isinstance(call, AnswerCallbackQuery)]


MOSCOW = [Airport(code="SVO", name="Sheremetyevo"), Airport(code="VKO", name="Vnukovo")]
NEW_YORK = [Airport(code="JFK", name="John F. Kennedy")]


@pytest.fixture
def resolver():
    return FakeResolver({"Moscow": MOSCOW, "New York": NEW_YORK})


@pytest.fixture
def tracker():
    return FakeTracker()


@pytest.fixture
def channel():
    return RecordingChannel()


@pytest.fixture
def machine(resolver, tracker):
    return ConversationStateMachine(resolver, tracker, today=lambda: TODAY)


@pytest.fixture
def session_store():
    return SessionStore(InMemoryCache(), ttl_seconds=3600)


@pytest.fixture
def widget_error():
    return WidgetUpdateError("message is not modified")
