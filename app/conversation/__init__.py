"""
Conversation Module
Step-by-step flight price search: cities, airports, calendar dates.
"""

from app.conversation.actions import ActionKind, SelectionAction, parse_callback_data
from app.conversation.calendar_keyboard import build_calendar, next_month, prev_month
from app.conversation.models import Airport, ConversationStep, FlightQuote, SessionData
from app.conversation.state_machine import ConversationStateMachine, ReplyChannel

__all__ = [
    "ActionKind",
    "SelectionAction",
    "parse_callback_data",
    "build_calendar",
    "next_month",
    "prev_month",
    "Airport",
    "ConversationStep",
    "FlightQuote",
    "SessionData",
    "ConversationStateMachine",
    "ReplyChannel",
]
