# app/conversation/actions.py
"""
Structured selection actions.

Inline buttons carry short callback strings (``SELECT_DATE_2025-06-01``,
``PREV_MONTH_2025_0`` ...). They are parsed once, here, into a typed
SelectionAction so the state machine never touches raw strings.
"""

import logging
import re
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from app.conversation.models import is_iso_date

logger = logging.getLogger(__name__)


class ActionKind(str, Enum):
    START_SEARCH = "START_SEARCH"
    SELECT_FROM = "SELECT_FROM"
    SELECT_TO = "SELECT_TO"
    SELECT_DATE = "SELECT_DATE"
    PREV_MONTH = "PREV_MONTH"
    NEXT_MONTH = "NEXT_MONTH"
    DONE = "DONE"
    IGNORE = "IGNORE"


class SelectionAction(BaseModel):
    kind: ActionKind
    airport_code: Optional[str] = None
    date: Optional[str] = None
    year: Optional[int] = None
    month: Optional[int] = None


_LITERALS = {
    ActionKind.START_SEARCH.value: ActionKind.START_SEARCH,
    ActionKind.DONE.value: ActionKind.DONE,
    ActionKind.IGNORE.value: ActionKind.IGNORE,
}

_AIRPORT_PATTERN = re.compile(r"(?P<kind>SELECT_FROM|SELECT_TO)_(?P<code>[A-Z]{3})")
_DATE_PATTERN = re.compile(r"SELECT_DATE_(?P<date>\d{4}-\d{2}-\d{2})")
_MONTH_PATTERN = re.compile(r"(?P<kind>PREV_MONTH|NEXT_MONTH)_(?P<year>\d{4})_(?P<month>\d{1,2})")


def parse_callback_data(data: Optional[str]) -> Optional[SelectionAction]:
    """
    Convert raw callback data into a SelectionAction.

    Returns:
        The parsed action, or None when the string is unknown or its
        payload is invalid (bad calendar date, month outside 0..11).
    """
    if not data:
        return None

    if data in _LITERALS:
        return SelectionAction(kind=_LITERALS[data])

    match = _AIRPORT_PATTERN.fullmatch(data)
    if match:
        return SelectionAction(kind=ActionKind(match["kind"]), airport_code=match["code"])

    match = _DATE_PATTERN.fullmatch(data)
    if match:
        if not is_iso_date(match["date"]):
            logger.warning(f"Rejected callback with impossible date: {data}")
            return None
        return SelectionAction(kind=ActionKind.SELECT_DATE, date=match["date"])

    match = _MONTH_PATTERN.fullmatch(data)
    if match:
        month = int(match["month"])
        if not 0 <= month <= 11:
            logger.warning(f"Rejected callback with month out of range: {data}")
            return None
        return SelectionAction(kind=ActionKind(match["kind"]), year=int(match["year"]), month=month)

    logger.warning(f"Unknown callback data: {data!r}")
    return None


# ---------- Builders (keyboard side) ----------

def select_date_data(iso_date: str) -> str:
    return f"{ActionKind.SELECT_DATE.value}_{iso_date}"


def month_nav_data(kind: ActionKind, year: int, month: int) -> str:
    return f"{kind.value}_{year}_{month}"
