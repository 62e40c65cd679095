# app/conversation/calendar_keyboard.py
"""
Multi-select calendar keyboard.

build_calendar() is pure: the same (selected dates, year, month) always
produce the same grid. Month numbers are 0-indexed throughout (0 = January).
"""

import calendar
from typing import Iterable, List, Tuple

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup

from app.conversation.actions import ActionKind, month_nav_data, select_date_data

MONTH_NAMES = [
    "Январь",
    "Февраль",
    "Март",
    "Апрель",
    "Май",
    "Июнь",
    "Июль",
    "Август",
    "Сентябрь",
    "Октябрь",
    "Ноябрь",
    "Декабрь",
]
WEEKDAY_NAMES = ["Пн", "Вт", "Ср", "Чт", "Пт", "Сб", "Вс"]

SELECTED_MARK = "✅"
BLANK_TEXT = " "
DONE_TEXT = "Готово"


def prev_month(year: int, month: int) -> Tuple[int, int]:
    if month == 0:
        return year - 1, 11
    return year, month - 1


def next_month(year: int, month: int) -> Tuple[int, int]:
    if month == 11:
        return year + 1, 0
    return year, month + 1


def month_label(year: int, month: int) -> str:
    return f"{MONTH_NAMES[month]} {year}"


def month_layout(year: int, month: int) -> Tuple[int, int]:
    """
    Returns:
        (offset of the 1st from Monday, number of days in the month)
    """
    # calendar.weekday() already counts Monday as 0
    first_weekday, days_in_month = calendar.monthrange(year, month + 1)
    return first_weekday, days_in_month


def _ignore(text: str) -> InlineKeyboardButton:
    return InlineKeyboardButton(text=text, callback_data=ActionKind.IGNORE.value)


def build_calendar(selected_dates: Iterable[str], year: int, month: int) -> InlineKeyboardMarkup:
    """
    Build the date picker for one month.

    Layout:
        << | <Month> <Year> | >>
        Пн Вт Ср Чт Пт Сб Вс
        one row per week, blanks outside the month
        Готово
    """
    if not 0 <= month <= 11:
        raise ValueError(f"month must be in 0..11, got {month}")

    selected = set(selected_dates)
    rows: List[List[InlineKeyboardButton]] = [
        [
            InlineKeyboardButton(text="<<", callback_data=month_nav_data(ActionKind.PREV_MONTH, year, month)),
            _ignore(month_label(year, month)),
            InlineKeyboardButton(text=">>", callback_data=month_nav_data(ActionKind.NEXT_MONTH, year, month)),
        ],
        [_ignore(day) for day in WEEKDAY_NAMES],
    ]

    starting_day, days_in_month = month_layout(year, month)

    day = 1
    while day <= days_in_month:
        week: List[InlineKeyboardButton] = []
        for weekday in range(7):
            if (len(rows) == 2 and weekday < starting_day) or day > days_in_month:
                week.append(_ignore(BLANK_TEXT))
                continue

            iso_date = f"{year:04d}-{month + 1:02d}-{day:02d}"
            text = f"{SELECTED_MARK} {day}" if iso_date in selected else str(day)
            week.append(InlineKeyboardButton(text=text, callback_data=select_date_data(iso_date)))
            day += 1
        rows.append(week)

    rows.append([InlineKeyboardButton(text=DONE_TEXT, callback_data=ActionKind.DONE.value)])
    return InlineKeyboardMarkup(inline_keyboard=rows)
