# app/conversation/models.py
"""
Data models for the flight price conversation.
Session state, airport candidates and fare quotes live here so the state
machine, the services and the session store share one definition.
"""

from enum import Enum
from typing import Optional, List, Dict, Any
from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator

ISO_DATE_FORMAT = "%Y-%m-%d"


# ============================================================
# ENUMS
# ============================================================

class ConversationStep(str, Enum):
    """Position of a chat inside the search flow."""
    FROM_CITY = "from_city"
    FROM_AIRPORT_SELECTION = "from_airport_selection"
    TO_CITY = "to_city"
    TO_AIRPORT_SELECTION = "to_airport_selection"
    SELECT_DATE = "select_date"
    COMPLETED = "completed"


# ============================================================
# VALUE OBJECTS
# ============================================================

class Airport(BaseModel):
    """Airport candidate offered to the user, e.g. SVO / Шереметьево."""
    model_config = ConfigDict(frozen=True)

    code: str
    name: str


class FlightQuote(BaseModel):
    """One priced offer from the fare search."""
    price: float
    airline: str
    date: str
    flight_number: str
    departure_at: str
    return_at: Optional[str] = None


def is_iso_date(value: str) -> bool:
    try:
        datetime.strptime(value, ISO_DATE_FORMAT)
    except (TypeError, ValueError):
        return False
    return len(value) == 10


# ============================================================
# SESSION
# ============================================================

def _current_year() -> int:
    return date.today().year


def _current_month() -> int:
    return date.today().month - 1


class SessionData(BaseModel):
    """
    Per-chat conversation state.

    step is None for a chat that has not started a search yet.
    calendar_month is 0-indexed (0 = January).
    """
    model_config = ConfigDict(validate_assignment=True)

    step: Optional[ConversationStep] = None

    from_city: Optional[str] = None
    to_city: Optional[str] = None

    airports_from: Optional[List[Airport]] = None
    airports_to: Optional[List[Airport]] = None

    from_airport: Optional[str] = None
    to_airport: Optional[str] = None

    selected_dates: List[str] = Field(default_factory=list)

    calendar_year: int = Field(default_factory=_current_year)
    calendar_month: int = Field(default_factory=_current_month, ge=0, le=11)

    @field_validator("step", mode="before")
    @classmethod
    def parse_step(cls, value):
        """Unknown step strings from an older payload reset the flow."""
        if value is None or isinstance(value, ConversationStep):
            return value
        try:
            return ConversationStep(value)
        except ValueError:
            return None

    @field_validator("selected_dates")
    @classmethod
    def validate_selected_dates(cls, value: List[str]) -> List[str]:
        unique: List[str] = []
        for item in value:
            if not is_iso_date(item):
                raise ValueError(f"not a YYYY-MM-DD date: {item!r}")
            if item not in unique:
                unique.append(item)
        return unique

    # ---------- Mutations ----------

    def toggle_date(self, iso_date: str) -> bool:
        """
        Add the date if absent, remove it if present.

        Returns:
            True if the date is selected after the call
        """
        if iso_date in self.selected_dates:
            self.selected_dates = [d for d in self.selected_dates if d != iso_date]
            return False
        self.selected_dates = [*self.selected_dates, iso_date]
        return True

    def show_month(self, year: int, month: int) -> None:
        self.calendar_year = year
        self.calendar_month = month

    def reset_calendar(self, today: Optional[date] = None) -> None:
        today = today or date.today()
        self.selected_dates = []
        self.show_month(today.year, today.month - 1)

    def find_departure_airport(self, label: str) -> Optional[Airport]:
        return _find_by_name(self.airports_from, label)

    def find_arrival_airport(self, label: str) -> Optional[Airport]:
        return _find_by_name(self.airports_to, label)

    # ---------- Serialization ----------

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionData":
        return cls.model_validate(data)


def _find_by_name(candidates: Optional[List[Airport]], label: str) -> Optional[Airport]:
    label = label.strip()
    for airport in candidates or []:
        if airport.name == label:
            return airport
    return None


def find_by_code(candidates: Optional[List[Airport]], code: str) -> Optional[Airport]:
    for airport in candidates or []:
        if airport.code == code:
            return airport
    return None
