# app/mappers/travelpayouts_mapper.py
"""
TravelPayouts API Response Mapper

Converts TravelPayouts payloads (autocomplete places, prices_for_dates rows)
into domain models (Airport, FlightQuote).

TravelPayouts format quirks:
- Cities carry their main airport in main_airport_name, or nothing at all
- departure_at is a full timestamp with offset; the date is its first 10 chars
- Prices arrive as ints or floats
"""

import logging
from typing import Optional, Dict, Any

from app.conversation.models import Airport, FlightQuote

logger = logging.getLogger(__name__)


class TravelPayoutsMapper:
    """Maps TravelPayouts API responses to domain models."""

    @staticmethod
    def to_airport(place: Dict[str, Any]) -> Optional[Airport]:
        """
        Convert an autocomplete place to an Airport.

        Kept places: type "airport", or type "city" with a main airport.
        Both need a code.

        Example places:
        {"type": "airport", "code": "SVO", "name": "Шереметьево", "city_name": "Москва"}
        {"type": "city", "code": "MOW", "name": "Москва", "main_airport_name": "Шереметьево"}
        """
        if not isinstance(place, dict):
            return None

        code = place.get("code")
        if not code:
            return None

        place_type = place.get("type")
        if place_type == "airport":
            name = place.get("name")
        elif place_type == "city":
            name = place.get("main_airport_name")
        else:
            return None

        if not name:
            return None
        return Airport(code=code, name=name)

    @staticmethod
    def to_flight_quote(item: Dict[str, Any]) -> Optional[FlightQuote]:
        """
        Convert a prices_for_dates row to a FlightQuote.

        Example row:
        {
            "origin": "MOW",
            "destination": "LED",
            "price": 3120,
            "airline": "SU",
            "flight_number": "30",
            "departure_at": "2025-06-01T08:05:00+03:00",
            "transfers": 0
        }
        """
        try:
            departure_at = str(item["departure_at"])
            return FlightQuote(
                price=float(item["price"]),
                airline=str(item.get("airline") or ""),
                date=departure_at.split("T")[0],
                flight_number=str(item.get("flight_number") or ""),
                departure_at=departure_at,
                return_at=item.get("return_at") or None,
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed fare row {item!r}: {e}")
            return None
