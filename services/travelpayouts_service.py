# services/travelpayouts_service.py
"""
TravelPayouts fare lookup (Aviasales Data API).

Features:
- Direct-flight prices for one departure date (prices_for_dates)
- Cheapest quote selection
- Human-readable summary for the chat, including degraded-service texts

Design:
- Uses BaseAPIService for shared HTTP + retries
- Maps API rows to FlightQuote via TravelPayoutsMapper
- search_prices_for_date() raises; track() never does
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Sequence

import httpx

from app.conversation import messages
from app.conversation.models import FlightQuote, ISO_DATE_FORMAT
from app.core.config import settings
from app.mappers.travelpayouts_mapper import TravelPayoutsMapper
from services.base_api_service import BaseAPIService
from services.exceptions import (
    TravelPayoutsAPIError,
    TravelPayoutsError,
    TravelPayoutsParsingError,
    TravelPayoutsTimeoutError,
)

logger = logging.getLogger(__name__)

TRAVELPAYOUTS_BASE_URL = "https://api.travelpayouts.com"
PRICES_FOR_DATES_ENDPOINT = "/aviasales/v3/prices_for_dates"

DEFAULT_CURRENCY = "rub"
RESULT_LIMIT = 10


class TravelPayoutsService(BaseAPIService):
    """TravelPayouts API client for fare lookups."""

    def __init__(
        self,
        api_token: Optional[str] = None,
        *,
        base_url: str = TRAVELPAYOUTS_BASE_URL,
        timeout_s: Optional[float] = None,
        retries: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(
            base_url,
            timeout_s=timeout_s or settings.HTTP_TIMEOUT_SECONDS,
            retries=retries or settings.HTTP_MAX_RETRIES,
            transport=transport,
        )
        self.api_token: str = settings.TRAVELPAYOUTS_API_TOKEN if api_token is None else api_token

        if not self.api_token:
            logger.warning("TravelPayouts API token not configured!")

    # ---------- Public API ----------

    async def search_prices_for_date(
        self,
        *,
        origin: str,
        destination: str,
        departure_date: str,
        currency: str = DEFAULT_CURRENCY,
        direct: bool = True,
        limit: int = RESULT_LIMIT,
    ) -> List[FlightQuote]:
        """
        Quotes for one departure date, sorted by price upstream.

        API: GET /aviasales/v3/prices_for_dates

        Raises:
            TravelPayoutsTimeoutError: upstream timed out
            TravelPayoutsAPIError: non-2xx or transport failure
            TravelPayoutsParsingError: body is not the expected JSON object
        """
        params = {
            "origin": origin,
            "destination": destination,
            "currency": currency,
            "departure_at": departure_date,
            "sorting": "price",
            "direct": "true" if direct else "false",
            "limit": limit,
            "token": self.api_token,
        }

        try:
            data = await self._get(PRICES_FOR_DATES_ENDPOINT, params=params)
        except httpx.TimeoutException as e:
            raise TravelPayoutsTimeoutError("TravelPayouts prices_for_dates timed out") from e
        except httpx.HTTPError as e:
            raise TravelPayoutsAPIError(f"TravelPayouts HTTP error: {e}") from e
        except ValueError as e:
            raise TravelPayoutsParsingError("TravelPayouts returned invalid JSON") from e

        if not isinstance(data, dict):
            raise TravelPayoutsParsingError(f"Unexpected payload type: {type(data).__name__}")

        items = data.get("data") or []
        quotes: List[FlightQuote] = []
        for item in items:
            quote = TravelPayoutsMapper.to_flight_quote(item) if isinstance(item, dict) else None
            if quote:
                quotes.append(quote)

        logger.info(
            "TravelPayouts prices_for_dates: %d quotes for %s→%s on %s",
            len(quotes),
            origin,
            destination,
            departure_date,
        )
        return quotes

    async def track(self, origin: str, destination: str, departure_date: str) -> str:
        """
        Cheapest direct fare for one date as a chat-ready summary.

        Every failure mode maps to a readable message instead of an exception.
        """
        logger.info(f"Tracking tickets from {origin} to {destination} on {departure_date}")

        if not origin or not destination or not departure_date:
            logger.error("Incorrect input data for fare lookup")
            return messages.FARE_INVALID_INPUT

        try:
            normalized_date = datetime.strptime(departure_date, ISO_DATE_FORMAT).strftime(ISO_DATE_FORMAT)
        except ValueError:
            logger.error(f"Incorrect date format: {departure_date!r}")
            return messages.FARE_INVALID_DATE

        if not self.api_token:
            logger.error("TravelPayouts API token not configured!")
            return messages.FARE_SERVICE_UNAVAILABLE

        try:
            quotes = await self.search_prices_for_date(
                origin=origin,
                destination=destination,
                departure_date=normalized_date,
            )
        except TravelPayoutsError as e:
            logger.error(f"Error fetching ticket data: {e}")
            return messages.FARE_LOOKUP_FAILED

        cheapest = self.cheapest(quotes)
        if cheapest is None:
            logger.warning("Tickets not found")
            return messages.FARE_NOT_FOUND

        logger.info(f"Cheapest ticket: {cheapest.price} RUB, airline: {cheapest.airline}")
        return self.format_summary(cheapest)

    # ---------- Utilities ----------

    @staticmethod
    def cheapest(quotes: Sequence[FlightQuote]) -> Optional[FlightQuote]:
        """Lowest price; the first one seen wins a tie."""
        if not quotes:
            return None
        return min(quotes, key=lambda quote: quote.price)

    @staticmethod
    def format_summary(quote: FlightQuote) -> str:
        price = int(quote.price) if float(quote.price).is_integer() else quote.price
        return messages.FARE_SUMMARY.format(
            price=price,
            airline=quote.airline,
            flight_number=quote.flight_number,
            departure_at=quote.departure_at,
        )
