# services/airport_service.py
"""
Airport lookup by city name via the TravelPayouts autocomplete API.

Upstream returns loosely related places for a term, so results are
fuzzy-matched against the term before being offered to the user:
- fields: name, city_name, main_airport_name
- case-insensitive approximate substring match, position ignored
- score 0.0 is a perfect match, places scoring above 0.4 are dropped
"""

from __future__ import annotations

import logging
from difflib import SequenceMatcher
from typing import Any, Dict, List, Optional, Tuple

import httpx

from app.conversation.models import Airport
from app.core.config import settings
from app.mappers.travelpayouts_mapper import TravelPayoutsMapper
from services.base_api_service import BaseAPIService

logger = logging.getLogger(__name__)

AUTOCOMPLETE_BASE_URL = "https://autocomplete.travelpayouts.com"
PLACES_ENDPOINT = "/places2"

FUZZY_KEYS = ("name", "city_name", "main_airport_name")
FUZZY_THRESHOLD = 0.4


class AirportService(BaseAPIService):
    """Resolves free-text city names to airport candidates."""

    def __init__(
        self,
        api_token: Optional[str] = None,
        *,
        base_url: str = AUTOCOMPLETE_BASE_URL,
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

    # ---------- Public API ----------

    async def resolve(self, city: str) -> List[Airport]:
        """
        Airports for a city, best match first.

        Never raises for upstream problems: a missing token, HTTP errors and
        unexpected payloads all come back as an empty list.
        """
        logger.debug(f"Searching airports for city: {city}")

        if not self.api_token:
            logger.error("TravelPayouts API token not configured!")
            return []

        params = {
            "term": city,
            "locale": "ru",
            "types": "city,airport",
            "token": self.api_token,
        }

        try:
            data = await self._get(PLACES_ENDPOINT, params=params)
        except httpx.HTTPError as e:
            logger.error(f"Autocomplete request failed: {e}")
            return []
        except ValueError as e:
            logger.error(f"Autocomplete returned invalid JSON: {e}")
            return []

        if not isinstance(data, list) or not data:
            logger.warning("No places returned by autocomplete")
            return []

        matched = self.fuzzy_filter(city, data)
        if not matched:
            logger.warning(f"No places matched {city!r} closely enough")
            return []

        airports: List[Airport] = []
        for place in matched:
            airport = TravelPayoutsMapper.to_airport(place)
            if airport:
                airports.append(airport)

        if not airports:
            logger.warning("No airports left after filtering")
            return []

        logger.info(f"Airports found for {city!r}: {len(airports)}")
        return airports

    # ---------- Fuzzy matching ----------

    @staticmethod
    def match_score(term: str, value: str) -> float:
        """
        Distance between a search term and a field value, 0.0 (exact) to 1.0.

        The term is compared against every window of the value with the same
        length, so "моск" scores 0.0 against "Москва" and typos cost
        proportionally to the term length.
        """
        needle = term.strip().lower()
        haystack = (value or "").strip().lower()
        if not needle or not haystack:
            return 1.0
        if needle in haystack:
            return 0.0

        size = len(needle)
        if len(haystack) <= size:
            windows = [haystack]
        else:
            windows = [haystack[i:i + size] for i in range(len(haystack) - size + 1)]

        best = max(SequenceMatcher(None, needle, window).ratio() for window in windows)
        return 1.0 - best

    @classmethod
    def place_score(cls, term: str, place: Dict[str, Any]) -> float:
        scores = [
            cls.match_score(term, place[key])
            for key in FUZZY_KEYS
            if isinstance(place.get(key), str)
        ]
        return min(scores, default=1.0)

    @classmethod
    def fuzzy_filter(cls, term: str, places: List[Any]) -> List[Dict[str, Any]]:
        """Places within FUZZY_THRESHOLD of the term, best first, upstream order on ties."""
        scored: List[Tuple[float, int, Dict[str, Any]]] = []
        for index, place in enumerate(places):
            if not isinstance(place, dict):
                continue
            score = cls.place_score(term, place)
            if score <= FUZZY_THRESHOLD:
                scored.append((score, index, place))

        scored.sort(key=lambda item: (item[0], item[1]))
        return [place for _, _, place in scored]
