"""
TravelPayouts Service Tests
===========================
Fare search request shape, cheapest-quote summary and every degraded path
of track().
"""

import httpx
import pytest

from app.conversation import messages
from app.conversation.models import FlightQuote
from services.base_api_service import BaseAPIService
from services.exceptions import TravelPayoutsAPIError, TravelPayoutsParsingError, TravelPayoutsTimeoutError
from services.travelpayouts_service import TravelPayoutsService

FARES = {
    "success": True,
    "currency": "rub",
    "data": [
        {
            "origin": "MOW",
            "destination": "LED",
            "price": 5400,
            "airline": "SU",
            "flight_number": "12",
            "departure_at": "2025-06-01T10:00:00+03:00",
        },
        {
            "origin": "MOW",
            "destination": "LED",
            "price": 3120,
            "airline": "DP",
            "flight_number": "403",
            "departure_at": "2025-06-01T08:05:00+03:00",
            "return_at": "",
        },
        {"origin": "MOW", "destination": "LED", "airline": "S7"},
    ],
}


def _service(handler, token="tp-token"):
    return TravelPayoutsService(token, transport=httpx.MockTransport(handler), retries=1)


@pytest.mark.asyncio
async def test_search_sends_expected_query():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=FARES)

    service = _service(handler)
    quotes = await service.search_prices_for_date(origin="SVO", destination="LED", departure_date="2025-06-01")
    await service.close()

    params = seen[0].url.params
    assert seen[0].url.path == "/aviasales/v3/prices_for_dates"
    assert params["origin"] == "SVO"
    assert params["destination"] == "LED"
    assert params["currency"] == "rub"
    assert params["departure_at"] == "2025-06-01"
    assert params["sorting"] == "price"
    assert params["direct"] == "true"
    assert params["limit"] == "10"
    assert params["token"] == "tp-token"

    # the row without price/departure_at is skipped
    assert [q.price for q in quotes] == [5400, 3120]
    assert quotes[1].date == "2025-06-01"
    assert quotes[1].return_at is None


@pytest.mark.asyncio
async def test_track_summarizes_cheapest_quote():
    service = _service(lambda request: httpx.Response(200, json=FARES))
    summary = await service.track("SVO", "LED", "2025-06-01")
    await service.close()

    assert summary == messages.FARE_SUMMARY.format(
        price=3120,
        airline="DP",
        flight_number="403",
        departure_at="2025-06-01T08:05:00+03:00",
    )
    assert "3120 руб." in summary


@pytest.mark.asyncio
async def test_track_without_results():
    service = _service(lambda request: httpx.Response(200, json={"success": True, "data": []}))
    assert await service.track("SVO", "LED", "2025-06-01") == messages.FARE_NOT_FOUND
    await service.close()


@pytest.mark.asyncio
async def test_track_upstream_error():
    service = _service(lambda request: httpx.Response(401, json={"error": "Unauthorized"}))
    assert await service.track("SVO", "LED", "2025-06-01") == messages.FARE_LOOKUP_FAILED
    await service.close()


@pytest.mark.asyncio
async def test_track_rejects_bad_input_without_calling_upstream():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json=FARES)

    service = _service(handler)
    assert await service.track("", "LED", "2025-06-01") == messages.FARE_INVALID_INPUT
    assert await service.track("SVO", "LED", "01.06.2025") == messages.FARE_INVALID_DATE
    assert calls == []

    no_token = _service(handler, token="")
    assert await no_token.track("SVO", "LED", "2025-06-01") == messages.FARE_SERVICE_UNAVAILABLE
    assert calls == []


@pytest.mark.asyncio
async def test_search_error_mapping():
    def timeout(request):
        raise httpx.ReadTimeout("timed out", request=request)

    service = _service(timeout)
    with pytest.raises(TravelPayoutsTimeoutError):
        await service.search_prices_for_date(origin="SVO", destination="LED", departure_date="2025-06-01")
    await service.close()

    service = _service(lambda request: httpx.Response(502))
    with pytest.raises(TravelPayoutsAPIError):
        await service.search_prices_for_date(origin="SVO", destination="LED", departure_date="2025-06-01")
    await service.close()

    service = _service(lambda request: httpx.Response(200, json=["not", "an", "object"]))
    with pytest.raises(TravelPayoutsParsingError):
        await service.search_prices_for_date(origin="SVO", destination="LED", departure_date="2025-06-01")
    await service.close()


@pytest.mark.asyncio
async def test_base_service_retries_transient_statuses():
    responses = [httpx.Response(503), httpx.Response(429), httpx.Response(200, json={"ok": True})]

    def handler(request):
        return responses.pop(0)

    service = BaseAPIService("https://example.test", retries=3, transport=httpx.MockTransport(handler))
    assert await service._get("/ping", backoff_base=0) == {"ok": True}
    assert responses == []
    await service.close()


def test_cheapest_prefers_first_on_ties():
    quotes = [
        FlightQuote(price=100, airline="A", date="2025-06-01", flight_number="1", departure_at="t"),
        FlightQuote(price=100, airline="B", date="2025-06-01", flight_number="2", departure_at="t"),
    ]
    assert TravelPayoutsService.cheapest(quotes).airline == "A"
    assert TravelPayoutsService.cheapest([]) is None


def test_format_summary_keeps_fractional_price():
    quote = FlightQuote(price=3120.5, airline="DP", date="2025-06-01", flight_number="403", departure_at="t")
    assert "3120.5 руб." in TravelPayoutsService.format_summary(quote)
