"""
Airport Service Tests
=====================
Autocomplete request shape, fuzzy filtering and degraded upstream handling,
against httpx.MockTransport.
"""

import httpx
import pytest

from services.airport_service import AirportService

PLACES = [
    {"type": "city", "code": "MOW", "name": "Москва", "main_airport_name": "Шереметьево", "country_name": "Россия"},
    {"type": "airport", "code": "VKO", "name": "Внуково", "city_name": "Москва"},
    {"type": "airport", "code": "LED", "name": "Пулково", "city_name": "Санкт-Петербург"},
    {"type": "city", "code": "MSQ", "name": "Москва-Сити", "main_airport_name": None},
    {"type": "country", "code": "RU", "name": "Москва"},
]


def _service(handler, token="tp-token"):
    return AirportService(token, transport=httpx.MockTransport(handler), retries=1)


@pytest.mark.asyncio
async def test_resolve_sends_autocomplete_query_and_maps_places():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=PLACES)

    service = _service(handler)
    airports = await service.resolve("Москва")
    await service.close()

    request = seen[0]
    assert request.method == "GET"
    assert request.url.path == "/places2"
    assert request.url.params["term"] == "Москва"
    assert request.url.params["locale"] == "ru"
    assert request.url.params["types"] == "city,airport"
    assert request.url.params["token"] == "tp-token"

    # city without main airport, non-airport types and far matches are dropped
    assert [(a.code, a.name) for a in airports] == [("MOW", "Шереметьево"), ("VKO", "Внуково")]


@pytest.mark.asyncio
async def test_resolve_tolerates_typos():
    service = _service(lambda request: httpx.Response(200, json=PLACES))
    airports = await service.resolve("Масква")
    await service.close()

    assert [a.code for a in airports] == ["MOW", "VKO"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, json={"error": "boom"}),
        httpx.Response(200, json=[]),
        httpx.Response(200, json={"unexpected": True}),
        httpx.Response(200, content=b"<html>"),
    ],
)
async def test_resolve_degrades_to_empty_list(response):
    service = _service(lambda request: response)
    assert await service.resolve("Москва") == []
    await service.close()


@pytest.mark.asyncio
async def test_resolve_handles_network_errors():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    service = _service(handler)
    assert await service.resolve("Москва") == []
    await service.close()


@pytest.mark.asyncio
async def test_resolve_without_token_skips_request():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json=PLACES)

    service = _service(handler, token="")
    assert await service.resolve("Москва") == []
    assert calls == []


def test_match_score():
    assert AirportService.match_score("моск", "Москва") == 0.0
    assert AirportService.match_score("Москва", "Аэропорт Москва") == 0.0
    assert AirportService.match_score("масква", "Москва") <= 0.4
    assert AirportService.match_score("москва", "Пулково") > 0.4
    assert AirportService.match_score("", "Москва") == 1.0


def test_fuzzy_filter_orders_best_first_and_keeps_upstream_order_on_ties():
    places = [
        {"name": "Масква"},
        {"name": "Москва"},
        {"city_name": "Москва"},
        "not a place",
    ]
    assert AirportService.fuzzy_filter("Москва", places) == [places[1], places[2], places[0]]
