import asyncio
import base64
import json
import time

import pytest
from aiohttp import test_utils, web
from conftest import FakeOrchestrator, FakeSession

from core.config import ServerConfig
from core.errors import ErrorKind, OrchestratorError
from core.http import GEOCODE_TIMEOUT_MS, IMAGE_TIMEOUT_MS, WEATHER_TIMEOUT_MS, ExternalCallOrchestrator
from core.images import sniff_image_type
from core.models import ImageContent
from core.weather import format_forecast

SEOUL = {
    "display_name": "서울특별시, 대한민국",
    "lat": "37.5666791",
    "lon": "126.9782914",
    "type": "city",
    "importance": 0.85,
    "address": {"city": "서울특별시", "country": "대한민국"},
    "osm_id": 2297418,
    "boundingbox": ["37.4", "37.7", "126.7", "127.2"],
}

FORECAST = {
    "latitude": 37.55,
    "longitude": 127.0,
    "timezone": "Asia/Seoul",
    "elevation": 38.0,
    "current_units": {"temperature_2m": "°C", "relative_humidity_2m": "%", "wind_speed_10m": "km/h"},
    "current": {
        "time": "2025-01-05T15:00",
        "temperature_2m": -2.1,
        "relative_humidity_2m": 51,
        "weather_code": 3,
        "wind_speed_10m": 7.4,
    },
    "daily_units": {"precipitation_sum": "mm"},
    "daily": {
        "time": ["2025-01-05", "2025-01-06"],
        "temperature_2m_max": [1.2, 3.4],
        "temperature_2m_min": [-6.0, -4.1],
        "precipitation_sum": [0.0, 1.3],
        "weather_code": [3, 61],
    },
}

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


def _dispatch(dispatcher, name, args):
    return asyncio.run(dispatcher.dispatch(name, args))


# --- geocode ---------------------------------------------------------------------

def test_geocode_request_shape_and_summary(make_dispatcher) -> None:
    http = FakeOrchestrator(response=[SEOUL])
    outcome = _dispatch(make_dispatcher(http=http), "geocode", {"query": " Seoul ", "addressdetails": False})

    url, kwargs = http.calls[0]
    assert url == ServerConfig().geocode_url
    assert kwargs["params"] == {"q": "Seoul", "format": "jsonv2", "limit": "1", "addressdetails": "0"}
    assert kwargs["headers"] == {"Accept-Language": "ko,en"}
    assert kwargs["timeout_ms"] == GEOCODE_TIMEOUT_MS == 10_000

    places = json.loads(outcome.content[0].text)
    assert places == [{
        "name": "서울특별시, 대한민국",
        "latitude": 37.5666791,
        "longitude": 126.9782914,
        "type": "city",
        "importance": 0.85,
        "address": {"city": "서울특별시", "country": "대한민국"},
    }]


def test_geocode_no_results_is_a_message_not_an_error(make_dispatcher) -> None:
    outcome = _dispatch(make_dispatcher(http=FakeOrchestrator(response=[])), "geocode", {"query": "Atlantis"})
    assert outcome.content[0].text == 'No results found for "Atlantis".'


def test_geocode_empty_query_never_calls_out(make_dispatcher) -> None:
    http = FakeOrchestrator(response=[SEOUL])
    outcome = _dispatch(make_dispatcher(http=http), "geocode", {"query": "   "})
    assert outcome.kind is ErrorKind.DOMAIN_ERROR
    assert http.calls == []


@pytest.mark.parametrize("limit", [0, 41])
def test_geocode_limit_bounds(make_dispatcher, limit) -> None:
    outcome = _dispatch(make_dispatcher(), "geocode", {"query": "Seoul", "limit": limit})
    assert outcome.kind is ErrorKind.INVALID_INPUT


@pytest.mark.parametrize("payload", [{"error": "nope"}, [{"lat": "north", "lon": "1"}], ["text"]])
def test_geocode_malformed_payloads(make_dispatcher, payload) -> None:
    outcome = _dispatch(make_dispatcher(http=FakeOrchestrator(response=payload)), "geocode", {"query": "x"})
    assert outcome.kind is ErrorKind.MALFORMED_RESPONSE


def test_geocode_end_to_end_against_local_server() -> None:
    seen = {}

    async def search(request: web.Request) -> web.Response:
        seen["query"] = dict(request.query)
        seen["user_agent"] = request.headers.get("User-Agent")
        return web.json_response([SEOUL])

    app = web.Application()
    app.router.add_get("/search", search)

    async def scenario():
        from core.catalog import build_registry
        from core.dispatcher import Dispatcher
        from core.registry import ToolContext

        async with test_utils.TestServer(app) as server:
            cfg = ServerConfig(geocode_url=str(server.make_url("/search")))
            dispatcher = Dispatcher(
                build_registry(),
                ToolContext(config=cfg, http=ExternalCallOrchestrator(cfg.user_agent)),
            )
            return await dispatcher.dispatch("geocode", {"query": "Seoul", "limit": 3})

    outcome = asyncio.run(scenario())
    assert json.loads(outcome.content[0].text)[0]["latitude"] == 37.5666791
    assert seen["query"]["limit"] == "3"
    assert seen["query"]["addressdetails"] == "1"
    assert seen["user_agent"] == "python-mcp-server/1.0.0"


# --- get_weather -----------------------------------------------------------------

def test_weather_request_shape_and_format(make_dispatcher) -> None:
    http = FakeOrchestrator(response=FORECAST)
    outcome = _dispatch(make_dispatcher(http=http), "get_weather", {"latitude": 37.55, "longitude": 127})

    url, kwargs = http.calls[0]
    assert url == ServerConfig().weather_url
    assert kwargs["timeout_ms"] == WEATHER_TIMEOUT_MS == 15_000
    assert kwargs["params"]["timezone"] == "auto"
    assert kwargs["params"]["forecast_days"] == "3"
    assert kwargs["params"]["current"] == "temperature_2m,relative_humidity_2m,weather_code,wind_speed_10m"

    body = json.loads(outcome.content[0].text)
    assert body["location"]["timezone"] == "Asia/Seoul"
    assert body["current"]["temperature"] == -2.1
    assert body["daily"]["precipitation"] == [0.0, 1.3]
    assert body["units"] == {"temperature": "°C", "humidity": "%", "wind_speed": "km/h", "precipitation": "mm"}


def test_weather_units_fall_back_and_missing_sections_are_null() -> None:
    formatted = format_forecast({"latitude": 1, "longitude": 2})
    assert formatted["current"] is None
    assert formatted["daily"] is None
    assert formatted["units"]["precipitation"] == "mm"


def test_weather_error_payload_is_upstream_failure() -> None:
    with pytest.raises(OrchestratorError) as excinfo:
        format_forecast({"error": True, "reason": "Latitude must be in range of -90 to 90°."})
    assert excinfo.value.kind is ErrorKind.UPSTREAM_FAILURE
    assert "Latitude must be" in excinfo.value.message


@pytest.mark.parametrize("args", [
    {"latitude": 91, "longitude": 0},
    {"latitude": 0, "longitude": -180.5},
    {"latitude": 0, "longitude": 0, "forecast_days": 17},
    {"latitude": 0, "longitude": 0, "forecast_days": 0},
])
def test_weather_bounds_are_rejected(make_dispatcher, args) -> None:
    http = FakeOrchestrator(response=FORECAST)
    outcome = _dispatch(make_dispatcher(http=http), "get_weather", args)
    assert outcome.kind is ErrorKind.INVALID_INPUT
    assert http.calls == []


def test_weather_upstream_status_reaches_caller(make_dispatcher) -> None:
    http = FakeOrchestrator(error=OrchestratorError(
        ErrorKind.UPSTREAM_FAILURE, "api.open-meteo.com",
        "api.open-meteo.com returned HTTP 400 Bad Request: Invalid timezone", status=400,
    ))
    outcome = _dispatch(make_dispatcher(http=http), "get_weather", {"latitude": 1, "longitude": 1, "timezone": "x"})
    assert outcome.kind is ErrorKind.UPSTREAM_FAILURE
    assert outcome.status == 400


def test_weather_timeout_reaches_caller_as_envelope(make_dispatcher, monkeypatch) -> None:
    monkeypatch.setattr("core.weather.WEATHER_TIMEOUT_MS", 50)
    session = FakeSession(delay=30)
    http = ExternalCallOrchestrator("python-mcp-server/1.0.0", session_factory=lambda: session)

    started = time.monotonic()
    outcome = _dispatch(make_dispatcher(http=http), "get_weather", {"latitude": 37.5, "longitude": 127})

    assert time.monotonic() - started < 5
    assert outcome.kind is ErrorKind.TIMEOUT
    assert outcome.message == "Request to api.open-meteo.com timed out after 50 ms"
    assert session.cancelled
    assert session.closed


# --- generate_image -------------------------------------------------------------

def test_image_is_base64_with_sniffed_type(make_dispatcher) -> None:
    http = FakeOrchestrator(response=PNG_BYTES)
    outcome = _dispatch(make_dispatcher(http=http), "generate_image", {"prompt": "a red fox"})

    url, kwargs = http.calls[0]
    assert url == ServerConfig().image_url
    assert kwargs["method"] == "POST"
    assert kwargs["expect"] == "bytes"
    assert kwargs["timeout_ms"] == IMAGE_TIMEOUT_MS
    assert kwargs["headers"]["Authorization"] == "Bearer hf_test_token"
    assert kwargs["json_body"] == {"inputs": "a red fox", "parameters": {"num_inference_steps": 5}}

    (item,) = outcome.content
    assert isinstance(item, ImageContent)
    assert item.mimeType == "image/png"
    assert base64.b64decode(item.data) == PNG_BYTES
    assert item.annotations == {"audience": ["user"], "priority": 0.9}


def test_missing_credential_is_domain_error_without_network(make_dispatcher) -> None:
    http = FakeOrchestrator(response=PNG_BYTES)
    outcome = _dispatch(make_dispatcher(http=http, cfg=ServerConfig()), "generate_image", {"prompt": "fox"})
    assert outcome.kind is ErrorKind.DOMAIN_ERROR
    assert "HF_TOKEN" in outcome.message
    assert http.calls == []


def test_non_image_body_is_malformed(make_dispatcher) -> None:
    http = FakeOrchestrator(response=b'{"error": "Model is loading"}')
    outcome = _dispatch(make_dispatcher(http=http), "generate_image", {"prompt": "fox"})
    assert outcome.kind is ErrorKind.MALFORMED_RESPONSE
    assert "hf_test_token" not in outcome.message


def test_timeout_message_does_not_leak_credential(make_dispatcher) -> None:
    http = FakeOrchestrator(error=OrchestratorError(
        ErrorKind.TIMEOUT, "router.huggingface.co", "Request to router.huggingface.co timed out after 60000 ms",
    ))
    outcome = _dispatch(make_dispatcher(http=http), "generate_image", {"prompt": "fox"})
    assert outcome.kind is ErrorKind.TIMEOUT
    assert "hf_test_token" not in outcome.message


@pytest.mark.parametrize("data, expected", [
    (PNG_BYTES, "image/png"),
    (b"\xff\xd8\xff\xe0rest", "image/jpeg"),
    (b"GIF89a....", "image/gif"),
    (b"RIFF\x00\x00\x00\x00WEBPVP8 ", "image/webp"),
    (b"<html>", None),
])
def test_sniff_image_type(data, expected) -> None:
    assert sniff_image_type(data) == expected
