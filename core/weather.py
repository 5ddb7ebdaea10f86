# =============================================================================
# core/weather.py  —  Current conditions & daily forecast (Open-Meteo)
# =============================================================================
#
# WHY OPEN-METEO?
#   - Completely free, no API key required
#   - Provides up to 16 days of forecast data
#   - Returns temperature, precipitation, wind and WMO weather codes
#
# BUDGET: 15 s (WEATHER_TIMEOUT_MS).  No retries.
#
# Open-Meteo reports request problems (bad timezone, bad coordinates) as
# {"error": true, "reason": "..."}.  Usually that comes with HTTP 400 and the
# orchestrator handles it; if it ever arrives with a 2xx status we still
# treat it as an upstream failure rather than an empty forecast.
#
# The response is reshaped into short, unit-annotated sections:
#   location / current / daily / units
# =============================================================================

import json

from core import contracts as c
from core.errors import ErrorKind, OrchestratorError
from core.http import WEATHER_TIMEOUT_MS
from core.models import InvocationResult
from core.registry import ToolContext, ToolDefinition

MAX_FORECAST_DAYS = 16

CURRENT_VARIABLES = "temperature_2m,relative_humidity_2m,weather_code,wind_speed_10m"
DAILY_VARIABLES = "temperature_2m_max,temperature_2m_min,precipitation_sum,weather_code"

# Used when the API omits its *_units blocks.
_DEFAULT_UNITS = {
    "temperature": "°C",
    "humidity": "%",
    "wind_speed": "km/h",
    "precipitation": "mm",
}


def format_forecast(data, service: str = "api.open-meteo.com") -> dict:
    """Reshape an Open-Meteo forecast payload."""
    if not isinstance(data, dict):
        raise OrchestratorError(
            ErrorKind.MALFORMED_RESPONSE, service, f"{service} returned an unexpected payload"
        )
    if data.get("error"):
        reason = data.get("reason") or "unknown error"
        raise OrchestratorError(
            ErrorKind.UPSTREAM_FAILURE, service, f"Open-Meteo API error: {reason}", detail=str(reason)
        )

    current = data.get("current")
    daily = data.get("daily")
    current_units = data.get("current_units") or {}
    daily_units = data.get("daily_units") or {}

    return {
        "location": {
            "latitude": data.get("latitude"),
            "longitude": data.get("longitude"),
            "timezone": data.get("timezone"),
            "elevation": data.get("elevation"),
        },
        "current": {
            "temperature": current.get("temperature_2m"),
            "humidity": current.get("relative_humidity_2m"),
            "weather_code": current.get("weather_code"),
            "wind_speed": current.get("wind_speed_10m"),
            "time": current.get("time"),
        } if isinstance(current, dict) else None,
        "daily": {
            "time": daily.get("time"),
            "temperature_max": daily.get("temperature_2m_max"),
            "temperature_min": daily.get("temperature_2m_min"),
            "precipitation": daily.get("precipitation_sum"),
            "weather_code": daily.get("weather_code"),
        } if isinstance(daily, dict) else None,
        "units": {
            "temperature": current_units.get("temperature_2m") or _DEFAULT_UNITS["temperature"],
            "humidity": current_units.get("relative_humidity_2m") or _DEFAULT_UNITS["humidity"],
            "wind_speed": current_units.get("wind_speed_10m") or _DEFAULT_UNITS["wind_speed"],
            "precipitation": daily_units.get("precipitation_sum") or _DEFAULT_UNITS["precipitation"],
        },
    }


async def get_weather_handler(args: dict, ctx: ToolContext) -> InvocationResult:
    data = await ctx.http.call(
        ctx.config.weather_url,
        params={
            "latitude": str(args["latitude"]),
            "longitude": str(args["longitude"]),
            "timezone": args["timezone"],
            "forecast_days": str(args["forecast_days"]),
            "current": CURRENT_VARIABLES,
            "daily": DAILY_VARIABLES,
        },
        timeout_ms=WEATHER_TIMEOUT_MS,
    )
    return InvocationResult.text(json.dumps(format_forecast(data), indent=2, ensure_ascii=False))


GET_WEATHER = ToolDefinition(
    name="get_weather",
    description="Get current weather and a daily forecast for a coordinate (Open-Meteo).",
    input_contract=c.InputContract(fields=(
        c.number("latitude", "Latitude (WGS84)", minimum=-90, maximum=90),
        c.number("longitude", "Longitude (WGS84)", minimum=-180, maximum=180),
        c.string("timezone", "Time zone for timestamps (default: auto - detect from location)",
                 default="auto"),
        c.integer("forecast_days", f"Days of forecast (default: 3, max: {MAX_FORECAST_DAYS})",
                  default=3, minimum=1, maximum=MAX_FORECAST_DAYS),
    )),
    handler=get_weather_handler,
)
