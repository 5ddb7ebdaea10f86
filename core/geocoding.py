# =============================================================================
# core/geocoding.py  —  Place name → coordinates (OpenStreetMap Nominatim)
# =============================================================================
#
# WHY NOMINATIM?
#   Free, no API key, and the result already carries a display name, a
#   type and an importance score.  Its usage policy requires an identifying
#   User-Agent, which the orchestrator always sends.
#
# BUDGET: 10 s (GEOCODE_TIMEOUT_MS).  No retries.
#
# The raw Nominatim record is much larger than anything a caller needs, so
# each hit is cut down to name / latitude / longitude / type / importance /
# address before it is returned.
# =============================================================================

import json

from core import contracts as c
from core.errors import DomainError, ErrorKind, OrchestratorError
from core.http import GEOCODE_TIMEOUT_MS
from core.models import InvocationResult
from core.registry import ToolContext, ToolDefinition

MAX_RESULTS = 40


def summarize_places(results, service: str = "nominatim.openstreetmap.org") -> list[dict]:
    """Reduce Nominatim records to the fields callers reason about."""
    if not isinstance(results, list):
        raise OrchestratorError(
            ErrorKind.MALFORMED_RESPONSE, service,
            f"{service} returned an unexpected payload (expected a list of places)",
        )
    places = []
    for record in results:
        if not isinstance(record, dict):
            raise OrchestratorError(
                ErrorKind.MALFORMED_RESPONSE, service, f"{service} returned a malformed place record"
            )
        try:
            latitude = float(record["lat"])
            longitude = float(record["lon"])
        except (KeyError, TypeError, ValueError):
            raise OrchestratorError(
                ErrorKind.MALFORMED_RESPONSE, service,
                f"{service} returned a place without usable coordinates",
            ) from None
        places.append({
            "name": record.get("display_name"),
            "latitude": latitude,
            "longitude": longitude,
            "type": record.get("type"),
            "importance": record.get("importance"),
            "address": record.get("address"),
        })
    return places


async def geocode_handler(args: dict, ctx: ToolContext) -> InvocationResult:
    query = args["query"].strip()
    if not query:
        raise DomainError("The search query must not be empty")

    url = ctx.config.geocode_url
    results = await ctx.http.call(
        url,
        params={
            "q": query,
            "format": "jsonv2",
            "limit": str(args["limit"]),
            "addressdetails": "1" if args["addressdetails"] else "0",
        },
        headers={"Accept-Language": "ko,en"},
        timeout_ms=GEOCODE_TIMEOUT_MS,
    )

    places = summarize_places(results)
    if not places:
        return InvocationResult.text(f'No results found for "{query}".')
    return InvocationResult.text(json.dumps(places, indent=2, ensure_ascii=False))


GEOCODE = ToolDefinition(
    name="geocode",
    description="Look up coordinates for a city name or address.",
    input_contract=c.InputContract(fields=(
        c.string("query", "City name or address to search for"),
        c.integer("limit", f"Number of results to return (default: 1, max: {MAX_RESULTS})",
                  default=1, minimum=1, maximum=MAX_RESULTS),
        c.boolean("addressdetails", "Include a structured address breakdown", default=True),
    )),
    handler=geocode_handler,
)
