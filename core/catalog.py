# =============================================================================
# core/catalog.py  —  The list of tools this server exposes
# =============================================================================
# Order matters: it is the order clients see in tool listings and in the
# mcp://server-info resource.
# =============================================================================

from core.geocoding import GEOCODE
from core.images import GENERATE_IMAGE
from core.local_tools import CALCULATOR, FIND_PRIMES, GET_TIME, GREETING
from core.registry import ToolRegistry
from core.weather import GET_WEATHER

TOOLS = (
    GREETING,
    CALCULATOR,
    GET_TIME,
    FIND_PRIMES,
    GENERATE_IMAGE,
    GEOCODE,
    GET_WEATHER,
)


def build_registry(definitions=TOOLS) -> ToolRegistry:
    """Register every tool and freeze the registry."""
    registry = ToolRegistry()
    for definition in definitions:
        registry.register(definition)
    return registry.freeze()
