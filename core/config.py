# =============================================================================
# core/config.py  —  Server Configuration (built once, never mutated)
# =============================================================================
#
# Everything that is "process-wide" lives here: identity, start time, the
# optional Hugging Face credential and the third-party endpoints.
#
# The object is a FROZEN dataclass created once at startup and handed to
# every handler through ToolContext.  Handlers never read os.environ
# themselves, which keeps them testable with a hand-built config.
#
# CREDENTIAL RESOLUTION ORDER:
#   1. an explicit value (e.g. `main.py --hf-token ...`)
#   2. the HF_TOKEN environment variable (a .env file is loaded by main.py)
#   Missing is fine at startup; generate_image reports it at call time.
# =============================================================================

import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Mapping, Optional

SERVER_NAME = "python-mcp-server"
SERVER_VERSION = "1.0.0"
SERVER_DESCRIPTION = "Python MCP server exposing local and web-backed tools"

NOMINATIM_SEARCH_URL = "https://nominatim.openstreetmap.org/search"
OPEN_METEO_FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
HF_IMAGE_MODEL = "black-forest-labs/FLUX.1-schnell"
HF_IMAGE_URL = f"https://router.huggingface.co/hf-inference/models/{HF_IMAGE_MODEL}"

CREDENTIAL_ENV_VAR = "HF_TOKEN"
LOG_LEVEL_ENV_VAR = "MCP_LOG_LEVEL"


@dataclass(frozen=True)
class ServerConfig:
    """Immutable process configuration."""

    name: str = SERVER_NAME
    version: str = SERVER_VERSION
    description: str = SERVER_DESCRIPTION
    start_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    # repr=False keeps the token out of any log line that prints the config.
    hf_token: Optional[str] = field(default=None, repr=False)

    geocode_url: str = NOMINATIM_SEARCH_URL
    weather_url: str = OPEN_METEO_FORECAST_URL
    image_url: str = HF_IMAGE_URL

    log_level: str = "INFO"

    @property
    def user_agent(self) -> str:
        """The fixed identifying header sent with every outbound call."""
        return f"{self.name}/{self.version}"

    @property
    def has_credential(self) -> bool:
        return bool(self.hf_token)

    def uptime_seconds(self, now: Optional[datetime] = None) -> float:
        now = now or datetime.now(timezone.utc)
        return max(0.0, (now - self.start_time).total_seconds())


def load_config(
    hf_token: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
    **overrides,
) -> ServerConfig:
    """Build the ServerConfig for this process.

    Args:
        hf_token: Explicit credential.  Wins over the environment.
        environ: Mapping to read from instead of os.environ (tests).
        **overrides: Any other ServerConfig field (endpoints, name ...).
    """
    env = os.environ if environ is None else environ

    token = (hf_token or "").strip() or (env.get(CREDENTIAL_ENV_VAR) or "").strip() or None
    log_level = (env.get(LOG_LEVEL_ENV_VAR) or "INFO").strip().upper() or "INFO"

    overrides.setdefault("log_level", log_level)
    return ServerConfig(hf_token=token, **overrides)
