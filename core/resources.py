# =============================================================================
# core/resources.py  —  The mcp://server-info resource
# =============================================================================
# Read-only server metadata plus the tool listing.  Rebuilt on every read:
# uptimeSeconds is derived from the fixed start time and is never cached.
# =============================================================================

import json
import platform
from dataclasses import asdict
from datetime import datetime
from typing import Optional

from core.config import ServerConfig
from core.models import ServerMetadata, ToolSummary
from core.registry import ToolRegistry

SERVER_INFO_URI = "mcp://server-info"
SERVER_INFO_MIME_TYPE = "application/json"


def server_metadata(
    config: ServerConfig, registry: ToolRegistry, now: Optional[datetime] = None
) -> ServerMetadata:
    return ServerMetadata(
        name=config.name,
        version=config.version,
        description=config.description,
        startTime=config.start_time.isoformat(),
        uptimeSeconds=round(config.uptime_seconds(now), 3),
        pythonVersion=platform.python_version(),
        platform=platform.system().lower(),
        tools=[ToolSummary(name=d.name, description=d.description) for d in registry],
    )


def server_info_text(
    config: ServerConfig, registry: ToolRegistry, now: Optional[datetime] = None
) -> str:
    return json.dumps(asdict(server_metadata(config, registry, now)), indent=2, ensure_ascii=False)


def read_server_info(
    config: ServerConfig, registry: ToolRegistry, now: Optional[datetime] = None
) -> dict:
    """Full resource-read payload: {contents: [{uri, mimeType, text}]}."""
    return {
        "contents": [
            {
                "uri": SERVER_INFO_URI,
                "mimeType": SERVER_INFO_MIME_TYPE,
                "text": server_info_text(config, registry, now),
            }
        ]
    }
