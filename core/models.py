# =============================================================================
# core/models.py  —  Data Models (the "nouns" of the gateway)
# =============================================================================
#
# These dataclasses define the *shape* of everything a tool invocation
# produces.  They are frozen: once a handler builds a result, nothing
# downstream can mutate it.
#
# WHY A TAGGED VARIANT FOR CONTENT?
#   MCP results are an ordered list of content blocks.  Each block is either
#   text or an image.  Modelling them as two small dataclasses with a fixed
#   `type` tag keeps the output contract checkable item by item, and keeps
#   the MCP adapter (tools/mcp_server.py) a one-line translation.
# =============================================================================

from dataclasses import dataclass, field
from typing import Optional, Union


# -----------------------------------------------------------------------------
# ContentItem: one block of a tool result
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class TextContent:
    """A plain text block."""

    text: str
    type: str = field(default="text", init=False)

    def to_dict(self) -> dict:
        return {"type": self.type, "text": self.text}


@dataclass(frozen=True)
class ImageContent:
    """A base64-encoded image block.

    `annotations` mirrors the MCP annotation object (audience, priority) and
    is optional.
    """

    data: str                          # base64, no data: URL prefix
    mimeType: str                      # e.g. "image/png"
    annotations: Optional[dict] = None
    type: str = field(default="image", init=False)

    def to_dict(self) -> dict:
        payload = {"type": self.type, "data": self.data, "mimeType": self.mimeType}
        if self.annotations:
            payload["annotations"] = dict(self.annotations)
        return payload


ContentItem = Union[TextContent, ImageContent]


# -----------------------------------------------------------------------------
# InvocationResult: the only success shape any tool may return
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class InvocationResult:
    """Ordered content produced by one successful tool call."""

    content: tuple = ()

    @classmethod
    def text(cls, text: str) -> "InvocationResult":
        """Shortcut for the common single-text-block result."""
        return cls(content=(TextContent(text=text),))

    def to_dict(self) -> dict:
        return {"content": [item.to_dict() for item in self.content]}


# -----------------------------------------------------------------------------
# ServerMetadata: snapshot served by the mcp://server-info resource
# -----------------------------------------------------------------------------
# Built fresh on every read.  uptimeSeconds is derived from the fixed start
# time, never cached.
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class ToolSummary:
    name: str
    description: str


@dataclass(frozen=True)
class ServerMetadata:
    name: str
    version: str
    description: str
    startTime: str                     # ISO-8601, UTC
    uptimeSeconds: float
    pythonVersion: str
    platform: str
    tools: list[ToolSummary] = field(default_factory=list)
