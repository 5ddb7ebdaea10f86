# =============================================================================
# tools/mcp_server.py  —  FastMCP Server (the protocol edge)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Exposes the gateway over MCP.  It stays thin:
#     - every registry entry becomes a FastMCP tool whose JSON Schema is the
#       tool's InputContract, and whose run() hands the raw arguments to the
#       Dispatcher
#     - mcp://server-info is served from core/resources.py
#     - the "code-review" prompt is rendered by core/prompts.py
#
# HOW A CALL FLOWS:
#   1. An MCP client sends tools/call {name, arguments}
#   2. FastMCP routes it to GatewayTool.run()
#   3. Dispatcher validates, executes, checks the output contract
#   4. InvocationResult → MCP content blocks
#      InvocationError  → ToolError(message), which the client receives as an
#                         isError result carrying only the message text
#
# WHY NOT @mcp.tool() ON TYPED FUNCTIONS?
#   FastMCP would then derive the schema from Python signatures and validate
#   arguments itself.  The gateway owns the contracts (bounds, enum sets,
#   unknown-field rejection), so the registry is the single source of truth.
#
# RUNNING THIS SERVER:
#     a) Through the entry point:   python main.py
#     b) Standalone over stdio:     python -m tools.mcp_server
# =============================================================================

from typing import Any, Optional

from dotenv import load_dotenv
from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.tools import Tool
from fastmcp.tools.tool import ToolResult
from mcp.types import Annotations, ImageContent as MCPImageContent, TextContent as MCPTextContent
from pydantic import Field

from core.catalog import build_registry
from core.config import ServerConfig, load_config
from core.dispatcher import Dispatcher
from core.errors import InvocationError, ValidationError
from core.http import ExternalCallOrchestrator
from core.log import configure_logging, log_status
from core.models import ImageContent, InvocationResult
from core.prompts import CODE_REVIEW
from core.registry import ToolContext, ToolDefinition, ToolRegistry
from core.resources import SERVER_INFO_MIME_TYPE, SERVER_INFO_URI, server_info_text


def to_mcp_content(result: InvocationResult) -> list:
    """Translate our ContentItems into MCP content blocks, order preserved."""
    blocks = []
    for item in result.content:
        if isinstance(item, ImageContent):
            blocks.append(MCPImageContent(
                type="image",
                data=item.data,
                mimeType=item.mimeType,
                annotations=Annotations(**item.annotations) if item.annotations else None,
            ))
        else:
            blocks.append(MCPTextContent(type="text", text=item.text))
    return blocks


class GatewayTool(Tool):
    """A FastMCP tool backed by a registry entry and the Dispatcher."""

    dispatcher: Any = Field(default=None, exclude=True, repr=False)

    @classmethod
    def from_definition(cls, definition: ToolDefinition, dispatcher: Dispatcher) -> "GatewayTool":
        return cls(
            name=definition.name,
            description=definition.description,
            parameters=definition.input_schema(),
            dispatcher=dispatcher,
        )

    async def run(self, arguments: dict[str, Any]) -> ToolResult:
        outcome = await self.dispatcher.dispatch(self.name, arguments)
        if isinstance(outcome, InvocationError):
            raise ToolError(outcome.message)
        return ToolResult(content=to_mcp_content(outcome))


def create_server(
    config: ServerConfig,
    registry: Optional[ToolRegistry] = None,
    orchestrator: Optional[ExternalCallOrchestrator] = None,
) -> FastMCP:
    """Build the FastMCP server.  The registry is complete and frozen
    before any tool is exposed."""
    registry = registry or build_registry()
    orchestrator = orchestrator or ExternalCallOrchestrator(config.user_agent)
    dispatcher = Dispatcher(registry, ToolContext(config=config, http=orchestrator))

    mcp = FastMCP(config.name, instructions=config.description)

    for definition in registry:
        mcp.add_tool(GatewayTool.from_definition(definition, dispatcher))

    @mcp.resource(
        SERVER_INFO_URI,
        name="server-info",
        description="Server metadata and the list of available tools",
        mime_type=SERVER_INFO_MIME_TYPE,
    )
    def server_info() -> str:
        return server_info_text(config, registry)

    @mcp.prompt(name=CODE_REVIEW.name, description=CODE_REVIEW.description)
    def code_review(code: str, reviewFocus: Optional[str] = None) -> str:
        try:
            return CODE_REVIEW.render({"code": code, "reviewFocus": reviewFocus})
        except ValidationError as exc:
            raise ValueError(exc.message) from exc

    if not config.has_credential:
        log_status("HF_TOKEN is not set; generate_image will report a missing credential")
    log_status(f"{config.name} {config.version} ready with {len(registry)} tools")
    return mcp


# =============================================================================
# Server entry point
# =============================================================================
# `python -m tools.mcp_server` runs over stdio with configuration taken from
# the environment (and a .env file, if present).
# =============================================================================
if __name__ == "__main__":
    load_dotenv()
    _config = load_config()
    configure_logging(_config.log_level)
    create_server(_config).run()
