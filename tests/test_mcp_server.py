import asyncio
import json

import pytest
from conftest import FakeOrchestrator
from fastmcp import Client
from fastmcp.exceptions import ToolError

from core.config import ServerConfig
from tools.mcp_server import create_server


def _run(scenario, server):
    async def runner():
        async with Client(server) as client:
            return await scenario(client)

    return asyncio.run(runner())


def test_tools_are_listed_with_contract_schemas() -> None:
    server = create_server(ServerConfig())

    async def scenario(client):
        return await client.list_tools()

    tools = _run(scenario, server)
    assert [tool.name for tool in tools] == [
        "greeting", "calculator", "get_time", "find_primes", "generate_image", "geocode", "get_weather",
    ]
    weather = next(tool for tool in tools if tool.name == "get_weather")
    days = weather.inputSchema["properties"]["forecast_days"]
    assert (days["minimum"], days["maximum"], days["default"]) == (1, 16, 3)
    assert weather.inputSchema["required"] == ["latitude", "longitude"]


def test_successful_call_returns_text_content() -> None:
    server = create_server(ServerConfig())

    async def scenario(client):
        return await client.call_tool("calculator", {"operation": "add", "a": 1, "b": 2})

    result = _run(scenario, server)
    assert result.content[0].type == "text"
    assert result.content[0].text == "1 + 2 = 3"


def test_failures_surface_as_tool_errors_with_message_only() -> None:
    server = create_server(ServerConfig())

    async def scenario(client):
        with pytest.raises(ToolError, match="Cannot divide by zero"):
            await client.call_tool("calculator", {"operation": "divide", "a": 1, "b": 0})
        with pytest.raises(ToolError, match="unknown field"):
            await client.call_tool("greeting", {"name": "Ada", "mood": "happy"})

    _run(scenario, server)


def test_image_results_become_image_blocks() -> None:
    png = b"\x89PNG\r\n\x1a\n" + b"\x01" * 8
    server = create_server(ServerConfig(hf_token="hf_x"), orchestrator=FakeOrchestrator(response=png))

    async def scenario(client):
        return await client.call_tool("generate_image", {"prompt": "a lighthouse"})

    result = _run(scenario, server)
    (block,) = result.content
    assert block.type == "image"
    assert block.mimeType == "image/png"


def test_server_info_resource() -> None:
    server = create_server(ServerConfig())

    async def scenario(client):
        return await client.read_resource("mcp://server-info")

    contents = _run(scenario, server)
    info = json.loads(contents[0].text)
    assert info["name"] == "python-mcp-server"
    assert info["tools"][0]["name"] == "greeting"
    assert info["uptimeSeconds"] >= 0


def test_code_review_prompt() -> None:
    server = create_server(ServerConfig())

    async def scenario(client):
        return await client.get_prompt("code-review", {"code": "x=1"})

    result = _run(scenario, server)
    (message,) = result.messages
    assert message.role == "user"
    assert "x=1" in message.content.text
    assert "{reviewFocus}" not in message.content.text
