# =============================================================================
# core/__init__.py
# =============================================================================
# This package contains the tool invocation gateway and every tool body.
#
# CRITICAL ARCHITECTURAL RULE:
#   Nothing in this package imports FastMCP or any transport.  The gateway
#   (contracts, registry, dispatcher, orchestrator) and the tools can be
#   driven from a plain asyncio.run() in a REPL or a test.  The MCP wiring
#   lives in tools/.
#
# The one outside library used here is aiohttp, and only in core/http.py:
# every outbound call goes through that module.
# =============================================================================
