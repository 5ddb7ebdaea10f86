# =============================================================================
# tools/__init__.py
# =============================================================================
# This package contains the FastMCP server.
#
# ARCHITECTURAL ROLE:
#   tools/ is the "translation layer" between MCP and the gateway in core/.
#   It:
#     1. Turns every registry entry into an MCP tool (schema + description)
#     2. Passes raw arguments to the Dispatcher
#     3. Converts InvocationResult → MCP content, InvocationError → ToolError
#     4. Serves the server-info resource and the code-review prompt
#
# WHAT THIS PACKAGE DOES NOT DO:
#   - It does NOT validate arguments (the InputContracts do)
#   - It does NOT contain tool logic (that's in core/)
#   - It does NOT talk to third-party APIs (core/http.py does)
# =============================================================================
