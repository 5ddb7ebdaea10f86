# =============================================================================
# core/log.py  —  Logging Setup & Invocation Log Helpers
# =============================================================================
# We log to STDERR because the MCP server talks to its client over STDOUT
# when it runs with the stdio transport.  Anything printed to stdout would
# corrupt the JSON-RPC stream.
#
# ANSI COLOR CODES:
#     - CYAN for incoming tool calls (tool name + arguments)
#     - YELLOW for intermediate status/progress messages
#     - GREEN for responses
#     - RED for failures
#
# Image payloads are never dumped (only their size), and nothing in here
# ever sees the credential: it lives in ServerConfig, not in arguments.
# =============================================================================

import json
import logging
import sys

_CYAN = "\033[36m"     # Requests (tool calls with params)
_GREEN = "\033[32m"    # Responses
_YELLOW = "\033[33m"   # Status/progress messages
_RED = "\033[31m"      # Failures
_RESET = "\033[0m"     # Reset to default terminal color

LOG_FORMAT = "%(asctime)s [MCP] %(message)s"

logger = logging.getLogger("mcp.gateway")


def configure_logging(level: str = "INFO") -> None:
    """Send all log output to stderr.  Call once, from the entry point."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def log_request(tool_name: str, arguments) -> None:
    """Log an incoming tool call with its parameters in CYAN."""
    if isinstance(arguments, dict):
        param_str = ", ".join(f"{k}={v!r}" for k, v in arguments.items())
    else:
        param_str = repr(arguments)
    logger.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def log_status(message: str) -> None:
    """Log an intermediate status message in YELLOW."""
    logger.info(f"{_YELLOW}  → {message}{_RESET}")


def log_response(tool_name: str, payload: dict) -> None:
    """Log the tool response as compact JSON in GREEN."""
    logger.info(
        f"{_GREEN}  ← {tool_name} response: "
        f"{json.dumps(summarize_content(payload), ensure_ascii=False, separators=(',', ':'))}{_RESET}"
    )


def log_failure(tool_name: str, kind: str, message: str) -> None:
    """Log a failed invocation in RED."""
    logger.warning(f"{_RED}  ✗ {tool_name} failed ({kind}): {message}{_RESET}")


def summarize_content(payload: dict) -> dict:
    """Replace image data with its length so logs stay readable."""
    items = []
    for item in payload.get("content", []):
        if item.get("type") == "image":
            items.append({
                "type": "image",
                "mimeType": item.get("mimeType"),
                "bytes_b64": len(item.get("data", "")),
            })
        else:
            items.append(item)
    return {**payload, "content": items}
