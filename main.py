# =============================================================================
# main.py  —  Entry Point for the Python MCP Server
# =============================================================================
#
# HOW TO RUN:
#   uv run python main.py                       # stdio (for MCP clients)
#   uv run python main.py --transport http --port 8000
#
# WHAT HAPPENS:
#   1. Loads .env (HF_TOKEN, MCP_LOG_LEVEL ...)
#   2. Builds the immutable ServerConfig (core/config.py)
#   3. Sends logs to stderr (stdout belongs to the stdio transport)
#   4. Builds the registry, dispatcher and FastMCP server (tools/mcp_server.py)
#   5. Serves until the client disconnects
#
# A failure during startup is logged and the process exits with status 1.
# =============================================================================

import argparse
import logging
import sys

from dotenv import load_dotenv

# Load environment variables from .env file (HF_TOKEN, etc.)
# This must happen BEFORE the config is built, because load_config() reads
# HF_TOKEN from the environment when no explicit token is given.
load_dotenv()

from core.config import load_config
from core.log import configure_logging
from tools.mcp_server import create_server


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the Python MCP tool server.")
    parser.add_argument(
        "--hf-token",
        default=None,
        help="Hugging Face token for generate_image (overrides HF_TOKEN).",
    )
    parser.add_argument(
        "--transport",
        choices=("stdio", "http", "sse"),
        default="stdio",
        help="MCP transport (default: stdio).",
    )
    parser.add_argument("--host", default="127.0.0.1", help="Bind address for http/sse.")
    parser.add_argument("--port", type=int, default=8000, help="Port for http/sse.")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    config = load_config(hf_token=args.hf_token)
    configure_logging(config.log_level)

    try:
        server = create_server(config)
        if args.transport == "stdio":
            server.run()
        else:
            server.run(transport=args.transport, host=args.host, port=args.port)
    except KeyboardInterrupt:
        return 0
    except Exception:  # noqa: BLE001
        logging.getLogger("mcp.gateway").exception("Error while starting the server")
        return 1
    return 0


# =============================================================================
# Script entry point
# =============================================================================
if __name__ == "__main__":
    sys.exit(main())
