"""stdio transport entrypoint for the Rijksmuseum MCP server.

This module provides the main entrypoint for running the MCP server
using stdio transport, suitable for use with Claude Desktop and similar tools.
"""

import asyncio
import logging
import sys

from mcp.server.stdio import stdio_server
from pydantic import ValidationError

from rijksmuseum_mcp.client import RijksmuseumClient
from rijksmuseum_mcp.config import Settings, get_settings
from rijksmuseum_mcp.mcp_app import create_mcp_server, setup_mcp_app

# Configure logging to stderr to avoid interfering with stdio transport
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


async def run_server(settings: Settings) -> None:
    """Run the MCP server with stdio transport."""
    logger.info("Starting Rijksmuseum MCP server (stdio transport)")
    logger.info("Using Rijksmuseum API at %s", settings.base_url)

    server = create_mcp_server()
    client = RijksmuseumClient(settings)

    try:
        setup_mcp_app(server, settings, client)

        async with stdio_server() as (read_stream, write_stream):
            await server.run(
                read_stream,
                write_stream,
                server.create_initialization_options(),
            )
    finally:
        await client.close()
        logger.info("Server shutdown complete")


def main() -> None:
    """Main entrypoint for stdio transport."""
    try:
        settings = get_settings()
    except ValidationError as e:
        logger.error("Invalid configuration: %s", e.errors(include_url=False)[0]["msg"])
        sys.exit(1)
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        sys.exit(1)

    try:
        asyncio.run(run_server(settings))
    except KeyboardInterrupt:
        logger.info("Server interrupted by user")
    except Exception as e:
        logger.exception("Server failed: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
