"""HTTP (SSE) transport entrypoint for the Rijksmuseum MCP server.

This module provides the main entrypoint for running the MCP server
over Server-Sent Events via uvicorn.
"""

import argparse
import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from mcp.server.sse import SseServerTransport
from pydantic import ValidationError
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Mount, Route

from rijksmuseum_mcp.client import RijksmuseumClient
from rijksmuseum_mcp.config import Settings, get_settings
from rijksmuseum_mcp.mcp_app import create_mcp_server, setup_mcp_app

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> Starlette:
    """Create the Starlette ASGI application with MCP endpoints.

    Args:
        settings: Settings to use; loaded from the environment when omitted.

    Returns:
        Configured Starlette application.
    """
    settings = settings or get_settings()
    mcp_server = create_mcp_server()
    client = RijksmuseumClient(settings)
    setup_mcp_app(mcp_server, settings, client)

    # Path is where clients POST messages
    sse_transport = SseServerTransport("/mcp/messages/")

    async def handle_sse(request: Request) -> Response:
        """Handle SSE connections for MCP.

        The MCP SDK needs the raw ASGI send callable, only reachable through
        request._send. Must return Response() to avoid NoneType error on
        disconnect.
        """
        try:
            async with sse_transport.connect_sse(
                request.scope, request.receive, request._send
            ) as streams:
                await mcp_server.run(
                    streams[0],
                    streams[1],
                    mcp_server.create_initialization_options(),
                )
        except Exception:
            logger.exception("Unhandled exception in SSE handler")
        return Response()

    async def health_check(_request: Request) -> JSONResponse:
        """Health check endpoint."""
        return JSONResponse(
            {
                "status": "healthy",
                "service": "rijksmuseum_mcp",
                "api_url": settings.base_url,
            }
        )

    @asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncIterator[None]:
        logger.info("Rijksmuseum MCP server starting (HTTP transport)")
        logger.info("Using Rijksmuseum API at %s", settings.base_url)
        try:
            yield
        finally:
            await client.close()
            logger.info("Server shutdown complete")

    return Starlette(
        debug=False,
        routes=[
            Route("/health", health_check, methods=["GET"]),
            Route("/mcp", handle_sse, methods=["GET"]),
            Mount("/mcp/messages/", app=sse_transport.handle_post_message),
        ],
        lifespan=lifespan,
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(description="Rijksmuseum MCP server with HTTP transport")
    parser.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8765,
        help="Port to bind to (default: 8765)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )
    return parser.parse_args(argv)


def main() -> None:
    """Main entrypoint for HTTP transport."""
    args = parse_args()

    # Fail fast on a missing API key instead of inside the uvicorn worker.
    try:
        get_settings()
    except ValidationError as e:
        logger.error("Invalid configuration: %s", e.errors(include_url=False)[0]["msg"])
        sys.exit(1)
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        sys.exit(1)

    logger.info("Starting server on %s:%d", args.host, args.port)

    try:
        uvicorn.run(
            "rijksmuseum_mcp.server_http:create_app",
            host=args.host,
            port=args.port,
            reload=args.reload,
            factory=True,
            log_level="info",
        )
    except KeyboardInterrupt:
        logger.info("Server interrupted by user")
    except Exception as e:
        logger.exception("Server failed: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
