"""MCP application with tools, resources and prompts for the Rijksmuseum API.

This module defines the MCP server with all tools and resources,
intended to be reused by both stdio and HTTP transport entrypoints.
"""

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any, NoReturn

from mcp.server import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.types import (
    CallToolRequest,
    CallToolResult,
    GetPromptResult,
    Prompt,
    Resource,
    ServerResult,
    TextContent,
    Tool,
)
from pydantic import AnyUrl

from rijksmuseum_mcp import prompts
from rijksmuseum_mcp.browser import BrowserLauncher, open_in_browser
from rijksmuseum_mcp.client import RijksmuseumClient
from rijksmuseum_mcp.config import Settings
from rijksmuseum_mcp.errors import (
    ErrorEnvelope,
    ErrorKind,
    UnknownToolError,
    normalize_error,
    to_mcp_error,
)
from rijksmuseum_mcp.models import (
    CULTURES,
    SORT_KEYS,
    ArtistTimelineArgs,
    ArtObject,
    ArtworkIdArgs,
    OpenImageArgs,
    SearchArtworkArgs,
    TimelineEntry,
    UserSetDetailsArgs,
    UserSetsArgs,
)
from rijksmuseum_mcp.validation import ValidationFailure, validate_arguments

logger = logging.getLogger(__name__)

POPULAR_URI = "art://collection/popular"


def create_mcp_server(name: str = "rijksmuseum_mcp") -> Server:
    """Create and configure the MCP server.

    Args:
        name: Server name for identification.

    Returns:
        Configured MCP Server instance.
    """
    return Server(name)


def format_json_response(data: Any) -> list[TextContent]:
    """Format raw data as MCP TextContent.

    Args:
        data: The data to format as JSON.

    Returns:
        List containing a single TextContent with JSON data.
    """
    return [
        TextContent(
            type="text",
            text=json.dumps(data, indent=2, default=str),
        )
    ]


def tool_result(data: Any) -> CallToolResult:
    """Wrap a JSON-serializable payload in a successful tool result."""
    return CallToolResult(content=format_json_response(data), isError=False)


# ==================== Response Formatting ====================


def format_artwork(art: ArtObject) -> dict[str, Any]:
    """Summarize a search hit; absent upstream fields become null."""
    image = None
    if art.web_image is not None:
        image = {
            "url": art.web_image.url,
            "width": art.web_image.width,
            "height": art.web_image.height,
        }
    return {
        "id": art.id,
        "objectNumber": art.object_number,
        "title": art.title,
        "artist": art.principal_or_first_maker,
        "description": art.long_title,
        "details": {
            "dimensions": art.sub_title,
            "maker": art.sc_label_line,
            "location": art.location,
        },
        "image": image,
    }


def format_search_results(artworks: list[ArtObject]) -> dict[str, Any]:
    """Format collection search results.

    Args:
        artworks: Art objects returned by the API.

    Returns:
        Result count and per-artwork summaries.
    """
    return {
        "count": len(artworks),
        "artworks": [format_artwork(art) for art in artworks],
    }


def format_image_tiles(image_data: dict[str, Any]) -> dict[str, Any]:
    """Digest zoom levels alongside the full tile payload.

    Args:
        image_data: Tiles payload with a checked ``levels`` list.

    Returns:
        Level count, per-level resolution and tile count, and the raw details.
    """
    levels = image_data["levels"]
    return {
        "totalLevels": len(levels),
        "zoomLevels": [
            {
                "name": level["name"],
                "resolution": f"{level['width']}x{level['height']}",
                "tilesCount": len(level["tiles"]),
            }
            for level in levels
        ],
        "details": image_data,
    }


def _creator(record: dict[str, Any]) -> str | None:
    user = record.get("user")
    return user.get("name") if isinstance(user, dict) else None


def format_user_sets(payload: dict[str, Any], page: int, page_size: int) -> dict[str, Any]:
    """Format a page of user sets.

    Args:
        payload: API payload with a checked ``userSets`` list.
        page: Requested page.
        page_size: Requested page size.

    Returns:
        Paging information and per-set summaries.
    """
    user_sets = payload["userSets"]
    return {
        "totalSets": payload.get("count"),
        "currentPage": page,
        "pageSize": page_size,
        "fetchedSets": len(user_sets),
        "queryTimeMs": payload.get("elapsedMilliseconds"),
        "sets": [
            {
                "id": user_set.get("id"),
                "name": user_set.get("name"),
                "description": user_set.get("description"),
                "itemCount": user_set.get("count"),
                "creator": _creator(user_set),
                "createdOn": user_set.get("createdOn"),
                "updatedOn": user_set.get("updatedOn"),
                "links": user_set.get("links"),
            }
            for user_set in user_sets
        ],
    }


def _image_info(item: dict[str, Any]) -> dict[str, Any] | None:
    image = item.get("image")
    if not isinstance(image, dict):
        return None
    return {
        "dimensions": f"{image.get('width')}x{image.get('height')}",
        "url": image.get("cdnUrl"),
    }


def format_user_set_details(payload: dict[str, Any], page: int, page_size: int) -> dict[str, Any]:
    """Format a user set and a page of its items.

    Args:
        payload: API payload with a checked ``userSet`` record.
        page: Requested page.
        page_size: Requested page size.

    Returns:
        Set information, item summaries and paging information.
    """
    user_set = payload["userSet"]
    items = user_set.get("setItems") or []
    return {
        "setInfo": {
            "id": user_set.get("id"),
            "name": user_set.get("name"),
            "description": user_set.get("description"),
            "type": user_set.get("type"),
            "totalItems": user_set.get("count"),
            "creator": _creator(user_set),
            "createdOn": user_set.get("createdOn"),
            "updatedOn": user_set.get("updatedOn"),
        },
        "items": [
            {
                "objectNumber": item.get("objectNumber"),
                "links": item.get("links"),
                "imageInfo": _image_info(item),
            }
            for item in items
        ],
        "pagination": {
            "currentPage": page,
            "pageSize": page_size,
            "fetchedItems": len(items),
        },
        "queryTimeMs": payload.get("elapsedMilliseconds"),
    }


def format_timeline(artist: str, works: list[TimelineEntry]) -> dict[str, Any]:
    """Format an artist timeline."""
    return {
        "artist": artist,
        "works": [work.model_dump(by_alias=True) for work in works],
    }


# ==================== Tool Catalog ====================

_CULTURE_SCHEMA = {
    "type": "string",
    "enum": list(CULTURES),
    "description": "Language of returned texts",
    "default": "en",
}

TOOLS: list[Tool] = [
    Tool(
        name="search_artwork",
        description="Search for artworks in the Rijksmuseum collection. At least one search parameter is required.",
        inputSchema={
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Search terms to find artwork (e.g. title, subject)",
                },
                "involvedMaker": {
                    "type": "string",
                    "description": "Artist name (e.g. 'Rembrandt van Rijn')",
                },
                "type": {"type": "string", "description": "Object type (e.g. 'painting')"},
                "material": {"type": "string", "description": "Material (e.g. 'canvas')"},
                "technique": {"type": "string", "description": "Technique (e.g. 'etching')"},
                "century": {
                    "type": "integer",
                    "minimum": -1,
                    "maximum": 21,
                    "description": "Century of creation",
                },
                "color": {"type": "string", "description": "Hex color (e.g. '#FF0000')"},
                "imgonly": {"type": "boolean", "description": "Only artworks with an image"},
                "toppieces": {"type": "boolean", "description": "Only top pieces"},
                "sortBy": {
                    "type": "string",
                    "enum": list(SORT_KEYS),
                    "description": "Sort order",
                    "default": "relevance",
                },
                "p": {
                    "type": "integer",
                    "minimum": 0,
                    "description": "Result page (0-based); p * ps cannot exceed 10,000",
                    "default": 0,
                },
                "ps": {
                    "type": "integer",
                    "minimum": 1,
                    "maximum": 100,
                    "description": "Results per page (1-100)",
                    "default": 10,
                },
                "culture": _CULTURE_SCHEMA,
            },
            "required": [],
        },
    ),
    Tool(
        name="get_artwork_details",
        description="Get detailed information about a specific artwork.",
        inputSchema={
            "type": "object",
            "properties": {
                "objectNumber": {
                    "type": "string",
                    "description": "The identifier of the artwork (e.g. SK-C-5 for The Night Watch)",
                },
                "culture": _CULTURE_SCHEMA,
            },
            "required": ["objectNumber"],
        },
    ),
    Tool(
        name="get_artwork_image",
        description="Get image tiles information for an artwork, with a summary of its zoom levels.",
        inputSchema={
            "type": "object",
            "properties": {
                "objectNumber": {
                    "type": "string",
                    "description": "The identifier of the artwork",
                },
                "culture": _CULTURE_SCHEMA,
            },
            "required": ["objectNumber"],
        },
    ),
    Tool(
        name="get_user_sets",
        description="Get collections created by Rijksstudio users.",
        inputSchema={
            "type": "object",
            "properties": {
                "page": {
                    "type": "integer",
                    "minimum": 0,
                    "description": "Page number to fetch (0-based)",
                    "default": 0,
                },
                "pageSize": {
                    "type": "integer",
                    "minimum": 1,
                    "maximum": 100,
                    "description": "Number of results per page (1-100)",
                    "default": 10,
                },
                "culture": _CULTURE_SCHEMA,
            },
            "required": [],
        },
    ),
    Tool(
        name="get_user_set_details",
        description="Get details about a specific user collection and a page of its items.",
        inputSchema={
            "type": "object",
            "properties": {
                "setId": {"type": "string", "description": "The ID of the user set to fetch"},
                "page": {
                    "type": "integer",
                    "minimum": 0,
                    "description": "Page number to fetch (0-based)",
                    "default": 0,
                },
                "pageSize": {
                    "type": "integer",
                    "minimum": 1,
                    "maximum": 100,
                    "description": "Number of items per page (1-100)",
                    "default": 25,
                },
                "culture": _CULTURE_SCHEMA,
            },
            "required": ["setId"],
        },
    ),
    Tool(
        name="open_image_in_browser",
        description="Open an artwork image URL in your default browser.",
        inputSchema={
            "type": "object",
            "properties": {
                "imageUrl": {
                    "type": "string",
                    "description": "The http(s) URL of the image to open",
                },
            },
            "required": ["imageUrl"],
        },
    ),
    Tool(
        name="get_artist_timeline",
        description="Get a chronological timeline of an artist's works.",
        inputSchema={
            "type": "object",
            "properties": {
                "artist": {"type": "string", "description": "Name of the artist"},
                "maxWorks": {
                    "type": "integer",
                    "minimum": 1,
                    "maximum": 50,
                    "description": "Maximum number of works to include",
                    "default": 10,
                },
                "culture": _CULTURE_SCHEMA,
            },
            "required": ["artist"],
        },
    ),
]


# ==================== Dispatcher ====================


class ToolDispatcher:
    """Routes tool calls through validation, the API client and formatting.

    Every failure is normalized into an ErrorEnvelope and raised as McpError,
    except a failed browser launch, which is returned as a flagged result.
    """

    def __init__(
        self,
        client: RijksmuseumClient,
        launcher: BrowserLauncher = open_in_browser,
    ) -> None:
        self._client = client
        self._launcher = launcher
        self._handlers: dict[str, Callable[[Any], Awaitable[CallToolResult]]] = {
            "search_artwork": self._search_artwork,
            "get_artwork_details": self._get_artwork_details,
            "get_artwork_image": self._get_artwork_image,
            "get_user_sets": self._get_user_sets,
            "get_user_set_details": self._get_user_set_details,
            "open_image_in_browser": self._open_image_in_browser,
            "get_artist_timeline": self._get_artist_timeline,
        }

    @property
    def tool_names(self) -> list[str]:
        return list(self._handlers)

    def _fail(
        self, name: str, envelope: ErrorEnvelope, cause: BaseException | None = None
    ) -> NoReturn:
        if envelope.kind is ErrorKind.INTERNAL_ERROR:
            logger.error("Unexpected error in tool %s", name, exc_info=cause)
        else:
            logger.error("Tool %s failed (%s): %s", name, envelope.kind.value, envelope.message)
        raise to_mcp_error(envelope) from cause

    async def dispatch(self, name: str, arguments: dict[str, Any] | None) -> CallToolResult:
        """Handle a tool call.

        Args:
            name: The tool name to call.
            arguments: Raw tool arguments.

        Returns:
            The tool result.

        Raises:
            McpError: For unknown tools, rejected arguments and API failures.
        """
        logger.info("Tool called: %s", name)

        handler = self._handlers.get(name)
        if handler is None:
            self._fail(name, normalize_error(UnknownToolError(name)))

        validated = validate_arguments(name, arguments)
        if isinstance(validated, ValidationFailure):
            self._fail(name, validated.to_envelope())

        try:
            return await handler(validated)
        except Exception as e:
            self._fail(name, normalize_error(e), e)

    async def _search_artwork(self, args: SearchArtworkArgs) -> CallToolResult:
        artworks = await self._client.search_artworks(args)
        return tool_result(format_search_results(artworks))

    async def _get_artwork_details(self, args: ArtworkIdArgs) -> CallToolResult:
        details = await self._client.get_artwork_details(args.object_number, args.culture)
        return tool_result(details)

    async def _get_artwork_image(self, args: ArtworkIdArgs) -> CallToolResult:
        image_data = await self._client.get_artwork_image_tiles(args.object_number, args.culture)
        return tool_result(format_image_tiles(image_data))

    async def _get_user_sets(self, args: UserSetsArgs) -> CallToolResult:
        payload = await self._client.get_user_sets(args.page, args.page_size, args.culture)
        return tool_result(format_user_sets(payload, args.page, args.page_size))

    async def _get_user_set_details(self, args: UserSetDetailsArgs) -> CallToolResult:
        payload = await self._client.get_user_set_details(
            args.set_id, args.page, args.page_size, args.culture
        )
        return tool_result(format_user_set_details(payload, args.page, args.page_size))

    async def _get_artist_timeline(self, args: ArtistTimelineArgs) -> CallToolResult:
        works = await self._client.get_artist_timeline(args.artist, args.max_works, args.culture)
        return tool_result(format_timeline(args.artist, works))

    async def _open_image_in_browser(self, args: OpenImageArgs) -> CallToolResult:
        # Launch failures are reported in a flagged result, not raised.
        outcome = await self._launcher(args.image_url)
        if not outcome.opened:
            envelope = ErrorEnvelope(
                kind=ErrorKind.LOCAL_SIDE_EFFECT_FAILURE,
                message=f"Failed to open image in browser: {outcome.detail}",
            )
            logger.warning("Tool open_image_in_browser: %s", envelope.message)
            return CallToolResult(
                content=[TextContent(type="text", text=envelope.message)],
                isError=True,
            )
        return CallToolResult(
            content=[
                TextContent(
                    type="text",
                    text=f"Successfully opened image in browser: {args.image_url}",
                )
            ],
            isError=False,
        )


# ==================== Registration ====================


def register_tools(server: Server, dispatcher: ToolDispatcher) -> None:
    """Register all MCP tools on the server.

    Args:
        server: The MCP server to register tools on.
        dispatcher: The dispatcher handling tool calls.
    """

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        """List available tools."""
        return TOOLS

    async def call_tool(req: CallToolRequest) -> ServerResult:
        """Handle tool calls.

        Arguments are validated by the dispatcher, not against inputSchema.
        A raised McpError reaches the caller as a JSON-RPC error with its
        code and data.
        """
        result = await dispatcher.dispatch(req.params.name, req.params.arguments)
        return ServerResult(result)

    # The call_tool() decorator folds every exception into an isError result.
    server.request_handlers[CallToolRequest] = call_tool


async def read_popular_artworks(client: RijksmuseumClient) -> str:
    """Fetch the collection's top pieces as formatted JSON."""
    args = SearchArtworkArgs(toppieces=True, imgonly=True, ps=10)
    artworks = await client.search_artworks(args)
    return json.dumps(format_search_results(artworks), indent=2, default=str)


def register_resources(server: Server, client: RijksmuseumClient) -> None:
    """Register all MCP resources on the server.

    Args:
        server: The MCP server to register resources on.
        client: The Rijksmuseum client for resource reads.
    """

    @server.list_resources()
    async def list_resources() -> list[Resource]:
        """List available resources."""
        return [
            Resource(
                uri=AnyUrl(POPULAR_URI),
                name="Popular Artworks",
                description="Top pieces of the Rijksmuseum collection",
                mimeType="application/json",
            ),
        ]

    @server.read_resource()
    async def read_resource(uri: AnyUrl) -> list[ReadResourceContents]:
        """Read a resource by URI.

        Args:
            uri: The resource URI to read.

        Returns:
            Resource content as JSON text.
        """
        if str(uri) == POPULAR_URI:
            try:
                content = await read_popular_artworks(client)
            except Exception as e:
                envelope = normalize_error(e)
                logger.error("Resource %s failed: %s", uri, envelope.message)
                raise to_mcp_error(envelope) from e
            return [ReadResourceContents(content=content, mime_type="application/json")]
        raise to_mcp_error(
            ErrorEnvelope(kind=ErrorKind.INVALID_ARGUMENT, message=f"Resource not found: {uri}")
        )


def register_prompts(server: Server) -> None:
    """Register the prompt catalog on the server."""

    @server.list_prompts()
    async def list_prompts() -> list[Prompt]:
        """List available prompts."""
        return prompts.list_prompts()

    @server.get_prompt()
    async def get_prompt(name: str, arguments: dict[str, str] | None) -> GetPromptResult:
        """Render a prompt."""
        return prompts.get_prompt(name, arguments)


def setup_mcp_app(
    server: Server,
    settings: Settings,
    client: RijksmuseumClient,
    launcher: BrowserLauncher = open_in_browser,
) -> ToolDispatcher:
    """Set up the complete MCP application.

    Args:
        server: The MCP server to configure.
        settings: Application settings.
        client: The Rijksmuseum client for API calls.
        launcher: Opens URLs for open_image_in_browser.

    Returns:
        The dispatcher handling tool calls.
    """
    dispatcher = ToolDispatcher(client, launcher)
    register_tools(server, dispatcher)
    register_resources(server, client)
    register_prompts(server)
    logger.info("MCP server configured for %s", settings.base_url)
    return dispatcher
