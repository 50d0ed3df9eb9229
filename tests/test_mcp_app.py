"""Tests for the MCP tool dispatcher."""

import json
from unittest.mock import AsyncMock

import httpx
import pytest
import respx
from conftest import BASE_URL, art_object
from mcp.shared.exceptions import McpError
from mcp.types import INTERNAL_ERROR, INVALID_PARAMS, METHOD_NOT_FOUND, CallToolResult

from rijksmuseum_mcp.browser import BrowserLaunchResult
from rijksmuseum_mcp.client import RijksmuseumClient
from rijksmuseum_mcp.mcp_app import TOOLS, ToolDispatcher

REQUIRED_ARGUMENT_TOOLS = [
    ("get_artwork_details", "objectNumber"),
    ("get_artwork_image", "objectNumber"),
    ("get_user_set_details", "setId"),
    ("open_image_in_browser", "imageUrl"),
    ("get_artist_timeline", "artist"),
]


@pytest.fixture
def launcher() -> AsyncMock:
    """Browser launcher double that always succeeds."""
    return AsyncMock(return_value=BrowserLaunchResult(opened=True))


@pytest.fixture
def client_double() -> AsyncMock:
    """Upstream client double that records calls."""
    return AsyncMock(spec=RijksmuseumClient)


@pytest.fixture
def dispatcher(client: RijksmuseumClient, launcher: AsyncMock) -> ToolDispatcher:
    """Dispatcher over a real client, for use with respx."""
    return ToolDispatcher(client, launcher)


def payload_of(result: CallToolResult):
    assert len(result.content) == 1
    assert result.content[0].type == "text"
    return json.loads(result.content[0].text)


def error_kind(exc_info: pytest.ExceptionInfo[McpError]) -> str:
    return exc_info.value.error.data["kind"]


class TestToolCatalog:
    """Tests for the listed tools."""

    def test_tool_names_match_dispatcher(self, client_double: AsyncMock) -> None:
        """Test every listed tool is routable and vice versa."""
        dispatcher = ToolDispatcher(client_double)

        assert [tool.name for tool in TOOLS] == dispatcher.tool_names

    def test_required_fields_declared(self) -> None:
        """Test input schemas declare the required identifiers."""
        required = {tool.name: tool.inputSchema["required"] for tool in TOOLS}

        for name, field in REQUIRED_ARGUMENT_TOOLS:
            assert required[name] == [field]
        assert required["search_artwork"] == []
        assert required["get_user_sets"] == []


class TestRouting:
    """Tests for routing and validation failures."""

    async def test_unknown_tool(self, client_double: AsyncMock) -> None:
        """Test an undeclared tool name is a method-not-found error."""
        dispatcher = ToolDispatcher(client_double)

        with pytest.raises(McpError) as exc_info:
            await dispatcher.dispatch("delete_artwork", {})

        assert exc_info.value.error.code == METHOD_NOT_FOUND
        assert error_kind(exc_info) == "unknown_operation"
        assert "delete_artwork" in exc_info.value.error.message

    @pytest.mark.parametrize(("tool", "field"), REQUIRED_ARGUMENT_TOOLS)
    async def test_missing_required_makes_no_call(
        self, tool: str, field: str, client_double: AsyncMock, launcher: AsyncMock
    ) -> None:
        """Test a missing required field is reported before any outbound call."""
        dispatcher = ToolDispatcher(client_double, launcher)

        with pytest.raises(McpError) as exc_info:
            await dispatcher.dispatch(tool, {})

        assert exc_info.value.error.code == INVALID_PARAMS
        assert error_kind(exc_info) == "missing_required_parameter"
        assert field in exc_info.value.error.message
        assert client_double.mock_calls == []
        launcher.assert_not_called()

    async def test_search_without_filters(self, client_double: AsyncMock) -> None:
        """Test search with zero filters is an invalid argument."""
        dispatcher = ToolDispatcher(client_double)

        with pytest.raises(McpError) as exc_info:
            await dispatcher.dispatch("search_artwork", {})

        assert exc_info.value.error.code == INVALID_PARAMS
        assert error_kind(exc_info) == "invalid_argument"
        client_double.search_artworks.assert_not_called()

    async def test_search_with_single_filter(self, client_double: AsyncMock) -> None:
        """Test search with one filter reaches the client."""
        client_double.search_artworks.return_value = []
        dispatcher = ToolDispatcher(client_double)

        result = await dispatcher.dispatch("search_artwork", {"century": 17})

        assert payload_of(result) == {"count": 0, "artworks": []}
        client_double.search_artworks.assert_awaited_once()
        assert client_double.search_artworks.await_args.args[0].century == 17

    @pytest.mark.parametrize(
        ("tool", "arguments"),
        [
            ("search_artwork", {"query": "x", "p": 101, "ps": 100}),
            ("get_user_sets", {"page": 1001, "pageSize": 10}),
            ("get_user_set_details", {"setId": "s", "page": 401}),
        ],
    )
    async def test_result_window_exceeded_makes_no_call(
        self, tool: str, arguments: dict, client_double: AsyncMock
    ) -> None:
        """Test pages past the result window are rejected before any call."""
        dispatcher = ToolDispatcher(client_double)

        with pytest.raises(McpError) as exc_info:
            await dispatcher.dispatch(tool, arguments)

        assert error_kind(exc_info) == "invalid_argument"
        assert client_double.mock_calls == []

    @pytest.mark.parametrize(
        ("tool", "arguments", "path", "payload"),
        [
            ("search_artwork", {"query": "x", "p": 100, "ps": 100}, "collection", {"artObjects": []}),
            ("get_user_sets", {"page": 1000, "pageSize": 10}, "usersets", {"userSets": []}),
            (
                "get_user_set_details",
                {"setId": "s", "page": 400},
                "usersets/s",
                {"userSet": {"setItems": []}},
            ),
        ],
    )
    @respx.mock
    async def test_result_window_boundary_accepted(
        self, tool: str, arguments: dict, path: str, payload: dict, dispatcher: ToolDispatcher
    ) -> None:
        """Test page * pageSize == 10000 is dispatched."""
        route = respx.get(f"{BASE_URL}/en/{path}").mock(
            return_value=httpx.Response(200, json=payload)
        )

        result = await dispatcher.dispatch(tool, arguments)

        assert result.isError is False
        assert route.call_count == 1

    async def test_none_arguments(self, client_double: AsyncMock) -> None:
        """Test absent arguments are treated as an empty object."""
        client_double.get_user_sets.return_value = {"count": 0, "userSets": []}
        dispatcher = ToolDispatcher(client_double)

        result = await dispatcher.dispatch("get_user_sets", None)

        assert payload_of(result)["pageSize"] == 10
        client_double.get_user_sets.assert_awaited_once_with(0, 10, "en")


class TestUpstreamErrors:
    """Tests for upstream failure translation."""

    @respx.mock
    async def test_server_error(self, dispatcher: ToolDispatcher) -> None:
        """Test a 500 maps to an upstream protocol failure mentioning the status."""
        respx.get(f"{BASE_URL}/en/collection/SK-C-5").mock(
            return_value=httpx.Response(500, text="Internal Server Error")
        )

        with pytest.raises(McpError) as exc_info:
            await dispatcher.dispatch("get_artwork_details", {"objectNumber": "SK-C-5"})

        assert exc_info.value.error.code == INTERNAL_ERROR
        assert error_kind(exc_info) == "upstream_protocol_failure"
        assert "500" in exc_info.value.error.message

    @respx.mock
    async def test_contract_violation(self, dispatcher: ToolDispatcher) -> None:
        """Test a 2xx payload missing artObjects is not an empty result."""
        respx.get(f"{BASE_URL}/en/collection").mock(
            return_value=httpx.Response(200, json={"count": 0})
        )

        with pytest.raises(McpError) as exc_info:
            await dispatcher.dispatch("search_artwork", {"query": "tulips"})

        assert exc_info.value.error.code == INTERNAL_ERROR
        assert error_kind(exc_info) == "upstream_contract_violation"

    @respx.mock
    async def test_network_failure(self, dispatcher: ToolDispatcher) -> None:
        """Test connection errors map to an upstream network failure."""
        respx.get(f"{BASE_URL}/en/usersets").mock(
            side_effect=httpx.ConnectError("Connection refused")
        )

        with pytest.raises(McpError) as exc_info:
            await dispatcher.dispatch("get_user_sets", {})

        assert error_kind(exc_info) == "upstream_network_failure"

    async def test_unexpected_error(self, client_double: AsyncMock) -> None:
        """Test unanticipated exceptions surface as internal errors."""
        client_double.get_artwork_details.side_effect = RuntimeError("boom")
        dispatcher = ToolDispatcher(client_double)

        with pytest.raises(McpError) as exc_info:
            await dispatcher.dispatch("get_artwork_details", {"objectNumber": "SK-C-5"})

        assert exc_info.value.error.code == INTERNAL_ERROR
        assert error_kind(exc_info) == "internal_error"
        assert "boom" in exc_info.value.error.message


class TestToolResults:
    """Tests for successful tool calls end to end."""

    @respx.mock
    async def test_search_artwork(self, dispatcher: ToolDispatcher) -> None:
        """Test search results are summarized."""
        respx.get(f"{BASE_URL}/en/collection").mock(
            return_value=httpx.Response(
                200,
                json={"artObjects": [art_object("SK-C-5"), art_object("SK-A-1", with_image=False)]},
            )
        )

        result = await dispatcher.dispatch("search_artwork", {"involvedMaker": "Rembrandt van Rijn"})

        data = payload_of(result)
        assert result.isError is False
        assert data["count"] == 2
        assert data["artworks"][0]["objectNumber"] == "SK-C-5"
        assert data["artworks"][0]["artist"] == "Rembrandt van Rijn"
        assert data["artworks"][0]["image"]["width"] == 2500
        assert data["artworks"][1]["image"] is None

    @respx.mock
    async def test_artwork_details_idempotent(self, dispatcher: ToolDispatcher) -> None:
        """Test identical upstream payloads give byte-identical results."""
        payload = {"artObject": {"objectNumber": "SK-C-5", "title": "De Nachtwacht"}}
        respx.get(f"{BASE_URL}/en/collection/SK-C-5").mock(
            return_value=httpx.Response(200, json=payload)
        )

        first = await dispatcher.dispatch("get_artwork_details", {"objectNumber": "SK-C-5"})
        second = await dispatcher.dispatch("get_artwork_details", {"objectNumber": "SK-C-5"})

        assert first.content[0].text == second.content[0].text
        assert payload_of(first) == payload

    @respx.mock
    async def test_artwork_image(self, dispatcher: ToolDispatcher) -> None:
        """Test tile payloads come with a zoom level digest."""
        payload = {
            "levels": [
                {"name": "z0", "width": 5000, "height": 4000, "tiles": [{}, {}, {}]},
                {"name": "z1", "width": 2500, "height": 2000, "tiles": [{}]},
            ]
        }
        respx.get(f"{BASE_URL}/en/collection/SK-C-5/tiles").mock(
            return_value=httpx.Response(200, json=payload)
        )

        result = await dispatcher.dispatch("get_artwork_image", {"objectNumber": "SK-C-5"})

        data = payload_of(result)
        assert data["totalLevels"] == 2
        assert data["zoomLevels"][0] == {"name": "z0", "resolution": "5000x4000", "tilesCount": 3}
        assert data["details"] == payload

    @respx.mock
    async def test_artist_timeline(self, dispatcher: ToolDispatcher) -> None:
        """Test the timeline keeps upstream order and marks undated works."""
        objects = [
            art_object("SK-A-1", "Self-portrait as the Apostle Paul, Rembrandt van Rijn, 1661"),
            art_object("SK-C-5", "The Night Watch, Rembrandt van Rijn, 1642"),
            art_object("SK-A-2", "Portrait of a Woman, Rembrandt van Rijn"),
            art_object("SK-A-3", "The Jewish Bride, Rembrandt van Rijn, c. 1665"),
            art_object("SK-A-4", "The Sampling Officials, Rembrandt van Rijn, 1662"),
        ]
        respx.get(f"{BASE_URL}/en/collection").mock(
            return_value=httpx.Response(200, json={"artObjects": objects})
        )

        result = await dispatcher.dispatch(
            "get_artist_timeline", {"artist": "Rembrandt van Rijn", "maxWorks": 5}
        )

        data = payload_of(result)
        assert data["artist"] == "Rembrandt van Rijn"
        assert len(data["works"]) == 5
        assert [w["year"] for w in data["works"]] == ["1661", "1642", "Unknown", "1665", "1662"]
        assert data["works"][1] == {
            "year": "1642",
            "title": "Title SK-C-5",
            "objectNumber": "SK-C-5",
            "description": "The Night Watch, Rembrandt van Rijn, 1642",
            "image": "https://lh3.example.com/SK-C-5",
        }

    @respx.mock
    async def test_user_sets(self, dispatcher: ToolDispatcher) -> None:
        """Test user set listings are summarized."""
        payload = {
            "count": 1,
            "elapsedMilliseconds": 12,
            "userSets": [
                {
                    "id": "1-fav",
                    "name": "Favourites",
                    "description": None,
                    "count": 4,
                    "user": {"name": "anna"},
                    "createdOn": "2020-01-01T00:00:00Z",
                    "updatedOn": "2020-02-01T00:00:00Z",
                    "links": {"web": "https://example.com/1-fav"},
                }
            ],
        }
        respx.get(f"{BASE_URL}/en/usersets").mock(return_value=httpx.Response(200, json=payload))

        result = await dispatcher.dispatch("get_user_sets", {"page": 1, "pageSize": 5})

        data = payload_of(result)
        assert data["totalSets"] == 1
        assert data["currentPage"] == 1
        assert data["pageSize"] == 5
        assert data["fetchedSets"] == 1
        assert data["queryTimeMs"] == 12
        assert data["sets"][0]["creator"] == "anna"
        assert data["sets"][0]["itemCount"] == 4

    @respx.mock
    async def test_user_set_details(self, dispatcher: ToolDispatcher) -> None:
        """Test user set details are summarized."""
        payload = {
            "elapsedMilliseconds": 7,
            "userSet": {
                "id": "1-fav",
                "name": "Favourites",
                "type": "public",
                "count": 2,
                "user": {"name": "anna"},
                "setItems": [
                    {
                        "objectNumber": "SK-C-5",
                        "links": {},
                        "image": {"width": 100, "height": 80, "cdnUrl": "https://cdn/x"},
                    },
                    {"objectNumber": "SK-A-1", "links": {}},
                ],
            },
        }
        respx.get(f"{BASE_URL}/en/usersets/1-fav").mock(
            return_value=httpx.Response(200, json=payload)
        )

        result = await dispatcher.dispatch("get_user_set_details", {"setId": "1-fav"})

        data = payload_of(result)
        assert data["setInfo"]["name"] == "Favourites"
        assert data["items"][0]["imageInfo"] == {"dimensions": "100x80", "url": "https://cdn/x"}
        assert data["items"][1]["imageInfo"] is None
        assert data["pagination"] == {"currentPage": 0, "pageSize": 25, "fetchedItems": 2}


class TestOpenImageInBrowser:
    """Tests for the open_image_in_browser tool."""

    async def test_invalid_url_never_launches(
        self, client_double: AsyncMock, launcher: AsyncMock
    ) -> None:
        """Test a non-http URL is rejected before the launcher runs."""
        dispatcher = ToolDispatcher(client_double, launcher)

        with pytest.raises(McpError) as exc_info:
            await dispatcher.dispatch("open_image_in_browser", {"imageUrl": "not-a-url"})

        assert error_kind(exc_info) == "invalid_argument"
        launcher.assert_not_called()

    async def test_launches_once(self, client_double: AsyncMock, launcher: AsyncMock) -> None:
        """Test a valid URL is opened exactly once, without the API client."""
        dispatcher = ToolDispatcher(client_double, launcher)

        result = await dispatcher.dispatch("open_image_in_browser", {"imageUrl": "http://x/y"})

        launcher.assert_awaited_once_with("http://x/y")
        assert client_double.mock_calls == []
        assert result.isError is False
        assert "http://x/y" in result.content[0].text

    async def test_launch_failure_is_flagged_result(self, client_double: AsyncMock) -> None:
        """Test a failed launch returns a flagged result instead of raising."""
        launcher = AsyncMock(
            return_value=BrowserLaunchResult(opened=False, detail="xdg-open not found")
        )
        dispatcher = ToolDispatcher(client_double, launcher)

        result = await dispatcher.dispatch("open_image_in_browser", {"imageUrl": "http://x/y"})

        assert result.isError is True
        assert result.content[0].text == "Failed to open image in browser: xdg-open not found"
