"""HTTP client wrapper for the Rijksmuseum collection API.

Provides async HTTP client with proper lifecycle management,
API key handling, response-contract checks and error handling.
"""

import logging
import re
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from rijksmuseum_mcp.config import Settings
from rijksmuseum_mcp.errors import ErrorKind, PaginationLimitError, RijksmuseumError
from rijksmuseum_mcp.models import (
    MAX_RESULT_WINDOW,
    ArtObject,
    SearchArtworkArgs,
    TimelineEntry,
)

logger = logging.getLogger(__name__)

COLLECTION = "collection"
USERSETS = "usersets"

_YEAR_PATTERN = re.compile(r"\d{4}")
UNKNOWN_YEAR = "Unknown"


class RijksmuseumClientError(RijksmuseumError):
    """Base exception for Rijksmuseum client errors."""

    kind = ErrorKind.UPSTREAM_NETWORK_FAILURE

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UpstreamNetworkError(RijksmuseumClientError):
    """The API could not be reached or sent no response."""

    kind = ErrorKind.UPSTREAM_NETWORK_FAILURE


class UpstreamStatusError(RijksmuseumClientError):
    """The API answered with a non-2xx status."""

    kind = ErrorKind.UPSTREAM_PROTOCOL_FAILURE


class UpstreamContractError(RijksmuseumClientError):
    """The API answered 2xx but the payload lacks a promised field."""

    kind = ErrorKind.UPSTREAM_CONTRACT_VIOLATION


def encode_segment(value: str) -> str:
    """Percent-encode a value for use as a single URL path segment."""
    return quote(value, safe="")


def extract_year(long_title: str | None) -> str:
    """Return the first 4-digit run in a long title, or ``"Unknown"``."""
    if not long_title:
        return UNKNOWN_YEAR
    match = _YEAR_PATTERN.search(long_title)
    return match.group(0) if match else UNKNOWN_YEAR


def check_pagination(page: int, page_size: int) -> None:
    """Reject pages beyond the API's result window before any request is made.

    Raises:
        PaginationLimitError: If ``page * page_size`` exceeds the window.
    """
    if page * page_size > MAX_RESULT_WINDOW:
        raise PaginationLimitError(f"Page * pageSize cannot exceed {MAX_RESULT_WINDOW:,}")


def build_search_params(args: SearchArtworkArgs) -> dict[str, Any]:
    """Map validated search arguments onto collection API query parameters.

    Args:
        args: Validated search arguments.

    Returns:
        Query parameters, omitting unset filters.
    """
    params: dict[str, Any] = {
        "p": args.p,
        "ps": args.ps,
        "culture": args.culture,
        "s": args.sort_by,
    }
    if args.query:
        params["q"] = args.query
    if args.involved_maker:
        params["involvedMaker"] = args.involved_maker
    if args.type:
        params["type"] = args.type
    if args.material:
        params["material"] = args.material
    if args.technique:
        params["technique"] = args.technique
    if args.century is not None:
        params["f.dating.period"] = args.century
    if args.color:
        params["f.normalized32Colors.hex"] = args.color.lstrip("#")
    if args.imgonly is not None:
        params["imgonly"] = _bool_param(args.imgonly)
    if args.toppieces is not None:
        params["toppieces"] = _bool_param(args.toppieces)
    return params


def _bool_param(value: bool) -> str:
    return "true" if value else "false"


def _require(payload: Any, key: str, expected: type) -> Any:
    """Return ``payload[key]`` if present with the expected JSON type.

    Raises:
        UpstreamContractError: If the key is absent or has the wrong type.
    """
    if not isinstance(payload, dict) or not isinstance(payload.get(key), expected):
        raise UpstreamContractError(f"Invalid response from Rijksmuseum API: missing '{key}'")
    return payload[key]


def _require_records(items: list[Any], key: str) -> list[dict[str, Any]]:
    """Check every entry of a list payload is a JSON object.

    Raises:
        UpstreamContractError: If any entry is not an object.
    """
    if not all(isinstance(item, dict) for item in items):
        raise UpstreamContractError(f"Invalid response from Rijksmuseum API: malformed '{key}' entry")
    return items


def _parse_art_objects(payload: Any) -> list[ArtObject]:
    items = _require(payload, "artObjects", list)
    try:
        return [ArtObject.model_validate(item) for item in items]
    except ValidationError as e:
        raise UpstreamContractError(
            f"Invalid response from Rijksmuseum API: malformed art object ({e.error_count()} errors)"
        ) from e


class RijksmuseumClient:
    """Async HTTP client for the Rijksmuseum collection API.

    Manages HTTP connection lifecycle and provides typed methods
    for each API endpoint.
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize the client with settings.

        Args:
            settings: Application settings containing API key, base URL, timeout.
        """
        self._settings = settings
        self._client: httpx.AsyncClient | None = None

    def _build_headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "User-Agent": "rijksmuseum_mcp/0.1.0",
        }

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure HTTP client is initialized.

        Returns:
            The initialized async HTTP client.
        """
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._settings.base_url.rstrip("/") + "/",
                headers=self._build_headers(),
                params={
                    "key": self._settings.api_key.get_secret_value(),
                    "format": "json",
                },
                timeout=httpx.Timeout(self._settings.timeout_seconds),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _log_response(
        self,
        method: str,
        path: str,
        response: httpx.Response,
    ) -> None:
        """Log HTTP response details.

        Only the path is logged; the query string carries the API key.
        """
        log_extra = {"status": response.status_code, "method": method, "path": path}
        if response.is_success:
            logger.debug("HTTP request succeeded", extra=log_extra)
        else:
            logger.warning("HTTP request failed", extra=log_extra)

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        """Prefer the server-supplied ``message`` over the raw body."""
        try:
            body = response.json()
        except ValueError:
            return response.text[:200]
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return response.text[:200]

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Make an HTTP request and return JSON response.

        Args:
            method: HTTP method.
            path: API endpoint path relative to the base URL, already encoded.
            params: Optional query parameters.

        Returns:
            Parsed JSON response.

        Raises:
            UpstreamNetworkError: If the request could not be completed.
            UpstreamStatusError: If the response has a non-2xx status.
            UpstreamContractError: If the response body is not JSON.
        """
        client = await self._ensure_client()

        try:
            response = await client.request(method, path, params=params)
        except httpx.RequestError as e:
            logger.error("HTTP request error on %s: %s", path, type(e).__name__)
            raise UpstreamNetworkError(message=f"Request failed: {e}") from e

        self._log_response(method, path, response)

        if not response.is_success:
            raise UpstreamStatusError(
                message=f"HTTP {response.status_code}: {self._error_detail(response)}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamContractError(
                message="Invalid JSON in response body",
                status_code=response.status_code,
            ) from e

    async def search_artworks(self, args: SearchArtworkArgs) -> list[ArtObject]:
        """Search the collection.

        Args:
            args: Validated search arguments.

        Returns:
            Art objects on the requested page.
        """
        check_pagination(args.p, args.ps)
        payload = await self._request(
            "GET", f"{args.culture}/{COLLECTION}", params=build_search_params(args)
        )
        return _parse_art_objects(payload)

    async def get_artwork_details(self, object_number: str, culture: str = "en") -> dict[str, Any]:
        """Get the full record of an artwork.

        Args:
            object_number: The artwork identifier, e.g. 'SK-C-5'.
            culture: Language of returned texts.

        Returns:
            Payload containing an ``artObject`` record.
        """
        payload = await self._request(
            "GET", f"{culture}/{COLLECTION}/{encode_segment(object_number)}"
        )
        _require(payload, "artObject", dict)
        return payload

    async def get_artwork_image_tiles(
        self, object_number: str, culture: str = "en"
    ) -> dict[str, Any]:
        """Get the zoom levels and tiles of an artwork image.

        Args:
            object_number: The artwork identifier.
            culture: Language of returned texts.

        Returns:
            Payload containing a ``levels`` list.
        """
        payload = await self._request(
            "GET", f"{culture}/{COLLECTION}/{encode_segment(object_number)}/tiles"
        )
        for level in _require(payload, "levels", list):
            if not isinstance(level, dict) or not all(
                key in level for key in ("name", "width", "height")
            ):
                raise UpstreamContractError(
                    "Invalid response from Rijksmuseum API: malformed tile level"
                )
            _require(level, "tiles", list)
        return payload

    async def get_user_sets(
        self, page: int = 0, page_size: int = 10, culture: str = "en"
    ) -> dict[str, Any]:
        """List user-curated sets.

        Args:
            page: Page number (0-based).
            page_size: Sets per page.
            culture: Language of returned texts.

        Returns:
            Payload containing a ``userSets`` list.
        """
        check_pagination(page, page_size)
        payload = await self._request(
            "GET", f"{culture}/{USERSETS}", params={"page": page, "pageSize": page_size}
        )
        _require_records(_require(payload, "userSets", list), "userSets")
        return payload

    async def get_user_set_details(
        self, set_id: str, page: int = 0, page_size: int = 25, culture: str = "en"
    ) -> dict[str, Any]:
        """Get a user set and a page of its items.

        Args:
            set_id: The user set identifier.
            page: Page number (0-based).
            page_size: Items per page.
            culture: Language of returned texts.

        Returns:
            Payload containing a ``userSet`` record.
        """
        check_pagination(page, page_size)
        payload = await self._request(
            "GET",
            f"{culture}/{USERSETS}/{encode_segment(set_id)}",
            params={"page": page, "pageSize": page_size},
        )
        user_set = _require(payload, "userSet", dict)
        if user_set.get("setItems") is not None:
            _require_records(_require(user_set, "setItems", list), "setItems")
        return payload

    async def get_artist_timeline(
        self, artist: str, max_works: int = 10, culture: str = "en"
    ) -> list[TimelineEntry]:
        """Get an artist's works with the year taken from each long title.

        Entries keep the order the API returns them in (sorted chronologically
        upstream); they are not re-sorted by the extracted year.

        Args:
            artist: Name of the artist.
            max_works: Maximum number of works.
            culture: Language of returned texts.

        Returns:
            Timeline entries.
        """
        payload = await self._request(
            "GET",
            f"{culture}/{COLLECTION}",
            params={
                "involvedMaker": artist,
                "ps": max_works,
                "s": "chronologic",
                "imgonly": "true",
            },
        )
        return [
            TimelineEntry(
                year=extract_year(art.long_title),
                title=art.title,
                object_number=art.object_number,
                description=art.long_title,
                image=art.web_image.url if art.web_image else None,
            )
            for art in _parse_art_objects(payload)
        ]
