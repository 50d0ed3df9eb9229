"""Pydantic models for MCP tool arguments and upstream payloads.

Argument models are strict: values must already have the declared JSON type
(no ``"17"`` -> ``17`` coercion, no booleans standing in for integers).
Upstream payload models are permissive and keep unknown fields.
"""

from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from pydantic_core import PydanticCustomError

# The API refuses to page beyond this many results.
MAX_RESULT_WINDOW = 10_000

Culture = Literal["nl", "en"]
SortKey = Literal["relevance", "objecttype", "chronologic", "achronologic", "artist", "artistdesc"]

SORT_KEYS: tuple[str, ...] = SortKey.__args__
CULTURES: tuple[str, ...] = Culture.__args__


def check_result_window(page: int, page_size: int) -> None:
    """Raise if a page lies beyond the API's result window.

    Raises:
        PydanticCustomError: If ``page * page_size`` exceeds the window.
    """
    if page * page_size > MAX_RESULT_WINDOW:
        raise PydanticCustomError(
            "result_window",
            "Page * pageSize cannot exceed {limit}",
            {"limit": f"{MAX_RESULT_WINDOW:,}"},
        )


class ToolArgs(BaseModel):
    """Base configuration shared by all tool argument models."""

    model_config = ConfigDict(strict=True, frozen=True, populate_by_name=True)


class SearchArtworkArgs(ToolArgs):
    """Arguments for the search_artwork tool."""

    query: str | None = Field(
        default=None,
        validation_alias=AliasChoices("query", "q"),
        description="Free-text search terms",
    )
    involved_maker: str | None = Field(
        default=None,
        alias="involvedMaker",
        description="Artist name, e.g. 'Rembrandt van Rijn'",
    )
    type: str | None = Field(default=None, description="Object type, e.g. 'painting'")
    material: str | None = Field(default=None, description="Material, e.g. 'canvas'")
    technique: str | None = Field(default=None, description="Technique, e.g. 'etching'")
    century: int | None = Field(default=None, ge=-1, le=21, description="Century of creation")
    color: str | None = Field(default=None, description="Hex color, e.g. '#FF0000'")
    imgonly: bool | None = Field(default=None, description="Only return artworks with an image")
    toppieces: bool | None = Field(default=None, description="Only return top pieces")
    sort_by: SortKey = Field(default="relevance", alias="sortBy", description="Sort order")
    p: int = Field(default=0, ge=0, description="Result page (0-based)")
    ps: int = Field(default=10, ge=1, le=100, description="Results per page")
    culture: Culture = Field(default="en", description="Language of returned texts")

    @model_validator(mode="after")
    def _check_filters(self) -> "SearchArtworkArgs":
        if not self.model_fields_set:
            raise PydanticCustomError(
                "no_filters",
                "At least one search parameter must be provided",
            )
        check_result_window(self.p, self.ps)
        return self


class ArtworkIdArgs(ToolArgs):
    """Arguments for get_artwork_details and get_artwork_image."""

    object_number: str = Field(
        ...,
        alias="objectNumber",
        min_length=1,
        description="The artwork identifier, e.g. 'SK-C-5' for The Night Watch",
    )
    culture: Culture = Field(default="en", description="Language of returned texts")


class UserSetsArgs(ToolArgs):
    """Arguments for the get_user_sets tool."""

    page: int = Field(default=0, ge=0, description="Page number (0-based)")
    page_size: int = Field(default=10, ge=1, le=100, alias="pageSize", description="Sets per page")
    culture: Culture = Field(default="en", description="Language of returned texts")

    @model_validator(mode="after")
    def _check_window(self) -> "UserSetsArgs":
        check_result_window(self.page, self.page_size)
        return self


class UserSetDetailsArgs(ToolArgs):
    """Arguments for the get_user_set_details tool."""

    set_id: str = Field(..., alias="setId", min_length=1, description="The user set identifier")
    page: int = Field(default=0, ge=0, description="Page number (0-based)")
    page_size: int = Field(default=25, ge=1, le=100, alias="pageSize", description="Items per page")
    culture: Culture = Field(default="en", description="Language of returned texts")

    @model_validator(mode="after")
    def _check_window(self) -> "UserSetDetailsArgs":
        check_result_window(self.page, self.page_size)
        return self


class OpenImageArgs(ToolArgs):
    """Arguments for the open_image_in_browser tool."""

    image_url: str = Field(..., alias="imageUrl", description="HTTP(S) URL of the image")

    @model_validator(mode="after")
    def _check_scheme(self) -> "OpenImageArgs":
        if not self.image_url.lower().startswith(("http://", "https://")):
            raise PydanticCustomError(
                "url_scheme",
                "imageUrl must start with http:// or https://",
            )
        return self


class ArtistTimelineArgs(ToolArgs):
    """Arguments for the get_artist_timeline tool."""

    artist: str = Field(..., min_length=1, description="Name of the artist")
    max_works: int = Field(default=10, ge=1, le=50, alias="maxWorks", description="Maximum works")
    culture: Culture = Field(default="en", description="Language of returned texts")


# ==================== Upstream Payload Models ====================


class WebImage(BaseModel):
    """Primary web image of an art object."""

    url: str | None = None
    width: int | None = None
    height: int | None = None

    model_config = {"extra": "allow"}


class ArtObject(BaseModel):
    """Art object as returned in collection search results."""

    id: str | None = None
    object_number: str | None = Field(default=None, alias="objectNumber")
    title: str | None = None
    principal_or_first_maker: str | None = Field(default=None, alias="principalOrFirstMaker")
    long_title: str | None = Field(default=None, alias="longTitle")
    sub_title: str | None = Field(default=None, alias="subTitle")
    sc_label_line: str | None = Field(default=None, alias="scLabelLine")
    location: str | None = None
    web_image: WebImage | None = Field(default=None, alias="webImage")

    model_config = {"populate_by_name": True, "extra": "allow"}


class TimelineEntry(BaseModel):
    """One work on an artist timeline."""

    year: str = Field(..., description="First 4-digit year in the long title, or 'Unknown'")
    title: str | None = None
    object_number: str | None = Field(default=None, serialization_alias="objectNumber")
    description: str | None = None
    image: str | None = None

