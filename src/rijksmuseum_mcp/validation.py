"""Argument validation for MCP tool calls.

Raw tool arguments are parsed once into the tool's pydantic model. Failures
are returned as :class:`ValidationFailure` values rather than raised, so the
caller decides how to surface them.
"""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from rijksmuseum_mcp.errors import ErrorEnvelope, ErrorKind
from rijksmuseum_mcp.models import (
    ArtistTimelineArgs,
    ArtworkIdArgs,
    OpenImageArgs,
    SearchArtworkArgs,
    ToolArgs,
    UserSetDetailsArgs,
    UserSetsArgs,
)

ARGUMENT_MODELS: dict[str, type[ToolArgs]] = {
    "search_artwork": SearchArtworkArgs,
    "get_artwork_details": ArtworkIdArgs,
    "get_artwork_image": ArtworkIdArgs,
    "get_user_sets": UserSetsArgs,
    "get_user_set_details": UserSetDetailsArgs,
    "open_image_in_browser": OpenImageArgs,
    "get_artist_timeline": ArtistTimelineArgs,
}


class ValidationFailure(BaseModel):
    """Rejected tool arguments."""

    tool: str = Field(..., description="The tool whose arguments were rejected")
    kind: ErrorKind = Field(..., description="invalid_argument or missing_required_parameter")
    message: str = Field(..., description="Human-readable reason")

    model_config = {"frozen": True}

    def to_envelope(self) -> ErrorEnvelope:
        """Convert to the uniform error envelope."""
        return ErrorEnvelope(kind=self.kind, message=self.message)


def _field_path(loc: tuple[int | str, ...]) -> str:
    return ".".join(str(part) for part in loc)


def _describe(tool: str, error: ValidationError) -> ValidationFailure:
    errors = error.errors(include_url=False)

    missing = [_field_path(e["loc"]) for e in errors if e["type"] == "missing"]
    if missing:
        return ValidationFailure(
            tool=tool,
            kind=ErrorKind.MISSING_REQUIRED_PARAMETER,
            message=f"Missing required parameter: {', '.join(missing)}",
        )

    reasons = []
    for e in errors:
        path = _field_path(e["loc"])
        reasons.append(f"{path}: {e['msg']}" if path else e["msg"])
    return ValidationFailure(
        tool=tool,
        kind=ErrorKind.INVALID_ARGUMENT,
        message=f"Invalid arguments for {tool}: {'; '.join(reasons)}",
    )


def validate_arguments(tool: str, arguments: Any) -> ToolArgs | ValidationFailure:
    """Validate raw tool arguments against the tool's argument model.

    Keys whose value is ``None`` are treated as absent, so a null required
    field reports as missing and a null optional field takes its default.

    Args:
        tool: Tool name; must be a key of ``ARGUMENT_MODELS``.
        arguments: The untrusted argument mapping (``None`` means empty).

    Returns:
        The validated arguments model, or a ValidationFailure.

    Raises:
        KeyError: If ``tool`` has no argument model.
    """
    model = ARGUMENT_MODELS[tool]

    if arguments is None:
        arguments = {}
    if not isinstance(arguments, Mapping):
        return ValidationFailure(
            tool=tool,
            kind=ErrorKind.INVALID_ARGUMENT,
            message=f"Invalid arguments for {tool}: expected an object",
        )

    present = {key: value for key, value in arguments.items() if value is not None}
    try:
        return model.model_validate(present)
    except ValidationError as e:
        return _describe(tool, e)
