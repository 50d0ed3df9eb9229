"""Prompt templates offered by the MCP server."""

from typing import Any

from mcp.types import GetPromptResult, Prompt, PromptArgument, PromptMessage, TextContent

from rijksmuseum_mcp.errors import ErrorEnvelope, ErrorKind, to_mcp_error

PROMPTS: dict[str, Prompt] = {
    "analyze-artwork": Prompt(
        name="analyze-artwork",
        description="Analyze an artwork's composition, style, and historical context",
        arguments=[
            PromptArgument(
                name="artworkId",
                description="ID of the artwork to analyze",
                required=True,
            ),
        ],
    ),
    "generate-artist-timeline": Prompt(
        name="generate-artist-timeline",
        description="Generate a chronological timeline of an artist's most notable works",
        arguments=[
            PromptArgument(name="artist", description="Name of the artist", required=True),
            PromptArgument(
                name="maxWorks",
                description="Maximum number of works to include (default: 10)",
                required=False,
            ),
        ],
    ),
}


def list_prompts() -> list[Prompt]:
    """Return all prompt definitions."""
    return list(PROMPTS.values())


def _require(arguments: dict[str, Any], name: str, label: str) -> str:
    value = arguments.get(name)
    if not value:
        raise to_mcp_error(
            ErrorEnvelope(kind=ErrorKind.MISSING_REQUIRED_PARAMETER, message=f"{label} is required")
        )
    return str(value)


def _user_message(text: str) -> PromptMessage:
    return PromptMessage(role="user", content=TextContent(type="text", text=text))


def analyze_artwork_text(artwork_id: str) -> str:
    return (
        f"Analyze the composition, style, and historical context of artwork {artwork_id} "
        "and provide a detailed analysis of the artwork's meaning and significance in the "
        "context of the artist's oeuvre and the broader art world. Use the "
        "get_artwork_details tool to fetch the artwork's record first."
    )


def artist_timeline_text(artist: str, max_works: str | None) -> str:
    limit = f" (limited to {max_works} works)" if max_works else ""
    tool_args = f' and maxWorks={max_works}' if max_works else ""
    return (
        f"Create a visual timeline showing the chronological progression of {artist}'s "
        f"most notable works{limit}.\n\n"
        "For each work, include:\n"
        "- Year of creation\n"
        "- Title of the work\n"
        "- A brief description\n"
        "- The artist's age at the time of creation\n\n"
        "Format the timeline as a chronological progression with clear spacing between "
        "periods. Use markdown formatting to enhance readability.\n\n"
        f'Call the get_artist_timeline tool with the artist name "{artist}"{tool_args} '
        "to get the artwork data. Works whose year is \"Unknown\" could not be dated "
        "from their title."
    )


def get_prompt(name: str, arguments: dict[str, Any] | None) -> GetPromptResult:
    """Render a prompt.

    Args:
        name: Prompt name.
        arguments: Prompt arguments.

    Returns:
        The rendered prompt.

    Raises:
        McpError: If the prompt is unknown or a required argument is missing.
    """
    arguments = arguments or {}
    prompt = PROMPTS.get(name)
    if prompt is None:
        raise to_mcp_error(
            ErrorEnvelope(kind=ErrorKind.UNKNOWN_OPERATION, message=f"Prompt not found: {name}")
        )

    if name == "analyze-artwork":
        artwork_id = _require(arguments, "artworkId", "Artwork ID")
        text = analyze_artwork_text(artwork_id)
    else:
        artist = _require(arguments, "artist", "Artist name")
        max_works = arguments.get("maxWorks")
        text = artist_timeline_text(artist, str(max_works) if max_works else None)

    return GetPromptResult(description=prompt.description, messages=[_user_message(text)])
