"""Shared fixtures for rijksmuseum_mcp tests."""

from collections.abc import AsyncIterator

import pytest

from rijksmuseum_mcp.client import RijksmuseumClient
from rijksmuseum_mcp.config import Settings

BASE_URL = "http://test-rijks/api"


@pytest.fixture
def settings() -> Settings:
    """Create test settings."""
    return Settings(
        api_key="test-key",
        base_url=BASE_URL,
        timeout_seconds=5.0,
    )


@pytest.fixture
async def client(settings: Settings) -> AsyncIterator[RijksmuseumClient]:
    """Create test client, closed after the test."""
    client = RijksmuseumClient(settings)
    yield client
    await client.close()


def art_object(
    object_number: str,
    long_title: str | None = None,
    with_image: bool = True,
    **extra,
) -> dict:
    """Build an art object as returned by the collection endpoint."""
    data = {
        "id": f"en-{object_number}",
        "objectNumber": object_number,
        "title": f"Title {object_number}",
        "principalOrFirstMaker": "Rembrandt van Rijn",
        "longTitle": long_title or f"Title {object_number}, Rembrandt van Rijn, 1642",
        "subTitle": "h 379.5cm × w 453.5cm",
        "scLabelLine": "Rembrandt van Rijn (1606–1669), oil on canvas, 1642",
        "location": "HG-2.31",
    }
    if with_image:
        data["webImage"] = {
            "url": f"https://lh3.example.com/{object_number}",
            "width": 2500,
            "height": 2034,
        }
    data.update(extra)
    return data
