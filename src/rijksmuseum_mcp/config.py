"""Configuration management for rijksmuseum_mcp.

Loads settings from environment variables (and a local ``.env`` file).
"""

import os

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, SecretStr, field_validator

API_KEY_ENV = "RIJKSMUSEUM_API_KEY"


def _default_timeout() -> float:
    """Parse timeout from environment, falling back to 30s on empty values."""
    raw = os.getenv("RIJKSMUSEUM_TIMEOUT_S")
    if raw is None or raw.strip() == "":
        return 30.0
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError("RIJKSMUSEUM_TIMEOUT_S must be numeric") from exc


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    api_key: SecretStr = Field(
        default_factory=lambda: SecretStr(os.getenv(API_KEY_ENV, "")),
        validate_default=True,
        description="Rijksmuseum API key",
    )
    base_url: str = Field(
        default_factory=lambda: os.getenv("RIJKSMUSEUM_BASE_URL", "https://www.rijksmuseum.nl/api"),
        description="Base URL of the Rijksmuseum collection API",
    )
    timeout_seconds: float = Field(
        default_factory=_default_timeout,
        description="HTTP request timeout in seconds",
    )

    model_config = {"frozen": True}

    @field_validator("api_key")
    @classmethod
    def _require_api_key(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value().strip():
            raise ValueError(f"{API_KEY_ENV} environment variable is required")
        return value


def get_settings() -> Settings:
    """Create settings instance from current environment.

    Values from a ``.env`` file in the working directory are loaded first;
    variables already set in the environment take precedence.

    Returns:
        Settings instance with values from environment variables.

    Raises:
        pydantic.ValidationError: If the API key is missing.
    """
    load_dotenv(find_dotenv(usecwd=True))
    return Settings()
