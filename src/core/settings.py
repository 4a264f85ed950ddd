"""
Settings for the external systems.

Each settings model is built from environment variables by ``from_env()``.
Required credentials are checked there, so a missing credential fails
before any network call to that system is attempted.
"""
import os

from pydantic import BaseModel, Field, SecretStr

from src.core.errors import ConfigurationError


def _required(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise ConfigurationError(f"{name} environment variable is required")
    return value


def _timeout() -> float:
    raw = os.getenv("HTTP_TIMEOUT_SECONDS", "30")
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"HTTP_TIMEOUT_SECONDS must be a number, got {raw!r}"
        ) from e


class ModernTreasurySettings(BaseModel):
    """
    Modern Treasury API settings.

    Attributes:
        base_url: API root, without the /api suffix
        organization_id: Basic-auth username
        api_key: Basic-auth password
        timeout: Request timeout in seconds
        page_size: payment orders requested per page
    """

    base_url: str = "https://app.moderntreasury.com"
    organization_id: str = Field(..., min_length=1)
    api_key: SecretStr
    timeout: float = 30.0
    page_size: int = Field(100, ge=1, le=100)

    @classmethod
    def from_env(cls) -> "ModernTreasurySettings":
        return cls(
            base_url=os.getenv("MODERN_TREASURY_API_URL", "https://app.moderntreasury.com"),
            organization_id=_required("MODERN_TREASURY_ORGANIZATION_ID"),
            api_key=_required("MODERN_TREASURY_API_KEY"),
            timeout=_timeout(),
        )


class IncreaseSettings(BaseModel):
    """Increase API settings."""

    base_url: str = "https://api.increase.com"
    api_key: SecretStr
    timeout: float = 30.0

    @classmethod
    def from_env(cls) -> "IncreaseSettings":
        return cls(
            base_url=os.getenv("INCREASE_API_URL", "https://api.increase.com"),
            api_key=_required("INCREASE_API_KEY"),
            timeout=_timeout(),
        )


class SalsaSettings(BaseModel):
    """Salsa GraphQL API settings."""

    api_url: str = "https://api.internal.salsa.dev/api/graphql"
    auth_token: SecretStr
    timeout: float = 30.0

    @classmethod
    def from_env(cls) -> "SalsaSettings":
        return cls(
            api_url=os.getenv("SALSA_API_URL", "https://api.internal.salsa.dev/api/graphql"),
            auth_token=_required("SALSA_AUTH_TOKEN"),
            timeout=_timeout(),
        )


class Neo4jSettings(BaseModel):
    """Graph database settings."""

    uri: str = "bolt://localhost:7687"
    username: str = "neo4j"
    password: SecretStr
    database: str | None = None

    @classmethod
    def from_env(cls) -> "Neo4jSettings":
        return cls(
            uri=os.getenv("NEO4J_URI", "bolt://localhost:7687"),
            username=os.getenv("NEO4J_USERNAME", "neo4j"),
            password=_required("NEO4J_PASSWORD"),
            database=os.getenv("NEO4J_DATABASE") or None,
        )
