"""Environment-driven settings via pydantic-settings.

The API key is read from LINEAR_API_KEY (or a .env file) and never logged.
get_settings() is cached; tests call get_settings.cache_clear().
"""

from functools import lru_cache

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .client import LINEAR_API_URL
from .pagination import DEFAULT_PAGE_SIZE, validate_page_size

VALID_TRANSPORTS = frozenset({"stdio", "sse"})


class Settings(BaseSettings):
    """Server settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Linear
    linear_api_key: SecretStr = Field(..., validation_alias="LINEAR_API_KEY")
    linear_api_url: str = LINEAR_API_URL
    linear_page_size: int = DEFAULT_PAGE_SIZE
    linear_timeout_seconds: float = 30.0

    # Transport
    mcp_transport: str = "stdio"
    server_host: str = "127.0.0.1"
    server_port: int = 3000

    log_level: str = "INFO"

    @field_validator("linear_api_key")
    @classmethod
    def require_api_key(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value().strip():
            raise ValueError("LINEAR_API_KEY must not be empty")
        return v

    @field_validator("linear_page_size")
    @classmethod
    def check_page_size(cls, v: int) -> int:
        return validate_page_size(v)

    @field_validator("mcp_transport", mode="before")
    @classmethod
    def normalize_transport(cls, v: str) -> str:
        transport = str(v).strip().lower()
        if transport not in VALID_TRANSPORTS:
            raise ValueError(f"Transport must be one of: {', '.join(sorted(VALID_TRANSPORTS))}")
        return transport

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return str(v).strip().upper()


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
