"""Application configuration using Pydantic Settings V2."""

from functools import cached_property

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from chatstream.core.settings import (
    HttpConfig,
    LLMConfig,
    SnowflakeConfig,
    TitleConfig,
)


class Settings(BaseSettings):
    """Engine settings loaded from environment variables.

    Flat fields are loaded directly from environment variables.
    Domain properties provide grouped access (e.g. settings.title.enabled).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # HTTP
    http_timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        description="Read timeout for a single streaming vendor request",
    )
    http_connect_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Connect timeout for vendor requests",
    )

    # LLM defaults
    default_temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Temperature used when a model config does not set one",
    )
    default_max_tokens: int = Field(
        default=4096,
        ge=1,
        description="Max output tokens used when a model config does not set one",
    )
    anthropic_version: str = Field(
        default="2023-06-01",
        description="Value of the anthropic-version protocol header",
    )

    # Message ids
    snowflake_datacenter_id: int = Field(
        default=1,
        ge=0,
        le=31,
        validation_alias=AliasChoices("snowflake_datacenter_id", "datacenter_id"),
        description="Datacenter bits of generated snowflake ids",
    )
    snowflake_machine_id: int = Field(
        default=1,
        ge=0,
        le=31,
        validation_alias=AliasChoices("snowflake_machine_id", "machine_id"),
        description="Machine bits of generated snowflake ids",
    )

    # Title generation
    title_enabled: bool = Field(
        default=True,
        description="Generate a session title after the first completed exchange",
    )
    title_max_length: int = Field(
        default=30,
        ge=1,
        le=200,
        description="Maximum number of characters kept from a generated title",
    )
    title_temperature: float = Field(
        default=0.3,
        ge=0.0,
        le=2.0,
        description="Temperature for title generation calls",
    )
    title_max_tokens: int = Field(
        default=20,
        ge=1,
        description="Max output tokens for title generation calls",
    )
    title_history_limit: int = Field(
        default=4,
        ge=1,
        description="Number of leading messages summarised into the title prompt",
    )

    # --- Domain properties ---

    @cached_property
    def http(self) -> HttpConfig:
        """HTTP transport configuration."""
        return HttpConfig(
            timeout_seconds=self.http_timeout_seconds,
            connect_timeout_seconds=self.http_connect_timeout_seconds,
        )

    @cached_property
    def llm(self) -> LLMConfig:
        """LLM request defaults."""
        return LLMConfig(
            temperature=self.default_temperature,
            max_tokens=self.default_max_tokens,
            anthropic_version=self.anthropic_version,
        )

    @cached_property
    def title(self) -> TitleConfig:
        """Title generation configuration."""
        return TitleConfig(
            enabled=self.title_enabled,
            max_length=self.title_max_length,
            temperature=self.title_temperature,
            max_tokens=self.title_max_tokens,
            history_limit=self.title_history_limit,
        )

    @cached_property
    def snowflake(self) -> SnowflakeConfig:
        """Snowflake id generator configuration."""
        return SnowflakeConfig(
            datacenter_id=self.snowflake_datacenter_id,
            machine_id=self.snowflake_machine_id,
        )


settings = Settings()
