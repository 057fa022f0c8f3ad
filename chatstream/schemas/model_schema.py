"""Model configuration and wire-level schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr

REASONING_MODEL_MARKERS = ("deepseek-reasoner", "o1", "reasoning", "reasoner", "thinking")


class ModelConfig(BaseModel):
    """Connection and generation settings for one configured model."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    provider: str = "openai"
    model: str
    base_url: str = ""
    proxy_url: str = ""
    api_key: SecretStr = SecretStr("")
    temperature: float | None = None
    max_tokens: int | None = None
    stream: bool = True

    @property
    def supports_reasoning(self) -> bool:
        """Whether the model streams a separate reasoning channel."""
        haystack = f"{self.name} {self.model}".lower()
        return any(marker in haystack for marker in REASONING_MODEL_MARKERS)


class ProviderRequest(BaseModel):
    """HTTP request descriptor produced by a provider adapter."""

    model_config = ConfigDict(frozen=True)

    url: str
    headers: dict[str, str] = Field(default_factory=dict)
    body: dict[str, Any] = Field(default_factory=dict)


class Delta(BaseModel):
    """Visible and reasoning fragments extracted from one stream event."""

    model_config = ConfigDict(frozen=True)

    content: str = ""
    reasoning: str = ""

    @property
    def is_empty(self) -> bool:
        """True when the event carries no text update."""
        return not self.content and not self.reasoning
