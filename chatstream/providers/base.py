"""Provider adapter interface shared by every vendor dialect."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from chatstream.core.config import settings
from chatstream.core.settings import LLMConfig
from chatstream.schemas.chat_schema import SYSTEM_ROLE, ChatTurn
from chatstream.schemas.model_schema import Delta, ModelConfig, ProviderRequest

DEFAULT_BASE_URLS: dict[str, str] = {
    "openai": "https://api.openai.com",
    "claude": "https://api.anthropic.com",
    "gemini": "https://generativelanguage.googleapis.com",
    "kimi": "https://api.moonshot.cn",
    "deepseek": "https://api.deepseek.com",
    "openrouter": "https://openrouter.ai/api",
}


def get_default_base_url(provider: str) -> str:
    """Return the vendor base URL, falling back to OpenAI's."""
    return DEFAULT_BASE_URLS.get(provider, DEFAULT_BASE_URLS["openai"])


def with_path_suffix(base_url: str, suffix: str) -> str:
    """Append ``suffix`` unless the URL already ends with it."""
    if base_url.endswith(suffix):
        return base_url
    return base_url.rstrip("/") + suffix


def dig(data: Any, *path: str | int) -> Any:
    """Walk nested dicts/lists, returning None on the first missing step."""
    current = data
    for key in path:
        if isinstance(key, int):
            if not isinstance(current, list) or len(current) <= key:
                return None
        elif not isinstance(current, dict):
            return None
        current = current[key] if isinstance(key, int) else current.get(key)
        if current is None:
            return None
    return current


def as_text(value: Any) -> str:
    """Keep string fragments, drop anything else."""
    return value if isinstance(value, str) else ""


class ProviderAdapter(ABC):
    """Translate requests and stream events for one vendor family."""

    provider_family: str = "openai"

    def __init__(self, llm_config: LLMConfig | None = None) -> None:
        self._llm_config = llm_config or settings.llm

    @abstractmethod
    def build_request(
        self,
        messages: Sequence[ChatTurn],
        system_prompt: str,
        config: ModelConfig,
    ) -> ProviderRequest:
        """Build the vendor-shaped streaming request.

        Args:
            messages: Conversation history, oldest first.
            system_prompt: Composed system prompt. When empty, no system
                element of any kind is sent.
            config: The model to call.

        Returns:
            The URL, headers and JSON body for a streaming POST.
        """

    @abstractmethod
    def extract_delta(self, event: dict[str, Any]) -> Delta:
        """Pull the visible and reasoning fragments out of one decoded event."""

    def resolve_url(self, config: ModelConfig, url: str) -> str:
        """Apply the proxy override, which always wins."""
        return config.proxy_url or url

    def base_url(self, config: ModelConfig) -> str:
        return config.base_url or get_default_base_url(config.provider)

    def temperature(self, config: ModelConfig) -> float:
        if config.temperature is None:
            return self._llm_config.temperature
        return config.temperature

    def max_tokens(self, config: ModelConfig) -> int:
        return config.max_tokens or self._llm_config.max_tokens

    @staticmethod
    def conversation(messages: Sequence[ChatTurn]) -> list[ChatTurn]:
        """History without system entries; the composed prompt replaces them."""
        return [m for m in messages if m.role != SYSTEM_ROLE]
