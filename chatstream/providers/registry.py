"""Adapter lookup and the public request-building entry point."""

from collections.abc import Sequence

from chatstream.core.settings import LLMConfig
from chatstream.providers.anthropic_adapter import AnthropicAdapter
from chatstream.providers.base import ProviderAdapter
from chatstream.providers.gemini_adapter import GeminiAdapter
from chatstream.providers.openai_adapter import OpenAICompatibleAdapter
from chatstream.schemas.chat_schema import ChatTurn
from chatstream.schemas.model_schema import ModelConfig, ProviderRequest

ADAPTERS: dict[str, type[ProviderAdapter]] = {
    "claude": AnthropicAdapter,
    "gemini": GeminiAdapter,
}


def get_adapter(
    config: ModelConfig, llm_config: LLMConfig | None = None
) -> ProviderAdapter:
    """Pick the dialect for a model; unknown providers get the default one."""
    if config.provider == "gemini" and "openrouter" in config.base_url:
        return OpenAICompatibleAdapter(llm_config)
    adapter_cls = ADAPTERS.get(config.provider, OpenAICompatibleAdapter)
    return adapter_cls(llm_config)


def build_request(
    messages: Sequence[ChatTurn],
    system_prompt: str,
    config: ModelConfig,
    llm_config: LLMConfig | None = None,
) -> ProviderRequest:
    """Build the streaming request for ``config``'s vendor."""
    return get_adapter(config, llm_config).build_request(
        messages, system_prompt or "", config
    )
