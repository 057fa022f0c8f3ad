"""OpenAI-compatible chat completions dialect (default fallback)."""

from collections.abc import Sequence
from typing import Any

from chatstream.providers.base import ProviderAdapter, as_text, dig, with_path_suffix
from chatstream.schemas.chat_schema import ChatTurn
from chatstream.schemas.model_schema import Delta, ModelConfig, ProviderRequest

CHAT_COMPLETIONS_PATH = "/v1/chat/completions"


class OpenAICompatibleAdapter(ProviderAdapter):
    """OpenAI, DeepSeek, Kimi, OpenRouter and any custom compatible endpoint."""

    provider_family = "openai"

    def build_request(
        self,
        messages: Sequence[ChatTurn],
        system_prompt: str,
        config: ModelConfig,
    ) -> ProviderRequest:
        url = with_path_suffix(self.base_url(config), CHAT_COMPLETIONS_PATH)

        wire_messages: list[dict[str, str]] = []
        if system_prompt:
            wire_messages.append({"role": "system", "content": system_prompt})
        wire_messages.extend(m.model_dump() for m in self.conversation(messages))

        return ProviderRequest(
            url=self.resolve_url(config, url),
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {config.api_key.get_secret_value()}",
            },
            body={
                "model": config.model,
                "messages": wire_messages,
                "temperature": self.temperature(config),
                "max_tokens": self.max_tokens(config),
                "stream": True,
            },
        )

    def extract_delta(self, event: dict[str, Any]) -> Delta:
        delta = dig(event, "choices", 0, "delta")
        if not isinstance(delta, dict):
            return Delta()
        # OpenRouter names the channel "reasoning", DeepSeek "reasoning_content".
        reasoning = as_text(delta.get("reasoning_content")) or as_text(
            delta.get("reasoning")
        )
        return Delta(content=as_text(delta.get("content")), reasoning=reasoning)
