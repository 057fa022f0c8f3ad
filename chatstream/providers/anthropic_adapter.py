"""Anthropic Messages API dialect."""

from collections.abc import Sequence
from typing import Any

from chatstream.providers.base import ProviderAdapter, as_text, with_path_suffix
from chatstream.schemas.chat_schema import ChatTurn
from chatstream.schemas.model_schema import Delta, ModelConfig, ProviderRequest

MESSAGES_PATH = "/v1/messages"


class AnthropicAdapter(ProviderAdapter):
    """Claude models over ``/v1/messages``."""

    provider_family = "claude"

    def build_request(
        self,
        messages: Sequence[ChatTurn],
        system_prompt: str,
        config: ModelConfig,
    ) -> ProviderRequest:
        url = with_path_suffix(self.base_url(config), MESSAGES_PATH)

        body: dict[str, Any] = {
            "model": config.model,
            "messages": [m.model_dump() for m in self.conversation(messages)],
            "max_tokens": self.max_tokens(config),
            "temperature": self.temperature(config),
            "stream": True,
        }
        if system_prompt:
            body["system"] = system_prompt

        return ProviderRequest(
            url=self.resolve_url(config, url),
            headers={
                "Content-Type": "application/json",
                "x-api-key": config.api_key.get_secret_value(),
                "anthropic-version": self._llm_config.anthropic_version,
            },
            body=body,
        )

    def extract_delta(self, event: dict[str, Any]) -> Delta:
        if event.get("type") != "content_block_delta":
            return Delta()
        delta = event.get("delta")
        if not isinstance(delta, dict):
            return Delta()
        if delta.get("type") == "thinking_delta":
            return Delta(reasoning=as_text(delta.get("thinking")))
        return Delta(content=as_text(delta.get("text")))
