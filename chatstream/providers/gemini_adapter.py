"""Google Generative Language API dialect."""

from collections.abc import Sequence
from typing import Any

from chatstream.providers.base import ProviderAdapter, as_text, dig
from chatstream.schemas.chat_schema import ASSISTANT_ROLE, ChatTurn
from chatstream.schemas.model_schema import Delta, ModelConfig, ProviderRequest

MODELS_PATH = "/v1beta/models/"


class GeminiAdapter(ProviderAdapter):
    """Gemini models over ``streamGenerateContent`` with SSE framing."""

    provider_family = "gemini"

    def build_request(
        self,
        messages: Sequence[ChatTurn],
        system_prompt: str,
        config: ModelConfig,
    ) -> ProviderRequest:
        url = self.base_url(config)
        if MODELS_PATH not in url:
            # alt=sse switches the endpoint to the same "data: " framing as
            # the other vendors; the key travels in the query string.
            url = (
                url.rstrip("/")
                + f"{MODELS_PATH}{config.model}:streamGenerateContent"
                + f"?alt=sse&key={config.api_key.get_secret_value()}"
            )

        body: dict[str, Any] = {
            "contents": [
                {
                    "role": "model" if m.role == ASSISTANT_ROLE else "user",
                    "parts": [{"text": m.content}],
                }
                for m in self.conversation(messages)
            ],
            "generationConfig": {
                "temperature": self.temperature(config),
                "maxOutputTokens": self.max_tokens(config),
            },
        }
        if system_prompt:
            body["systemInstruction"] = {"parts": [{"text": system_prompt}]}

        return ProviderRequest(
            url=self.resolve_url(config, url),
            headers={"Content-Type": "application/json"},
            body=body,
        )

    def extract_delta(self, event: dict[str, Any]) -> Delta:
        parts = dig(event, "candidates", 0, "content", "parts")
        if not isinstance(parts, list):
            return Delta()
        content = ""
        reasoning = ""
        for part in parts:
            if not isinstance(part, dict):
                continue
            if part.get("thought") is True:
                reasoning += as_text(part.get("text"))
            else:
                content += as_text(part.get("text"))
        return Delta(content=content, reasoning=reasoning)
