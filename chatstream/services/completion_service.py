"""Streaming completion loop: HTTP stream -> events -> deltas -> message."""

from contextlib import aclosing
from dataclasses import dataclass
from enum import Enum

import httpx
import structlog

from chatstream.core.config import settings
from chatstream.core.exceptions import TransportError
from chatstream.core.settings import HttpConfig, LLMConfig
from chatstream.providers.registry import get_adapter
from chatstream.schemas.chat_schema import ChatMessage, ChatTurn
from chatstream.schemas.model_schema import ModelConfig
from chatstream.services.accumulator import ContentAccumulator
from chatstream.services.cancellation import CancellationToken, CompletionCancelled
from chatstream.services.delta_extractor import extract_delta
from chatstream.services.stream_decoder import iter_event_payloads

logger = structlog.get_logger()


class CompletionOutcome(str, Enum):
    """How a completion stream ended."""

    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class CompletionRequest:
    """Everything needed to start one vendor stream."""

    messages: list[ChatTurn]
    system_prompt: str
    model_config: ModelConfig


@dataclass(frozen=True)
class CompletionResult:
    """Final accumulated text and how the stream ended."""

    outcome: CompletionOutcome
    content: str
    reasoning: str


class CompletionService:
    """Runs one streaming completion into a target message.

    Fragments are applied strictly in arrival order. The cancellation token
    is checked before every fragment is applied; once it is cancelled the
    message is never written to again.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        http_config: HttpConfig | None = None,
        llm_config: LLMConfig | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=(http_config or settings.http).to_timeout()
        )
        self._llm_config = llm_config or settings.llm

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def run(
        self,
        request: CompletionRequest,
        message: ChatMessage,
        token: CancellationToken,
    ) -> CompletionResult:
        """Stream ``request`` into ``message``.

        Raises:
            TransportError: The vendor answered with a non-success status.
            httpx.HTTPError: The connection failed.
        """
        config = request.model_config
        adapter = get_adapter(config, self._llm_config)
        wire = adapter.build_request(request.messages, request.system_prompt, config)
        accumulator = ContentAccumulator()

        logger.info(
            "Completion started",
            message_id=message.id,
            provider=config.provider,
            dialect=adapter.provider_family,
            model=config.model,
        )
        try:
            token.raise_if_cancelled()
            async with self._client.stream(
                "POST", wire.url, headers=wire.headers, json=wire.body
            ) as response:
                if not response.is_success:
                    body = (await response.aread()).decode("utf-8", errors="replace")
                    raise TransportError(
                        response.status_code, body.strip() or response.reason_phrase
                    )

                async with aclosing(
                    iter_event_payloads(response.aiter_bytes())
                ) as payloads:
                    async for payload in payloads:
                        token.raise_if_cancelled()
                        delta = extract_delta(adapter, payload)
                        if delta is None:
                            continue
                        step = accumulator.apply(delta)
                        if not step.changed:
                            continue
                        message.content = step.content
                        if step.reasoning:
                            message.reasoning_content = step.reasoning
                        if step.reasoning_just_completed:
                            message.is_reasoning_complete = True
            token.raise_if_cancelled()
        except CompletionCancelled:
            logger.info("Completion cancelled", message_id=message.id)
            return CompletionResult(
                CompletionOutcome.CANCELLED, accumulator.content, accumulator.reasoning
            )

        message.is_streaming = False
        message.is_reasoning_complete = True
        logger.info(
            "Completion finished",
            message_id=message.id,
            content_length=len(accumulator.content),
            reasoning_length=len(accumulator.reasoning),
        )
        return CompletionResult(
            CompletionOutcome.COMPLETED, accumulator.content, accumulator.reasoning
        )
