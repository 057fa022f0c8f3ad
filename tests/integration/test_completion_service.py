"""Integration tests for CompletionService over a mocked HTTP transport."""

import json
from collections.abc import AsyncIterator
from typing import Any

import httpx
import pytest

from chatstream.core.exceptions import TransportError
from chatstream.core.settings import LLMConfig
from chatstream.schemas.chat_schema import ChatMessage, ChatTurn
from chatstream.schemas.model_schema import ModelConfig
from chatstream.services.cancellation import CancellationToken
from chatstream.services.completion_service import (
    CompletionOutcome,
    CompletionRequest,
    CompletionService,
)
from tests.conftest import (
    mock_client,
    openai_chunk,
    split_every,
    sse_body,
    sse_frame,
    streaming_response,
)


def _request(config: ModelConfig, system_prompt: str = "") -> CompletionRequest:
    return CompletionRequest(
        messages=[ChatTurn(role="user", content="Hi")],
        system_prompt=system_prompt,
        model_config=config,
    )


def _placeholder() -> ChatMessage:
    return ChatMessage(role="assistant", is_streaming=True)


def _service(handler: Any, llm_config: LLMConfig) -> CompletionService:
    return CompletionService(client=mock_client(handler), llm_config=llm_config)


class TestStreamingAccumulation:
    """Fragments reach the message in arrival order."""

    @pytest.mark.asyncio
    async def test_fragment_split_inside_json(
        self, openai_config: ModelConfig, llm_config: LLMConfig
    ) -> None:
        chunks = [
            'data: {"choices":[{"delta":{"content":"Hel',
            'lo"}}]}\n\ndata: [DONE]\n\n',
        ]
        service = _service(lambda request: streaming_response(chunks), llm_config)
        message = _placeholder()

        result = await service.run(_request(openai_config), message, CancellationToken())

        assert result.outcome is CompletionOutcome.COMPLETED
        assert result.content == "Hello"
        assert message.content == "Hello"
        assert message.is_streaming is False
        assert message.is_reasoning_complete is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("size", [1, 3, 7, 64])
    async def test_arbitrary_byte_splits(
        self, size: int, openai_config: ModelConfig, llm_config: LLMConfig
    ) -> None:
        body = sse_body(
            openai_chunk("Grüße, "), openai_chunk("wörld"), openai_chunk(" 👋")
        )
        service = _service(
            lambda request: streaming_response(split_every(body, size)), llm_config
        )
        message = _placeholder()

        await service.run(_request(openai_config), message, CancellationToken())

        assert message.content == "Grüße, wörld 👋"

    @pytest.mark.asyncio
    async def test_malformed_frame_is_skipped(
        self, openai_config: ModelConfig, llm_config: LLMConfig
    ) -> None:
        body = (
            sse_frame(openai_chunk("a"))
            + "data: {not json\n\n"
            + ": keep-alive comment\n\n"
            + sse_frame(openai_chunk("b"))
            + "data: [DONE]\n\n"
        )
        service = _service(lambda request: streaming_response([body]), llm_config)
        message = _placeholder()

        result = await service.run(_request(openai_config), message, CancellationToken())

        assert result.outcome is CompletionOutcome.COMPLETED
        assert message.content == "ab"

    @pytest.mark.asyncio
    async def test_frames_after_done_are_ignored(
        self, openai_config: ModelConfig, llm_config: LLMConfig
    ) -> None:
        body = sse_body(openai_chunk("kept")) + sse_frame(openai_chunk("late"))
        service = _service(lambda request: streaming_response([body]), llm_config)
        message = _placeholder()

        await service.run(_request(openai_config), message, CancellationToken())

        assert message.content == "kept"

    @pytest.mark.asyncio
    async def test_stream_without_done_marker(
        self, openai_config: ModelConfig, llm_config: LLMConfig
    ) -> None:
        body = sse_body(openai_chunk("x"), openai_chunk("y"), done=False)
        service = _service(lambda request: streaming_response([body]), llm_config)
        message = _placeholder()

        result = await service.run(_request(openai_config), message, CancellationToken())

        assert result.outcome is CompletionOutcome.COMPLETED
        assert message.content == "xy"

    @pytest.mark.asyncio
    async def test_request_sent_to_vendor(
        self, openai_config: ModelConfig, llm_config: LLMConfig
    ) -> None:
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return streaming_response([sse_body(openai_chunk("ok"))])

        service = _service(handler, llm_config)
        await service.run(
            _request(openai_config, "Be brief."), _placeholder(), CancellationToken()
        )

        request = captured[0]
        body = json.loads(request.content)
        assert request.method == "POST"
        assert str(request.url) == "https://api.openai.com/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer sk-test"
        assert body["messages"] == [
            {"role": "system", "content": "Be brief."},
            {"role": "user", "content": "Hi"},
        ]


class TestReasoningStream:
    """Reasoning channel and the completion edge."""

    @pytest.mark.asyncio
    async def test_reasoning_complete_flips_on_first_content(
        self, reasoner_config: ModelConfig, llm_config: LLMConfig
    ) -> None:
        message = _placeholder()
        snapshots: list[tuple[str, str | None, bool]] = []
        events = [
            openai_chunk(reasoning="Let me "),
            openai_chunk(reasoning="think."),
            openai_chunk(content="Answer"),
            openai_chunk(content="!"),
        ]

        async def body() -> AsyncIterator[bytes]:
            for event in events:
                yield sse_frame(event).encode()
                snapshots.append(
                    (
                        message.content,
                        message.reasoning_content,
                        message.is_reasoning_complete,
                    )
                )
            yield b"data: [DONE]\n\n"

        service = _service(
            lambda request: httpx.Response(200, content=body()), llm_config
        )
        result = await service.run(_request(reasoner_config), message, CancellationToken())

        # Each snapshot is taken once the next chunk is requested, i.e. after
        # the previous one has been applied.
        assert snapshots == [
            ("", "Let me ", False),
            ("", "Let me think.", False),
            ("Answer", "Let me think.", True),
            ("Answer!", "Let me think.", True),
        ]
        assert result.reasoning == "Let me think."
        assert message.reasoning_content == "Let me think."

    @pytest.mark.asyncio
    async def test_plain_model_keeps_reasoning_unset(
        self, openai_config: ModelConfig, llm_config: LLMConfig
    ) -> None:
        body = sse_body(openai_chunk("plain"))
        service = _service(lambda request: streaming_response([body]), llm_config)
        message = _placeholder()

        await service.run(_request(openai_config), message, CancellationToken())

        assert message.reasoning_content is None


class TestVendorDialects:
    """Anthropic and Gemini event shapes through the full loop."""

    @pytest.mark.asyncio
    async def test_anthropic_stream(
        self, claude_config: ModelConfig, llm_config: LLMConfig
    ) -> None:
        body = sse_body(
            {"type": "message_start", "message": {"id": "msg_1"}},
            {
                "type": "content_block_delta",
                "delta": {"type": "thinking_delta", "thinking": "hmm"},
            },
            {
                "type": "content_block_delta",
                "delta": {"type": "text_delta", "text": "Hi "},
            },
            {
                "type": "content_block_delta",
                "delta": {"type": "text_delta", "text": "there"},
            },
            {"type": "message_stop"},
            done=False,
        )
        service = _service(lambda request: streaming_response([body]), llm_config)
        message = _placeholder()

        await service.run(_request(claude_config), message, CancellationToken())

        assert message.content == "Hi there"
        assert message.reasoning_content == "hmm"

    @pytest.mark.asyncio
    async def test_gemini_stream(
        self, gemini_config: ModelConfig, llm_config: LLMConfig
    ) -> None:
        def candidate(text: str, thought: bool = False) -> dict[str, Any]:
            part: dict[str, Any] = {"text": text}
            if thought:
                part["thought"] = True
            return {"candidates": [{"content": {"role": "model", "parts": [part]}}]}

        body = sse_body(
            candidate("planning", thought=True),
            candidate("Hello"),
            candidate(" Gemini"),
            done=False,
        )
        service = _service(lambda request: streaming_response([body]), llm_config)
        message = _placeholder()

        await service.run(_request(gemini_config), message, CancellationToken())

        assert message.content == "Hello Gemini"
        assert message.reasoning_content == "planning"


class TestTransportFailures:
    """Non-success statuses and connection errors."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [400, 401, 429, 500, 503])
    async def test_error_status_raises(
        self, status: int, openai_config: ModelConfig, llm_config: LLMConfig
    ) -> None:
        service = _service(
            lambda request: httpx.Response(status, text="vendor says no"), llm_config
        )
        message = _placeholder()

        with pytest.raises(TransportError) as exc_info:
            await service.run(_request(openai_config), message, CancellationToken())

        assert exc_info.value.status == status
        assert "vendor says no" in exc_info.value.message
        assert message.content == ""

    @pytest.mark.asyncio
    async def test_connection_error_propagates(
        self, openai_config: ModelConfig, llm_config: LLMConfig
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        service = _service(handler, llm_config)

        with pytest.raises(httpx.ConnectError):
            await service.run(_request(openai_config), _placeholder(), CancellationToken())


class TestCancellation:
    """No fragment is applied once the token is cancelled."""

    @pytest.mark.asyncio
    async def test_cancelled_before_start_makes_no_request(
        self, openai_config: ModelConfig, llm_config: LLMConfig
    ) -> None:
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return streaming_response([sse_body(openai_chunk("x"))])

        token = CancellationToken()
        token.cancel()

        result = await _service(handler, llm_config).run(
            _request(openai_config), _placeholder(), token
        )

        assert result.outcome is CompletionOutcome.CANCELLED
        assert calls == []

    @pytest.mark.asyncio
    async def test_cancel_mid_stream_freezes_content(
        self, openai_config: ModelConfig, llm_config: LLMConfig
    ) -> None:
        token = CancellationToken()
        message = _placeholder()

        async def body() -> AsyncIterator[bytes]:
            yield sse_frame(openai_chunk("Hel")).encode()
            token.cancel()
            yield sse_frame(openai_chunk("lo")).encode()
            yield b"data: [DONE]\n\n"

        service = _service(
            lambda request: httpx.Response(200, content=body()), llm_config
        )
        result = await service.run(_request(openai_config), message, token)

        assert result.outcome is CompletionOutcome.CANCELLED
        assert result.content == "Hel"
        assert message.content == "Hel"
        assert message.is_streaming is True
