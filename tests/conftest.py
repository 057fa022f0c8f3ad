"""Pytest configuration and fixtures."""

import json
from collections.abc import AsyncIterator, Callable, Iterable
from typing import Any
from unittest.mock import AsyncMock

import httpx
import pytest
from pydantic import SecretStr

from chatstream.core.settings import LLMConfig, TitleConfig
from chatstream.repositories.chat_repo import ChatRepository
from chatstream.schemas.model_schema import ModelConfig
from chatstream.services.chat_engine import ChatPanel
from chatstream.services.completion_service import CompletionService
from chatstream.services.title_coordinator import TitleCoordinator

Handler = Callable[[httpx.Request], Any]


# --- SSE helpers ---


def sse_frame(event: dict[str, Any] | str) -> str:
    """Render one ``data:`` frame."""
    payload = event if isinstance(event, str) else json.dumps(event)
    return f"data: {payload}\n\n"


def sse_body(*events: dict[str, Any] | str, done: bool = True) -> str:
    """Render a whole event-stream body, optionally terminated by [DONE]."""
    body = "".join(sse_frame(e) for e in events)
    return body + ("data: [DONE]\n\n" if done else "")


def openai_chunk(content: str = "", reasoning: str = "") -> dict[str, Any]:
    """OpenAI-style streaming chunk."""
    delta: dict[str, Any] = {}
    if content:
        delta["content"] = content
    if reasoning:
        delta["reasoning_content"] = reasoning
    return {"choices": [{"index": 0, "delta": delta}]}


def split_every(text: str, size: int) -> list[bytes]:
    """Chop a body into fixed-size byte chunks, ignoring frame boundaries."""
    raw = text.encode("utf-8")
    return [raw[i : i + size] for i in range(0, len(raw), size)]


def streaming_response(
    chunks: Iterable[str | bytes], status_code: int = 200
) -> httpx.Response:
    """Build a response whose body arrives as separate async reads."""

    async def body() -> AsyncIterator[bytes]:
        for chunk in chunks:
            yield chunk.encode("utf-8") if isinstance(chunk, str) else chunk

    return httpx.Response(
        status_code,
        headers={"content-type": "text/event-stream"},
        content=body(),
    )


def mock_client(handler: Handler) -> httpx.AsyncClient:
    """AsyncClient whose requests are answered by ``handler``."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


# --- Config fixtures ---


@pytest.fixture
def llm_config() -> LLMConfig:
    return LLMConfig(temperature=0.7, max_tokens=1024, anthropic_version="2023-06-01")


@pytest.fixture
def title_config() -> TitleConfig:
    return TitleConfig(
        enabled=True, max_length=30, temperature=0.3, max_tokens=20, history_limit=4
    )


@pytest.fixture
def openai_config() -> ModelConfig:
    return ModelConfig(
        id="m-openai",
        name="GPT",
        provider="openai",
        model="gpt-4o-mini",
        api_key=SecretStr("sk-test"),
        temperature=0.5,
        max_tokens=512,
    )


@pytest.fixture
def reasoner_config() -> ModelConfig:
    return ModelConfig(
        id="m-deepseek",
        name="DeepSeek Reasoner",
        provider="deepseek",
        model="deepseek-reasoner",
        api_key=SecretStr("sk-ds"),
    )


@pytest.fixture
def claude_config() -> ModelConfig:
    return ModelConfig(
        id="m-claude",
        name="Claude",
        provider="claude",
        model="claude-sonnet-4-20250514",
        api_key=SecretStr("ak-test"),
        temperature=0.2,
        max_tokens=2048,
    )


@pytest.fixture
def gemini_config() -> ModelConfig:
    return ModelConfig(
        id="m-gemini",
        name="Gemini",
        provider="gemini",
        model="gemini-1.5-flash",
        api_key=SecretStr("gk-test"),
        temperature=0.9,
        max_tokens=256,
    )


# --- Engine fixtures ---


@pytest.fixture
def chat_repo() -> ChatRepository:
    """Fresh in-memory repository."""
    return ChatRepository()


@pytest.fixture
def mock_title_generator() -> AsyncMock:
    """Title generator that succeeds without doing anything."""
    return AsyncMock(return_value=None)


@pytest.fixture
def make_panel(
    chat_repo: ChatRepository,
    mock_title_generator: AsyncMock,
    llm_config: LLMConfig,
    title_config: TitleConfig,
) -> Callable[..., ChatPanel]:
    """Factory building a ChatPanel whose vendor traffic goes to ``handler``."""

    def _make(handler: Handler, playback: Any = None) -> ChatPanel:
        service = CompletionService(client=mock_client(handler), llm_config=llm_config)
        coordinator = TitleCoordinator(mock_title_generator, title_config)
        return ChatPanel(chat_repo, service, coordinator, playback=playback)

    return _make
