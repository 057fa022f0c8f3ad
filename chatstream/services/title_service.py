"""Service for generating chat session titles via LLM."""

from collections.abc import Callable, Sequence

import structlog
from langchain_anthropic import ChatAnthropic
from langchain_core.language_models import BaseChatModel
from langchain_openai import ChatOpenAI

from chatstream.core.config import settings
from chatstream.core.settings import TitleConfig
from chatstream.providers.base import get_default_base_url
from chatstream.repositories.chat_repo import ChatRepository
from chatstream.schemas.chat_schema import ASSISTANT_ROLE, USER_ROLE, ChatMessage
from chatstream.schemas.model_schema import ModelConfig

logger = structlog.get_logger()

GEMINI_OPENAI_PATH = "/v1beta/openai/"

TitleModelFactory = Callable[[ModelConfig, TitleConfig], BaseChatModel]


def _openai_base_url(config: ModelConfig) -> str:
    if config.provider == "gemini" and "openrouter" not in config.base_url:
        base = config.base_url or get_default_base_url("gemini")
        return base.rstrip("/") + GEMINI_OPENAI_PATH
    base = (config.base_url or get_default_base_url(config.provider)).rstrip("/")
    base = base.removesuffix("/chat/completions")
    return base if base.endswith("/v1") else base + "/v1"


def build_title_llm(config: ModelConfig, title_config: TitleConfig) -> BaseChatModel:
    """Build a non-streaming LangChain chat model for the title call."""
    match config.provider:
        case "claude":
            return ChatAnthropic(  # type: ignore[call-arg]
                model_name=config.model,
                api_key=config.api_key,
                base_url=config.base_url or get_default_base_url("claude"),
                temperature=title_config.temperature,
                max_tokens=title_config.max_tokens,
            )
        case _:
            return ChatOpenAI(
                model=config.model,
                api_key=config.api_key,
                base_url=_openai_base_url(config),
                temperature=title_config.temperature,
                max_tokens=title_config.max_tokens,  # type: ignore[call-arg]
            )


class TitleService:
    """Generates concise session titles from the opening exchange."""

    def __init__(self, llm: BaseChatModel, max_length: int = 30) -> None:
        self._llm = llm
        self._max_length = max_length

    async def generate_title(self, transcript: str) -> str:
        """Summarise a transcript into a title of at most ``max_length`` characters."""
        prompt = (
            "Generate a short title for the following conversation "
            f"(at most {self._max_length} characters). "
            "Reply with the title only:\n\n"
            f"{transcript}"
        )
        response = await self._llm.ainvoke(prompt)
        title = str(response.content).strip().strip("\"'").strip()
        return title[: self._max_length]


def build_transcript(messages: Sequence[ChatMessage], limit: int) -> str:
    """Render the first ``limit`` user/assistant messages as ``Speaker: text`` lines."""
    lines = [
        f"{'User' if m.role == USER_ROLE else 'AI'}: {m.content}"
        for m in messages
        if m.role in (USER_ROLE, ASSISTANT_ROLE) and m.content
    ][:limit]
    return "\n".join(lines)


class LangChainTitleGenerator:
    """Default title-generation collaborator: rename a session via an LLM call."""

    def __init__(
        self,
        chat_repo: ChatRepository,
        title_config: TitleConfig | None = None,
        model_factory: TitleModelFactory = build_title_llm,
    ) -> None:
        self._chat_repo = chat_repo
        self._title_config = title_config or settings.title
        self._model_factory = model_factory

    async def __call__(self, session_id: str, model_config: ModelConfig) -> None:
        session = self._chat_repo.get_session(session_id)
        transcript = build_transcript(
            self._chat_repo.sorted_messages(session_id),
            self._title_config.history_limit,
        )
        if not transcript.strip():
            logger.info("No messages to title", session_id=session_id)
            return

        llm = self._model_factory(model_config, self._title_config)
        title = await TitleService(llm, self._title_config.max_length).generate_title(
            transcript
        )
        if not title:
            logger.warning("Title model returned nothing", session_id=session.id)
            return

        self._chat_repo.rename_session(session.id, title)
        logger.info("Session title generated", session_id=session.id, title=title)
