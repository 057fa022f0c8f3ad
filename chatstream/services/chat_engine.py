"""Per-panel chat engine: send, regenerate, stop and version switching."""

import asyncio
from collections.abc import Callable, Coroutine
from typing import Any, Protocol

import structlog

from chatstream.core.exceptions import (
    CompletionInProgressError,
    ModelNotConfiguredError,
    RegenerateNotAllowedError,
)
from chatstream.repositories.chat_repo import ChatRepository
from chatstream.schemas.chat_schema import (
    ASSISTANT_ROLE,
    USER_ROLE,
    ChatMessage,
    ChatSession,
    ChatTurn,
)
from chatstream.schemas.model_schema import ModelConfig
from chatstream.services.cancellation import CancellationSlot, CancellationToken
from chatstream.services.completion_service import (
    CompletionOutcome,
    CompletionRequest,
    CompletionResult,
    CompletionService,
)
from chatstream.services.title_coordinator import TitleCoordinator
from chatstream.services.version_store import MessageVersionStore

logger = structlog.get_logger()

ERROR_MESSAGE_TEMPLATE = "An error occurred: {error}"


class PlaybackController(Protocol):
    """Audio playback owned by the UI layer."""

    def stop(self) -> None: ...


def _error_text(exc: Exception) -> str:
    return str(getattr(exc, "message", None) or exc) or type(exc).__name__


class ChatPanel:
    """Single-slot completion driver for one chat panel.

    At most one stream is live per panel. Starting a new one (send or
    regenerate) cancels the previous one before any network call is made.
    """

    def __init__(
        self,
        chat_repo: ChatRepository,
        completion_service: CompletionService,
        title_coordinator: TitleCoordinator,
        version_store: MessageVersionStore | None = None,
        playback: PlaybackController | None = None,
    ) -> None:
        self._chat_repo = chat_repo
        self._completion_service = completion_service
        self._title_coordinator = title_coordinator
        self._version_store = version_store or MessageVersionStore()
        self._playback = playback
        self._slot = CancellationSlot()
        self._active_session_id: str | None = None
        self._background_tasks: set[asyncio.Task[Any]] = set()

    @property
    def is_generating(self) -> bool:
        return self._slot.active

    @property
    def cancellation_slot(self) -> CancellationSlot:
        return self._slot

    async def send_message(
        self,
        session_id: str,
        text: str,
        model_config: ModelConfig | None,
        system_prompt: str = "",
    ) -> CompletionResult:
        """Append a user message and stream the assistant's reply."""
        if model_config is None:
            raise ModelNotConfiguredError()
        session = self._chat_repo.get_session(session_id)

        token = self._slot.issue()
        _, promoted = self._chat_repo.add_message(
            session_id, ChatMessage(role=USER_ROLE, content=text)
        )
        if promoted:
            self._title_coordinator.arm(session)

        history = self._history(self._chat_repo.sorted_messages(session_id))
        placeholder, _ = self._chat_repo.add_message(
            session_id, ChatMessage(role=ASSISTANT_ROLE, is_streaming=True)
        )
        token.add_callback(lambda: self._finalize_cancelled(placeholder))

        def on_error(exc: Exception) -> None:
            placeholder.error = _error_text(exc)
            placeholder.content = ERROR_MESSAGE_TEMPLATE.format(error=placeholder.error)
            placeholder.is_streaming = False

        result = await self._stream(
            session, placeholder, history, system_prompt, model_config, token, on_error
        )
        if result.outcome is CompletionOutcome.COMPLETED:
            self._version_store.record_final_content(placeholder)
            self._schedule_title(session, model_config)
        return result

    async def regenerate(
        self,
        session_id: str,
        message_id: str,
        model_config: ModelConfig | None,
        system_prompt: str = "",
    ) -> CompletionResult:
        """Re-run the latest assistant reply, keeping the old one as a version."""
        if model_config is None:
            raise ModelNotConfiguredError()
        session = self._chat_repo.get_session(session_id)
        if self.is_generating and self._active_session_id == session_id:
            raise CompletionInProgressError()

        messages = self._chat_repo.sorted_messages(session_id)
        index = self._regenerable_index(messages, message_id)
        message = messages[index]

        token = self._slot.issue()
        original_content = self._version_store.begin_regenerate(
            message, model_config.supports_reasoning
        )
        token.add_callback(
            lambda: self._version_store.restore(message, original_content)
        )

        def on_error(exc: Exception) -> None:
            self._version_store.restore(message, original_content)
            message.error = _error_text(exc)
            message.content = ERROR_MESSAGE_TEMPLATE.format(error=message.error)

        result = await self._stream(
            session,
            message,
            self._history(messages[:index]),
            system_prompt,
            model_config,
            token,
            on_error,
        )
        if result.outcome is CompletionOutcome.COMPLETED:
            self._version_store.append_version(message, original_content, result.content)
            self._schedule_title(session, model_config)
        return result

    def stop_generation(self) -> bool:
        """User-initiated stop: cancel the live stream and silence playback."""
        stopped = self._slot.cancel()
        if self._playback is not None:
            try:
                self._playback.stop()
            except Exception:
                logger.exception("Failed to stop playback")
        logger.info("Generation stopped", was_generating=stopped)
        return stopped

    def switch_version(self, session_id: str, message_id: str, index: int) -> bool:
        """Display another stored version of a message."""
        message = self._chat_repo.get_message(session_id, message_id)
        switched = self._version_store.switch_version(message, index)
        if switched:
            self._chat_repo.get_session(session_id).touch()
        return switched

    async def wait_for_background_tasks(self) -> None:
        """Wait for pending title generation calls to settle."""
        while self._background_tasks:
            await asyncio.gather(*list(self._background_tasks))

    async def close(self) -> None:
        self._slot.cancel()
        await self.wait_for_background_tasks()

    async def _stream(
        self,
        session: ChatSession,
        message: ChatMessage,
        history: list[ChatTurn],
        system_prompt: str,
        model_config: ModelConfig,
        token: CancellationToken,
        on_error: Callable[[Exception], None],
    ) -> CompletionResult:
        self._active_session_id = session.id
        request = CompletionRequest(
            messages=history, system_prompt=system_prompt, model_config=model_config
        )
        try:
            result = await self._completion_service.run(request, message, token)
        except Exception as exc:
            if token.cancelled:
                logger.info("Completion failed after cancellation", session_id=session.id)
                return CompletionResult(
                    CompletionOutcome.CANCELLED, message.content, ""
                )
            logger.error(
                "Completion failed",
                session_id=session.id,
                message_id=message.id,
                error=_error_text(exc),
            )
            on_error(exc)
            raise
        finally:
            self._slot.release(token)
            if self._slot.current is None:
                self._active_session_id = None
        session.touch()
        return result

    def _schedule_title(self, session: ChatSession, model_config: ModelConfig) -> None:
        if not session.needs_title:
            return
        self._spawn(
            self._title_coordinator.on_completion_finished(session, model_config)
        )

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        task = asyncio.create_task(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    @staticmethod
    def _finalize_cancelled(message: ChatMessage) -> None:
        message.is_streaming = False
        message.is_reasoning_complete = True

    @staticmethod
    def _history(messages: list[ChatMessage]) -> list[ChatTurn]:
        """Turns sent to the vendor; in-progress placeholders are left out."""
        return [
            m.to_turn()
            for m in messages
            if not (m.role == ASSISTANT_ROLE and m.is_streaming)
        ]

    @staticmethod
    def _regenerable_index(messages: list[ChatMessage], message_id: str) -> int:
        index = next((i for i, m in enumerate(messages) if m.id == message_id), None)
        if index is None or messages[index].role != ASSISTANT_ROLE:
            raise RegenerateNotAllowedError("Only assistant replies can be regenerated")

        last_assistant = max(
            i for i, m in enumerate(messages) if m.role == ASSISTANT_ROLE
        )
        if index != last_assistant:
            raise RegenerateNotAllowedError(
                "Only the latest assistant reply can be regenerated"
            )
        if not any(m.role == USER_ROLE for m in messages[:index]):
            raise RegenerateNotAllowedError(
                "No user message precedes this reply"
            )
        return index
