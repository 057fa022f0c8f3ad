"""One-shot session title generation."""

from typing import Protocol

import structlog

from chatstream.core.config import settings
from chatstream.core.settings import TitleConfig
from chatstream.schemas.chat_schema import ChatSession, TitleState
from chatstream.schemas.model_schema import ModelConfig

logger = structlog.get_logger()


class TitleGenerator(Protocol):
    """Renames a session; only success or failure matters to the caller."""

    async def __call__(self, session_id: str, model_config: ModelConfig) -> None: ...


class TitleCoordinator:
    """Drives each session through ``None -> PENDING -> DONE`` exactly once.

    ``arm`` happens on the transient-to-persistent promotion edge. The title
    call fires after the next completed (not cancelled) reply, and the session
    moves to DONE when that call settles, whether it succeeded or not.
    """

    def __init__(
        self,
        generator: TitleGenerator | None,
        title_config: TitleConfig | None = None,
    ) -> None:
        self._generator = generator
        self._title_config = title_config or settings.title
        self._in_flight: set[str] = set()

    def arm(self, session: ChatSession) -> bool:
        if session.title_state is not None:
            return False
        session.title_state = TitleState.PENDING
        logger.info("Session marked for title generation", session_id=session.id)
        return True

    async def on_completion_finished(
        self, session: ChatSession, model_config: ModelConfig | None
    ) -> bool:
        """Issue the title call if one is owed. Returns whether it was issued."""
        if not session.needs_title or session.id in self._in_flight:
            return False

        if (
            not self._title_config.enabled
            or self._generator is None
            or model_config is None
        ):
            session.title_state = TitleState.DONE
            return False

        self._in_flight.add(session.id)
        try:
            await self._generator(session.id, model_config)
        except Exception:
            logger.exception("Failed to generate session title", session_id=session.id)
        finally:
            session.title_state = TitleState.DONE
            self._in_flight.discard(session.id)
        return True
