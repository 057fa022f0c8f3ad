"""In-memory chat repository for live session and message state."""

from dataclasses import dataclass
from datetime import datetime

import structlog

from chatstream.core.exceptions import MessageNotFoundError, SessionNotFoundError
from chatstream.schemas.chat_schema import (
    ASSISTANT_ROLE,
    USER_ROLE,
    ChatMessage,
    ChatSession,
    MessageVersion,
)
from chatstream.utils.ordering import sort_messages
from chatstream.utils.snowflake import SnowflakeIdGenerator, snowflake_generator

logger = structlog.get_logger()


@dataclass(frozen=True)
class SessionWithPreview:
    """Immutable result object for session list queries."""

    id: str
    title: str
    last_message_preview: str | None
    created_at: datetime
    updated_at: datetime


class ChatRepository:
    """Owns every live session, including the single transient one.

    A transient session is kept apart from the persistent list until its
    first user message arrives, at which point it is promoted.
    """

    def __init__(self, id_generator: SnowflakeIdGenerator | None = None) -> None:
        self._sessions: dict[str, ChatSession] = {}
        self._temp_session: ChatSession | None = None
        self._ids = id_generator or snowflake_generator

    # --- Sessions ---

    def create_session(
        self,
        role_id: str | None = None,
        model_id: str | None = None,
        title: str = "New chat",
    ) -> ChatSession:
        """Create a persistent session."""
        session = ChatSession(role_id=role_id, model_id=model_id, title=title)
        self._sessions[session.id] = session
        logger.info("Session created", session_id=session.id)
        return session

    def create_temp_session(
        self,
        role_id: str | None = None,
        model_id: str | None = None,
        title: str = "New chat",
    ) -> ChatSession:
        """Create a transient session, replacing any unused one."""
        if self._temp_session is not None:
            self.delete_temp_session()
        session = ChatSession(
            role_id=role_id, model_id=model_id, title=title, is_temporary=True
        )
        self._temp_session = session
        logger.info("Temporary session created", session_id=session.id)
        return session

    def save_temp_session(self) -> ChatSession | None:
        """Promote the transient session to the persistent list."""
        session, self._temp_session = self._temp_session, None
        if session is None:
            return None
        session.is_temporary = False
        self._sessions[session.id] = session
        logger.info("Temporary session saved", session_id=session.id)
        return session

    def delete_temp_session(self) -> None:
        """Discard an abandoned transient session."""
        session, self._temp_session = self._temp_session, None
        if session is not None:
            logger.info("Temporary session deleted", session_id=session.id)

    @property
    def temp_session(self) -> ChatSession | None:
        return self._temp_session

    def find_session(self, session_id: str) -> ChatSession | None:
        if self._temp_session is not None and self._temp_session.id == session_id:
            return self._temp_session
        return self._sessions.get(session_id)

    def get_session(self, session_id: str) -> ChatSession:
        session = self.find_session(session_id)
        if session is None:
            raise SessionNotFoundError()
        return session

    def list_sessions(self) -> list[SessionWithPreview]:
        """Persistent sessions, most recently updated first."""
        sessions = sorted(
            self._sessions.values(), key=lambda s: s.updated_at, reverse=True
        )
        return [
            SessionWithPreview(
                id=s.id,
                title=s.title,
                last_message_preview=self._last_user_content(s),
                created_at=s.created_at,
                updated_at=s.updated_at,
            )
            for s in sessions
        ]

    def rename_session(self, session_id: str, title: str) -> ChatSession:
        session = self.get_session(session_id)
        session.title = title
        session.touch()
        return session

    def delete_session(self, session_id: str) -> None:
        if self._temp_session is not None and self._temp_session.id == session_id:
            self.delete_temp_session()
            return
        if self._sessions.pop(session_id, None) is None:
            raise SessionNotFoundError()
        logger.info("Session deleted", session_id=session_id)

    # --- Messages ---

    def add_message(
        self, session_id: str, message: ChatMessage
    ) -> tuple[ChatMessage, bool]:
        """Append a message to a session.

        Returns:
            Tuple of (stored message, promoted) where ``promoted`` is True
            when this was the first user message of the transient session.
        """
        session = self.get_session(session_id)

        # An existing snowflake id is never overwritten.
        if message.snowflake_id is None:
            message.snowflake_id = self._ids.generate_id()
        if not message.versions and message.content and message.role in (
            USER_ROLE,
            ASSISTANT_ROLE,
        ):
            message.versions = [MessageVersion(content=message.content)]
            message.current_version_index = 0

        promoted = session.is_temporary and message.role == USER_ROLE
        if promoted:
            self.save_temp_session()

        session.messages.append(message)
        session.touch()
        return message, promoted

    def get_message(self, session_id: str, message_id: str) -> ChatMessage:
        message = self.get_session(session_id).find_message(message_id)
        if message is None:
            raise MessageNotFoundError()
        return message

    def update_message(
        self,
        session_id: str,
        message_id: str,
        content: str | None = None,
        is_streaming: bool | None = None,
    ) -> ChatMessage:
        """Overwrite the visible content and/or streaming flag."""
        message = self.get_message(session_id, message_id)
        if content is not None:
            message.content = content
        if is_streaming is not None:
            message.is_streaming = is_streaming
        self.get_session(session_id).touch()
        return message

    def delete_message(self, session_id: str, message_id: str) -> None:
        session = self.get_session(session_id)
        remaining = [m for m in session.messages if m.id != message_id]
        if len(remaining) == len(session.messages):
            raise MessageNotFoundError()
        session.messages = remaining
        session.touch()

    def sorted_messages(self, session_id: str) -> list[ChatMessage]:
        """Messages of a session in display order."""
        return sort_messages(self.get_session(session_id).messages)

    @staticmethod
    def _last_user_content(session: ChatSession) -> str | None:
        for message in reversed(session.messages):
            if message.role == USER_ROLE:
                return message.content[:100]
        return None
