"""Chat session and message schemas."""

import uuid
from datetime import UTC, datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

USER_ROLE = "user"
ASSISTANT_ROLE = "assistant"
SYSTEM_ROLE = "system"
Role = Literal["user", "assistant", "system"]


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TitleState(str, Enum):
    """One-shot title generation state of a session."""

    PENDING = "pending"
    DONE = "done"


class MessageVersion(BaseModel):
    """One alternate content of an assistant message."""

    content: str
    original_content: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)


class ChatTurn(BaseModel):
    """Normalized ``{role, content}`` pair sent to a vendor."""

    role: Role
    content: str


class ChatMessage(BaseModel):
    """Individual message within a chat session."""

    id: str = Field(default_factory=_new_id)
    role: Role
    content: str = ""
    reasoning_content: str | None = None
    is_streaming: bool = False
    is_reasoning_complete: bool = False
    versions: list[MessageVersion] = Field(default_factory=list)
    current_version_index: int = 0
    snowflake_id: str | None = None
    timestamp: datetime = Field(default_factory=_utcnow)
    error: str | None = None

    @property
    def current_version(self) -> MessageVersion | None:
        """The version currently displayed, if the message has any."""
        if not self.versions:
            return None
        return self.versions[self.current_version_index]

    def to_turn(self) -> ChatTurn:
        """Strip the message down to what a vendor needs."""
        return ChatTurn(role=self.role, content=self.content)


class ChatSession(BaseModel):
    """A conversation with its ordered messages."""

    id: str = Field(default_factory=_new_id)
    title: str = "New chat"
    messages: list[ChatMessage] = Field(default_factory=list)
    role_id: str | None = None
    model_id: str | None = None
    is_temporary: bool = False
    title_state: TitleState | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @property
    def needs_title(self) -> bool:
        """Whether the one-shot title call is still owed."""
        return self.title_state is TitleState.PENDING

    def find_message(self, message_id: str) -> ChatMessage | None:
        """Find a message in this session by id."""
        for message in self.messages:
            if message.id == message_id:
                return message
        return None

    def touch(self) -> None:
        """Bump ``updated_at`` after a mutation."""
        self.updated_at = _utcnow()
