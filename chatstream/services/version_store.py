"""Branching version history for assistant messages."""

import structlog

from chatstream.schemas.chat_schema import ChatMessage, MessageVersion

logger = structlog.get_logger()


class MessageVersionStore:
    """Keeps ``versions[current_version_index]`` in step with ``content``.

    A message either has no versions at all, or has at least one and the
    version under the pointer matches what is displayed.
    """

    def record_final_content(self, message: ChatMessage) -> None:
        """Store the final text of a normal (non-regenerate) completion."""
        if not message.content:
            return
        if not message.versions:
            message.versions = [MessageVersion(content=message.content)]
            message.current_version_index = 0
            return
        last = message.versions[-1]
        message.versions[-1] = last.model_copy(update={"content": message.content})
        message.current_version_index = len(message.versions) - 1

    def begin_regenerate(self, message: ChatMessage, supports_reasoning: bool) -> str:
        """Blank the message for a fresh stream and return what it showed."""
        original_content = message.content
        message.content = ""
        message.is_streaming = True
        message.error = None
        if supports_reasoning:
            message.reasoning_content = ""
            message.is_reasoning_complete = False
        return original_content

    def append_version(
        self, message: ChatMessage, original_content: str, new_content: str
    ) -> MessageVersion:
        """Record a regenerated reply and point the message at it."""
        if not message.versions:
            message.versions = [MessageVersion(content=original_content)]
        version = MessageVersion(content=new_content, original_content=original_content)
        message.versions.append(version)
        message.current_version_index = len(message.versions) - 1
        message.content = new_content
        message.is_streaming = False
        logger.info(
            "Message version added",
            message_id=message.id,
            versions=len(message.versions),
            current_version_index=message.current_version_index,
        )
        return version

    def restore(self, message: ChatMessage, original_content: str) -> None:
        """Undo ``begin_regenerate`` after a cancelled or failed regenerate."""
        message.content = original_content
        message.is_streaming = False
        message.is_reasoning_complete = True

    def switch_version(self, message: ChatMessage, index: int) -> bool:
        """Display another version. Out-of-range indexes change nothing."""
        if not 0 <= index < len(message.versions):
            logger.warning(
                "Version index out of range",
                message_id=message.id,
                index=index,
                versions=len(message.versions),
            )
            return False
        message.current_version_index = index
        message.content = message.versions[index].content
        return True
