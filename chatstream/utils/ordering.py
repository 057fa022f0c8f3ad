"""Display ordering for chat messages."""

from collections.abc import Iterable
from functools import cmp_to_key

from chatstream.schemas.chat_schema import ChatMessage


def compare_messages(a: ChatMessage, b: ChatMessage) -> int:
    """Three-tier comparison used for transcript display.

    1. Both have a snowflake id: lexicographic string order.
    2. Only one has it: that one is newer and sorts after.
    3. Neither has it: timestamp order.
    """
    if a.snowflake_id and b.snowflake_id:
        return (a.snowflake_id > b.snowflake_id) - (a.snowflake_id < b.snowflake_id)
    if a.snowflake_id:
        return 1
    if b.snowflake_id:
        return -1
    return (a.timestamp > b.timestamp) - (a.timestamp < b.timestamp)


def sort_messages(messages: Iterable[ChatMessage]) -> list[ChatMessage]:
    """Return a new list in display order; ties keep their input order."""
    return sorted(messages, key=cmp_to_key(compare_messages))
