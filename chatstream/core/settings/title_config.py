"""Session title generation configuration."""

from pydantic import BaseModel


class TitleConfig(BaseModel, frozen=True):
    """Settings for the one-shot session title call."""

    enabled: bool
    max_length: int
    temperature: float
    max_tokens: int
    history_limit: int
