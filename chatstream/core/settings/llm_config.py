"""LLM request defaults."""

from pydantic import BaseModel


class LLMConfig(BaseModel, frozen=True):
    """Fallback generation parameters and protocol constants."""

    temperature: float
    max_tokens: int
    anthropic_version: str
