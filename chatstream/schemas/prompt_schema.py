"""Inputs to system prompt composition."""

from pydantic import BaseModel, Field


class GlobalPrompt(BaseModel):
    """A reusable prompt that roles can reference."""

    id: str
    title: str = ""
    prompt: str


class AIRole(BaseModel):
    """Assistant persona with its own system prompt."""

    id: str
    name: str = "AI Assistant"
    system_prompt: str = ""
    global_prompt_ids: list[str] = Field(default_factory=list)


class UserProfile(BaseModel):
    """The person chatting with the assistant."""

    id: str | None = None
    name: str = "User"
    description: str = ""
