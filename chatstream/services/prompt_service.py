"""Default system prompt composition."""

import re
from collections.abc import Sequence

from chatstream.schemas.prompt_schema import AIRole, GlobalPrompt, UserProfile

_USER_PLACEHOLDER = re.compile(r"\{\{user\}\}", re.IGNORECASE)
_CHAR_PLACEHOLDER = re.compile(r"\{\{char\}\}", re.IGNORECASE)


def replace_template_variables(
    text: str, user_name: str = "User", char_name: str = "AI Assistant"
) -> str:
    """Substitute ``{{user}}`` and ``{{char}}`` placeholders."""
    if not text:
        return text
    text = _USER_PLACEHOLDER.sub(lambda _: user_name, text)
    return _CHAR_PLACEHOLDER.sub(lambda _: char_name, text)


def build_system_prompt(
    role: AIRole | None,
    global_prompts: Sequence[GlobalPrompt],
    user_profile: UserProfile | None,
    knowledge_context: str | None = None,
) -> str:
    """Compose one system prompt string from the chat's context.

    Sections, in order: user profile, referenced global prompts, the role's
    own prompt, retrieved knowledge. Empty sections are skipped, and an empty
    result means no system instruction is sent at all.
    """
    user_name = user_profile.name if user_profile else "User"
    char_name = role.name if role else "AI Assistant"
    sections: list[str] = []

    if user_profile:
        info = [f"Name: {user_profile.name}"]
        if user_profile.description.strip():
            info.append(f"About: {user_profile.description.strip()}")
        sections.append(f"[User info: {', '.join(info)}]")

    if role:
        prompts_by_id = {p.id: p for p in global_prompts}
        for prompt_id in role.global_prompt_ids:
            prompt = prompts_by_id.get(prompt_id)
            if prompt is None or not prompt.prompt.strip():
                continue
            text = replace_template_variables(prompt.prompt.strip(), user_name, char_name)
            sections.append(f"[Global setting: {text}]")

        if role.system_prompt.strip():
            text = replace_template_variables(
                role.system_prompt.strip(), user_name, char_name
            )
            sections.append(f"[Role setting: {text}]")

    if knowledge_context and knowledge_context.strip():
        sections.append(knowledge_context.strip())

    return "\n\n".join(sections)
