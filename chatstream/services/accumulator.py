"""Running content/reasoning buffers with first-content edge detection."""

from dataclasses import dataclass

from chatstream.schemas.model_schema import Delta


@dataclass(frozen=True)
class AccumulatorStep:
    """Snapshot after applying one delta."""

    content: str
    reasoning: str
    reasoning_just_completed: bool
    changed: bool


class ContentAccumulator:
    """Append fragments in arrival order.

    ``reasoning_just_completed`` is evaluated against the content seen
    *before* the current delta is appended, so it fires on the very event that
    carries the first visible token, even if that event also carries
    trailing reasoning.
    """

    def __init__(self) -> None:
        self.content = ""
        self.reasoning = ""

    def apply(self, delta: Delta) -> AccumulatorStep:
        if delta.is_empty:
            return AccumulatorStep(self.content, self.reasoning, False, False)

        reasoning_just_completed = delta.content != "" and self.content == ""

        self.reasoning += delta.reasoning
        self.content += delta.content

        return AccumulatorStep(
            content=self.content,
            reasoning=self.reasoning,
            reasoning_just_completed=reasoning_just_completed,
            changed=True,
        )
