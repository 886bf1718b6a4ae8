"""
Conversation chunk models.

A chunk is the formatted text of consecutive whole turns, kept together
with the turns it was built from.

Dependencies: pydantic
System role: Pipeline-internal data structure between chunker and embedder
"""

from pydantic import BaseModel, Field


class Turn(BaseModel):
    """One speaker turn."""

    role: str = Field(description="Speaker label, e.g. User or Assistant")
    text: str = Field(description="Turn text")

    def render(self) -> str:
        """Text of this turn as it appears inside a chunk."""
        return f"{self.role}: {self.text}\n\n"


class ConversationChunk(BaseModel):
    """Consecutive turns rendered into one embeddable text."""

    turns: list[Turn] = Field(default_factory=list)

    @property
    def text(self) -> str:
        return "".join(turn.render() for turn in self.turns)

    @property
    def message_count(self) -> int:
        return len(self.turns)
