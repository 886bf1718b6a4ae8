"""
Chat message models.

Message content is a tagged variant: either plain text or text with
attachments. Consumers branch on the variant type instead of probing
the payload shape at runtime.

Dependencies: pydantic
System role: Input contract for the indexing pipeline
"""

import uuid
from datetime import datetime, timezone
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class TextOnly(BaseModel):
    """Plain text content."""

    kind: Literal["text"] = "text"
    text: str


class ImageAttachment(BaseModel):
    """Binary attachment sent alongside a message (e.g. an image)."""

    mime_type: str = Field(description="MIME type, e.g. image/png")
    filename: str | None = None
    size_bytes: int = Field(default=0, ge=0)


class WithAttachments(BaseModel):
    """Text content sent with one or more attachments."""

    kind: Literal["attachments"] = "attachments"
    text: str
    attachments: list[ImageAttachment] = Field(min_length=1)


MessageContent = Annotated[Union[TextOnly, WithAttachments], Field(discriminator="kind")]


class ChatMessage(BaseModel):
    """A single chat turn as handed over by the chat application."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    content: MessageContent
    is_user: bool
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    library_id: str | None = Field(default=None, description="Library the message targets")
    conversation_id: str | None = Field(default=None, description="Owning conversation")
    model: str | None = Field(default=None, description="Model that produced the reply")

    @classmethod
    def from_text(cls, text: str, is_user: bool, **kwargs) -> "ChatMessage":
        """Build a text-only message."""
        return cls(content=TextOnly(text=text), is_user=is_user, **kwargs)

    @property
    def role(self) -> str:
        """Speaker label used when rendering turns."""
        return "User" if self.is_user else "Assistant"


def content_text(content: TextOnly | WithAttachments) -> str:
    """
    Text part of either content variant.

    Args:
        content: Message content

    Returns:
        str: The text carried by the content

    Raises:
        TypeError: If content is not a known variant
    """
    if isinstance(content, TextOnly):
        return content.text
    if isinstance(content, WithAttachments):
        return content.text
    raise TypeError(f"Unknown message content variant: {type(content).__name__}")
