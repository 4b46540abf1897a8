"""Provider-agnostic message models for the conversation transcript."""

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field

Role = Literal["user", "assistant", "system"]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Message(BaseModel):
    """A single transcript entry.

    Attributes:
        role: Who authored the message.
        content: Text payload of the message.
        timestamp: When the message was created.
    """

    role: Role
    content: str
    timestamp: datetime = Field(default_factory=_now)

    def render(self) -> str:
        """Render the message as a ``role: content`` prompt line."""
        return f"{self.role}: {self.content}"


class SystemMessage(Message):
    """Message authored by the system to steer behavior."""

    role: Literal["system"] = "system"


class UserMessage(Message):
    """Message authored by an end user."""

    role: Literal["user"] = "user"


class AssistantMessage(Message):
    """Message authored by the assistant (final answers and tool-result feedback)."""

    role: Literal["assistant"] = "assistant"
