"""Expose the transcript message models shared by the loop and its callers."""

from .models import Message, Role, UserMessage, AssistantMessage, SystemMessage

__all__ = [
    "Message",
    "Role",
    "UserMessage",
    "AssistantMessage",
    "SystemMessage",
]
