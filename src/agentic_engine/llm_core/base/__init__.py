"""Re-export the gateway and store interfaces consumed by the agentic loop."""

from .base import ModelGateway, ConversationStore

__all__ = [
    "ModelGateway",
    "ConversationStore",
]
