"""Expose the OpenAI-backed model gateway."""

from .core import OpenAIGateway

__all__ = ["OpenAIGateway"]
