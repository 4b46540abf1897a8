"""Gemini model gateway."""

from .core import GeminiGateway

__all__ = ["GeminiGateway"]
