"""Export the exception hierarchy used across tools, security, parsing and transports."""

from .exceptions import (
    AgenticEngineError,
    LLMToolError,
    ToolRegistrationError,
    ToolNotFoundError,
    ToolExecutionError,
    ToolValidationError,
    SecurityError,
    ModelBehaviorError,
    TransportError,
)

__all__ = [
    "AgenticEngineError",
    "LLMToolError",
    "ToolRegistrationError",
    "ToolNotFoundError",
    "ToolExecutionError",
    "ToolValidationError",
    "SecurityError",
    "ModelBehaviorError",
    "TransportError",
]
