"""
Custom exception classes for the agentic engine.

This module defines the hierarchy of exceptions used during tool registration,
tool execution, URL validation, model-response parsing and remote tool transport.
Only tool-registration problems and model-gateway failures ever reach the caller
of the agentic loop; everything else is converted into a textual fallback.
"""

from typing import Optional


class AgenticEngineError(Exception):
    """Base exception for all errors raised by the engine."""

    pass


class LLMToolError(AgenticEngineError):
    """Base exception for all tool-related errors."""

    pass


class ToolRegistrationError(LLMToolError):
    """Raised when there is an error registering a tool."""

    pass


class ToolNotFoundError(LLMToolError):
    """Raised when a requested tool is not found in the registry."""

    pass


class ToolExecutionError(LLMToolError):
    """Raised when a tool fails during execution.

    Attributes:
        tool_name: Name of the tool that failed.
        attempt: The 1-based attempt on which the failure happened.
        original_error: The underlying exception, if any.
    """

    def __init__(self, tool_name: str, message: str, attempt: int = 1, original_error: Optional[BaseException] = None):
        super().__init__(f"Tool '{tool_name}' failed on attempt {attempt}: {message}")
        self.tool_name = tool_name
        self.attempt = attempt
        self.original_error = original_error
        self.reason = message


class ToolValidationError(LLMToolError):
    """Raised when tool parameters or definition are invalid."""

    pass


class SecurityError(AgenticEngineError):
    """Raised when a security policy is violated (URL scheme, private address, redirect).

    Policy violations are never retried.
    """

    pass


class ModelBehaviorError(AgenticEngineError):
    """Raised when the model produces output that cannot be acted on.

    Attributes:
        response: The raw model output that triggered the error.
    """

    def __init__(self, response: str, message: str):
        super().__init__(message)
        self.response = response or ""

    @property
    def truncated_response(self) -> str:
        """First 200 characters of the offending response, for logging."""
        if len(self.response) <= 200:
            return self.response
        return self.response[:200] + "..."


class TransportError(AgenticEngineError):
    """Raised when a remote tool provider cannot be reached or answers with an error."""

    pass
