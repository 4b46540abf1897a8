"""Tool-related data models and the tool capability protocol."""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Any, Dict, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, Field


class ToolStatus(str, Enum):
    """Outcome of a single tool execution."""

    SUCCESS = "success"
    ERROR = "error"


class ToolResult(BaseModel):
    """Represents the outcome of executing a tool call.

    Attributes:
        status: ``success`` or ``error``.
        content: Text handed back to the model.
        metadata: Optional free-form details (final URL, server name, ...).
    """

    status: ToolStatus
    content: str
    metadata: Optional[Dict[str, Any]] = None

    @classmethod
    def success(cls, content: str, metadata: Optional[Dict[str, Any]] = None) -> "ToolResult":
        return cls(status=ToolStatus.SUCCESS, content=content, metadata=metadata)

    @classmethod
    def error(cls, content: str, metadata: Optional[Dict[str, Any]] = None) -> "ToolResult":
        return cls(status=ToolStatus.ERROR, content=content, metadata=metadata)

    @property
    def ok(self) -> bool:
        return self.status is ToolStatus.SUCCESS


def new_call_id() -> str:
    """Return a fresh correlation id for a tool call."""
    return f"call_{uuid.uuid4().hex}"


class ToolCall(BaseModel):
    """A tool invocation requested by the model.

    Attributes:
        name: Registered tool name.
        args: Decoded ARGUMENTS payload (any JSON object or array).
        call_id: Correlation id, unique per parsed call.
    """

    name: str
    args: Any = Field(default_factory=dict)
    call_id: str = Field(default_factory=new_call_id)


class RunContext(BaseModel):
    """Explicit per-session context handed to every tool execution."""

    session_id: str
    context: Dict[str, Any] = Field(default_factory=dict)


@runtime_checkable
class Tool(Protocol):
    """Capability interface every tool satisfies.

    In-process functions, the built-in fetch tool and remote (MCP) tools all
    expose the same four members and are dispatched purely by name.
    """

    name: str
    description: str
    parameters: Dict[str, Any]

    async def execute(self, args: Any, context: RunContext) -> ToolResult:
        """Run the tool and return its result."""
        ...
