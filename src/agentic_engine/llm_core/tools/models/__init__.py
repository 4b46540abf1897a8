"""Tool-related data models."""

from .models import Tool, ToolCall, ToolResult, ToolStatus, RunContext, new_call_id

__all__ = ["Tool", "ToolCall", "ToolResult", "ToolStatus", "RunContext", "new_call_id"]
