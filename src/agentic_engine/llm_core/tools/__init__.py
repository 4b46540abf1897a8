from .models import Tool, ToolCall, ToolResult, ToolStatus, RunContext
from .function_tool import FunctionTool
from .registry import ToolRegistry
from .builtin import WebFetchTool
from .schema import SchemaValidator

__all__ = [
    "Tool",
    "ToolCall",
    "ToolResult",
    "ToolStatus",
    "RunContext",
    "FunctionTool",
    "ToolRegistry",
    "WebFetchTool",
    "SchemaValidator",
]
