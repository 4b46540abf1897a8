"""Bridge tools hosted on MCP servers (stdio or HTTP) into the tool registry."""

from .client import MCPClientManager
from .http_connection import HttpConnection
from .remote_tool import RemoteTool, render_call_result
from .stdio_connection import StdioConnection

__all__ = [
    "MCPClientManager",
    "HttpConnection",
    "RemoteTool",
    "StdioConnection",
    "render_call_result",
]
