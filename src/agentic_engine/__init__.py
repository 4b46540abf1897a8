"""Agentic Engine - a turn-based tool-using agent loop over any text-generation model."""

__version__ = "0.1.0"

from .llm_core import (
    AgenticLoop,
    AgentSettings,
    MCPServerConfig,
    ModelGateway,
    RunResult,
    LoopOutcome,
    ToolRegistry,
    ToolResult,
    FunctionTool,
    WebFetchTool,
    Message,
    UserMessage,
    AssistantMessage,
    SystemMessage,
)
from .llm_impl import GeminiGateway, OpenAIGateway
from .mcp_wrapper import MCPClientManager
from .bootstrap import Agent, build_agent

__all__ = [
    "__version__",
    "AgenticLoop",
    "AgentSettings",
    "MCPServerConfig",
    "ModelGateway",
    "RunResult",
    "LoopOutcome",
    "ToolRegistry",
    "ToolResult",
    "FunctionTool",
    "WebFetchTool",
    "Message",
    "UserMessage",
    "AssistantMessage",
    "SystemMessage",
    "GeminiGateway",
    "OpenAIGateway",
    "MCPClientManager",
    "Agent",
    "build_agent",
]
