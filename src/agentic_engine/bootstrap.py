"""Assemble a ready-to-run agent from a model gateway and AgentSettings."""

from types import TracebackType
from typing import Any, Optional, Type

from .llm_core import AgentSettings, AgenticLoop, ModelGateway, RunResult, ToolRegistry, get_logger
from .mcp_wrapper import MCPClientManager

logger = get_logger(__name__)


class Agent:
    """An AgenticLoop together with the registry and MCP connections it owns."""

    def __init__(self, loop: AgenticLoop, mcp_manager: Optional[MCPClientManager] = None):
        self.loop = loop
        self.mcp_manager = mcp_manager

    @property
    def registry(self) -> ToolRegistry:
        return self.loop.registry

    async def run(self, prompt: str, *args: Any, **kwargs: Any) -> RunResult:
        return await self.loop.run(prompt, *args, **kwargs)

    async def aclose(self) -> None:
        """Shut down every MCP server connection."""
        if self.mcp_manager is not None:
            await self.mcp_manager.shutdown()

    async def __aenter__(self) -> "Agent":
        return self

    async def __aexit__(
        self, exc_type: Optional[Type[BaseException]], exc_val: Optional[BaseException], exc_tb: Optional[TracebackType]
    ) -> None:
        await self.aclose()


async def build_agent(
    gateway: ModelGateway,
    settings: Optional[AgentSettings] = None,
    registry: Optional[ToolRegistry] = None,
) -> Agent:
    """
    Wire a gateway, a tool registry and the configured tool sources into an Agent.

    Args:
        gateway: The model gateway the loop will query.
        settings: Agent settings; ``AgentSettings.from_env()`` when omitted.
        registry: A registry with application tools already registered. A new one is created when omitted;
            a registry passed in keeps its own ``system_prompt`` and ``retry_base_delay``, and the
            matching settings are not applied to it.

    Returns:
        The assembled agent. Use it as an async context manager, or call ``aclose()``,
        to stop MCP servers it started.

    Raises:
        ToolRegistrationError: If a built-in or remote tool name is already taken. MCP servers
            started for the agent are shut down before the error propagates.
    """
    settings = settings or AgentSettings.from_env()

    if registry is None:
        registry = ToolRegistry(system_prompt=settings.system_prompt, retry_base_delay=settings.retry_base_delay)

    if settings.enable_web_fetch:
        registry.register_web_fetch()

    mcp_manager: Optional[MCPClientManager] = None
    if settings.mcp_servers:
        mcp_manager = MCPClientManager(settings.mcp_servers)
        try:
            await mcp_manager.initialize()
            registry.register_remote_tools(mcp_manager)
        except BaseException:
            for tool in mcp_manager.get_tools():
                if registry.get_tool(tool.name) is tool:
                    registry.unregister(tool.name)
            await mcp_manager.shutdown()
            raise

    loop = AgenticLoop(gateway, registry, max_turns=settings.max_turns, max_retries=settings.max_retries)
    logger.info("Agent ready with %d tools", len(registry))
    return Agent(loop, mcp_manager)
