"""Connect to several MCP servers and collect the tools they expose."""

from types import TracebackType
from typing import Any, Dict, List, Optional, Sequence, Type, Union

from ..llm_core.config import MCPServerConfig
from ..llm_core.exceptions import TransportError
from ..llm_core.logger import get_logger
from ..llm_core.tools.models import ToolResult
from .http_connection import HttpConnection
from .remote_tool import RemoteTool
from .stdio_connection import StdioConnection

logger = get_logger(__name__)

__all__ = ["MCPClientManager"]

Connection = Union[StdioConnection, HttpConnection]


class MCPClientManager:
    """Owns one connection per configured server.

    Servers that fail to start, connect or list their tools are logged and
    skipped; the remaining ones still contribute their tools.
    """

    def __init__(self, configs: Sequence[MCPServerConfig] = (), request_timeout: Optional[float] = None):
        self.configs = list(configs)
        self.request_timeout = request_timeout
        self._connections: Dict[str, Connection] = {}
        self._tools: List[RemoteTool] = []

    async def initialize(self, configs: Optional[Sequence[MCPServerConfig]] = None) -> List[RemoteTool]:
        """Connect every configured server, then discover their tools.

        Args:
            configs: Server configurations; defaults to the ones given at construction.

        Returns:
            All discovered tools.
        """
        if configs is not None:
            self.configs = list(configs)

        logger.info("Initializing MCP client manager with %d servers", len(self.configs))
        for config in self.configs:
            if config.name in self._connections:
                logger.warning("MCP server '%s' is already connected, skipping duplicate", config.name)
                continue
            connection = self._create_connection(config)
            try:
                await connection.connect()
            except (TransportError, OSError) as e:
                logger.error("Failed to initialize MCP server %s: %s", config.name, e)
                await connection.close()
                continue
            self._connections[config.name] = connection

        tools = await self.discover_tools()
        logger.info("Initialized %d tools from MCP servers", len(tools))
        return tools

    def _create_connection(self, config: MCPServerConfig) -> Connection:
        if config.transport == "stdio":
            assert config.command is not None
            return StdioConnection(
                name=config.name,
                command=config.command,
                args=config.args,
                env=config.env,
                request_timeout=self.request_timeout,
            )
        assert config.url is not None
        return HttpConnection(name=config.name, url=config.url, headers=config.headers, timeout=self.request_timeout)

    async def discover_tools(self) -> List[RemoteTool]:
        """Re-list tools on every connected server."""
        tools: List[RemoteTool] = []
        for name, connection in self._connections.items():
            try:
                discovered = await connection.discover()
            except TransportError as e:
                logger.error("Failed to list tools from MCP server %s: %s", name, e)
                continue
            logger.info("Discovered %d tools from %s", len(discovered), name)
            tools.extend(discovered)
        self._tools = tools
        return list(tools)

    def get_tools(self) -> List[RemoteTool]:
        return list(self._tools)

    async def call_tool(self, server_name: str, tool_name: str, args: Any) -> ToolResult:
        """Invoke ``tool_name`` on ``server_name`` directly.

        Raises:
            TransportError: If no such server is connected.
        """
        connection = self._connections.get(server_name)
        if connection is None:
            raise TransportError(f"MCP server '{server_name}' not found")
        return await connection.invoke(tool_name, args)

    def list_servers(self) -> List[str]:
        return list(self._connections)

    def has_server(self, server_name: str) -> bool:
        return server_name in self._connections

    async def shutdown(self) -> None:
        """Close every connection and forget the discovered tools."""
        logger.info("Shutting down MCP client manager")
        for name, connection in self._connections.items():
            try:
                await connection.close()
            except (TransportError, OSError) as e:
                logger.error("Error while closing MCP server %s: %s", name, e)
        self._connections.clear()
        self._tools = []
        logger.info("MCP client manager shutdown complete")

    async def __aenter__(self) -> "MCPClientManager":
        await self.initialize()
        return self

    async def __aexit__(
        self, exc_type: Optional[Type[BaseException]], exc_val: Optional[BaseException], exc_tb: Optional[TracebackType]
    ) -> None:
        await self.shutdown()
