"""HTTP transport: stateless JSON POSTs to ``<url>/tools/list`` and ``<url>/tools/call``."""

from types import TracebackType
from typing import Any, Dict, List, Optional, Type

import httpx

from ..llm_core.exceptions import TransportError
from ..llm_core.logger import get_logger
from ..llm_core.tools.models import ToolResult
from .remote_tool import RemoteTool, build_remote_tools, render_call_result

logger = get_logger(__name__)

__all__ = ["HttpConnection"]


class HttpConnection:
    """Reaches an MCP server over plain HTTP, one request per operation."""

    def __init__(
        self,
        name: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            name: Server name, used in tool names and logs.
            url: Base URL, e.g. ``http://localhost:3000/mcp``.
            headers: Static headers sent with every request.
            timeout: Optional request timeout in seconds. None waits indefinitely.
            transport: Optional httpx transport, used by tests to stub the server.
        """
        self.name = name
        self.url = url.rstrip("/")
        self.headers = {"Content-Type": "application/json", **(headers or {})}
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def connect(self) -> None:
        """Verify the server is reachable by listing its tools once.

        Raises:
            TransportError: If the server cannot be reached or answers with an error.
        """
        logger.info("Connecting to HTTP MCP server: %s at %s", self.name, self.url)
        try:
            await self._post("/tools/list", {})
        except TransportError as e:
            raise TransportError(f"Failed to connect to HTTP MCP server {self.name}: {e}") from e
        logger.info("Connected to HTTP MCP server: %s", self.name)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        logger.info("Closed HTTP MCP connection: %s", self.name)

    async def __aenter__(self) -> "HttpConnection":
        await self.connect()
        return self

    async def __aexit__(
        self, exc_type: Optional[Type[BaseException]], exc_val: Optional[BaseException], exc_tb: Optional[TracebackType]
    ) -> None:
        await self.close()

    async def discover(self) -> List[RemoteTool]:
        """List the server's tools.

        Raises:
            TransportError: If the request fails or the listing is invalid.
        """
        result = await self._post("/tools/list", {})
        return build_remote_tools(self, result)

    async def invoke(self, tool_name: str, args: Any) -> ToolResult:
        """Call one tool. Transport and server failures come back as error results."""
        try:
            result = await self._post("/tools/call", {"name": tool_name, "arguments": args})
        except TransportError as e:
            logger.error("Tool '%s' on %s failed: %s", tool_name, self.name, e)
            return ToolResult.error(f"Tool execution failed: {e}")
        return render_call_result(result, self.name)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers=self.headers, timeout=httpx.Timeout(self.timeout), transport=self._transport
            )
        return self._client

    async def _post(self, path: str, body: Dict[str, Any]) -> Any:
        url = f"{self.url}{path}"
        try:
            response = await self._get_client().post(url, json=body)
        except httpx.HTTPError as e:
            raise TransportError(f"HTTP request failed: {e}") from e

        if not response.is_success:
            raise TransportError(f"HTTP {response.status_code}: {response.text}")

        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"Invalid JSON from {url}: {e}") from e
