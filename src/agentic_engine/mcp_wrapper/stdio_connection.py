"""Subprocess transport: newline-delimited JSON-RPC over a child process's stdio."""

import asyncio
import itertools
import os
from types import TracebackType
from typing import Any, Dict, List, Optional, Sequence, Type

from mcp.types import JSONRPCError, JSONRPCMessage, JSONRPCRequest, JSONRPCResponse
from pydantic import ValidationError

from ..llm_core.exceptions import TransportError
from ..llm_core.logger import get_logger
from ..llm_core.tools.models import ToolResult
from .remote_tool import RemoteTool, build_remote_tools, render_call_result

logger = get_logger(__name__)

__all__ = ["StdioConnection"]

# Upper bound for a single response line.
STREAM_LIMIT = 16 * 1024 * 1024

# Seconds to wait for an exit code once stdout has closed.
EXIT_GRACE_PERIOD = 1.0


class StdioConnection:
    """Talks to a long-lived MCP server process over its stdin/stdout.

    Requests carry increasing integer ids and are matched to responses by id, so
    several calls may be in flight at once. Responses are framed on newlines
    regardless of how the pipe splits them. When the process exits, every
    pending call fails with a TransportError.
    """

    def __init__(
        self,
        name: str,
        command: str,
        args: Sequence[str] = (),
        env: Optional[Dict[str, str]] = None,
        request_timeout: Optional[float] = None,
    ):
        """
        Args:
            name: Server name, used in tool names and logs.
            command: Executable that starts the server.
            args: Arguments for the command.
            env: Extra environment variables for the child process.
            request_timeout: Optional per-request timeout in seconds. None waits indefinitely.
        """
        self.name = name
        self.command = command
        self.args = list(args)
        self.env = env
        self.request_timeout = request_timeout

        self._process: Optional[asyncio.subprocess.Process] = None
        self._reader_task: Optional[asyncio.Task] = None
        self._stderr_task: Optional[asyncio.Task] = None
        self._pending: Dict[int, asyncio.Future] = {}
        self._ids = itertools.count(1)
        self._write_lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        return (
            self._process is not None
            and self._process.returncode is None
            and self._reader_task is not None
            and not self._reader_task.done()
        )

    async def connect(self) -> None:
        """Spawn the server process and start reading its output.

        Raises:
            OSError: If the command cannot be started.
        """
        logger.info("Connecting to stdio MCP server: %s", self.name)
        env = {**os.environ, **self.env} if self.env else None
        self._process = await asyncio.create_subprocess_exec(
            self.command,
            *self.args,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=env,
            limit=STREAM_LIMIT,
        )
        self._reader_task = asyncio.create_task(self._read_stdout(), name=f"mcp-{self.name}-stdout")
        self._stderr_task = asyncio.create_task(self._read_stderr(), name=f"mcp-{self.name}-stderr")
        logger.info("Connected to stdio MCP server: %s (pid %s)", self.name, self._process.pid)

    async def close(self) -> None:
        """Terminate the server process and fail any call still waiting."""
        process = self._process
        if process is None:
            return

        if process.stdin is not None and not process.stdin.is_closing():
            process.stdin.close()
        if process.returncode is None:
            process.terminate()
            try:
                await asyncio.wait_for(process.wait(), timeout=5.0)
            except asyncio.TimeoutError:
                logger.warning("MCP server %s did not terminate, killing it", self.name)
                process.kill()
                await process.wait()

        for task in (self._reader_task, self._stderr_task):
            if task is not None and not task.done():
                task.cancel()
        await asyncio.gather(
            *(t for t in (self._reader_task, self._stderr_task) if t is not None), return_exceptions=True
        )

        self._fail_pending(TransportError(f"MCP server {self.name} connection closed"))
        self._process = None
        self._reader_task = None
        self._stderr_task = None
        logger.info("Closed stdio MCP connection: %s", self.name)

    async def __aenter__(self) -> "StdioConnection":
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
        result = await self._request("tools/list", {})
        return build_remote_tools(self, result)

    async def invoke(self, tool_name: str, args: Any) -> ToolResult:
        """Call one tool. Transport and server failures come back as error results."""
        try:
            result = await self._request("tools/call", {"name": tool_name, "arguments": args})
        except TransportError as e:
            logger.error("Tool '%s' on %s failed: %s", tool_name, self.name, e)
            return ToolResult.error(f"Tool execution failed: {e}")
        return render_call_result(result, self.name)

    async def _request(self, method: str, params: Dict[str, Any]) -> Any:
        if not self.is_connected:
            raise TransportError(f"MCP server {self.name} not connected")
        assert self._process is not None and self._process.stdin is not None

        request_id = next(self._ids)
        request = JSONRPCRequest(jsonrpc="2.0", id=request_id, method=method, params=params)
        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future

        line = request.model_dump_json(by_alias=True, exclude_none=True) + "\n"
        try:
            async with self._write_lock:
                self._process.stdin.write(line.encode("utf-8"))
                await self._process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as e:
            self._pending.pop(request_id, None)
            raise TransportError(f"MCP server {self.name} is not accepting input: {e}") from e

        logger.debug("Sent %s request %d to %s", method, request_id, self.name)
        try:
            if self.request_timeout is None:
                return await future
            return await asyncio.wait_for(future, timeout=self.request_timeout)
        except asyncio.TimeoutError:
            raise TransportError(f"MCP request timeout: {method}") from None
        finally:
            self._pending.pop(request_id, None)

    async def _read_stdout(self) -> None:
        assert self._process is not None and self._process.stdout is not None
        stdout = self._process.stdout
        try:
            while True:
                try:
                    raw = await stdout.readline()
                except ValueError as e:
                    logger.error("Oversized line from MCP server %s dropped: %s", self.name, e)
                    continue
                if not raw:
                    break
                line = raw.decode("utf-8", errors="replace").strip()
                if line:
                    self._handle_line(line)
        except Exception as e:
            logger.error("Reader for MCP server %s failed: %s", self.name, e)
            self._fail_pending(TransportError(f"MCP server {self.name} reader failed: {e}"))
            raise
        finally:
            returncode = self._process.returncode
            if returncode is None:
                try:
                    returncode = await asyncio.wait_for(self._process.wait(), timeout=EXIT_GRACE_PERIOD)
                except asyncio.TimeoutError:
                    pass
            reason = "closed its output" if returncode is None else f"exited with code {returncode}"
            logger.info("MCP server %s %s", self.name, reason)
            self._fail_pending(TransportError(f"MCP server {self.name} {reason}"))

    async def _read_stderr(self) -> None:
        assert self._process is not None and self._process.stderr is not None
        while True:
            raw = await self._process.stderr.readline()
            if not raw:
                return
            logger.warning("MCP server %s stderr: %s", self.name, raw.decode("utf-8", errors="replace").rstrip())

    def _handle_line(self, line: str) -> None:
        try:
            message = JSONRPCMessage.model_validate_json(line).root
        except ValidationError:
            logger.error("Failed to parse MCP response from %s: %s", self.name, line[:200])
            return
        except Exception as e:
            logger.error("Unexpected error decoding MCP message from %s: %s", self.name, e)
            return

        if not isinstance(message, (JSONRPCResponse, JSONRPCError)):
            logger.debug("Ignoring %s from %s", type(message).__name__, self.name)
            return

        future = self._pending.get(message.id)  # type: ignore[arg-type]
        if future is None or future.done():
            logger.debug("No pending request for response id %s from %s", message.id, self.name)
            return

        if isinstance(message, JSONRPCError):
            future.set_exception(TransportError(message.error.message or "MCP request failed"))
        else:
            future.set_result(message.result)

    def _fail_pending(self, error: TransportError) -> None:
        for future in self._pending.values():
            if not future.done():
                future.set_exception(error)
        self._pending.clear()
