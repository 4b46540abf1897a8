"""Core abstractions for the collaborators the agentic loop consumes."""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Callable, Coroutine, List, Protocol, TypeVar, runtime_checkable

from ..logger import get_logger
from ..messages import Message

logger = get_logger(__name__)

T = TypeVar("T")


class ModelGateway(ABC):
    """Abstract text-generation gateway.

    The loop only ever sees ``query(prompt, enable_thinking)``. Implementations may
    retry transient failures; once retries are spent the last exception propagates
    unchanged to the caller of the loop.
    """

    def __init__(self, max_retries: int = 3, base_retry_delay: float = 1.0):
        self.max_retries = max_retries
        self.base_retry_delay = base_retry_delay

    async def _execute_with_retry(
        self,
        func: Callable[..., Coroutine[Any, Any, T]],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        """
        Executes a function with retry logic.

        Args:
            func: The asynchronous function to execute.
            *args: Positional arguments for the function.
            **kwargs: Keyword arguments for the function.

        Returns:
            The result of the function call.

        Raises:
            Exception: The last encountered exception if all retries fail.
        """

        delay = self.base_retry_delay
        for attempt in range(self.max_retries + 1):
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                if attempt == self.max_retries:
                    raise

                logger.warning(f"API Error (Retry: {attempt + 1}/{self.max_retries}): {e}. Waiting {delay}s...")
                await asyncio.sleep(delay)
                delay *= 2  # Exponential backoff

        raise AssertionError("unreachable")

    async def query(self, prompt: str, enable_thinking: bool = False) -> str:
        """
        Send one prompt and return the raw text of the reply.

        Args:
            prompt: The fully rendered prompt.
            enable_thinking: Ask the model for extended deliberation where supported.

        Returns:
            The model's raw text output.
        """
        return await self._execute_with_retry(self._query_impl, prompt, enable_thinking)

    @abstractmethod
    async def _query_impl(self, prompt: str, enable_thinking: bool) -> str:
        pass


@runtime_checkable
class ConversationStore(Protocol):
    """Read side of a session store. Persisting results is the caller's job."""

    def get_history(self, session_id: str) -> List[Message]:
        """Return the stored transcript of ``session_id`` (empty when unknown)."""
        ...
