from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI
from openai.types.chat import ChatCompletion

from ...llm_core import ModelGateway, get_logger

logger = get_logger(__name__)

THINKING_INSTRUCTION = (
    "Think through the problem before answering. Write each step of your reasoning "
    "as a [Thinking: <step>] marker, then give your response."
)


class OpenAIGateway(ModelGateway):
    """
    ModelGateway backed by OpenAI chat completions.
    Each query is a single-turn exchange: the agentic loop renders the whole
    conversation into the prompt itself.
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        model_name: str,
        sys_instruction: Optional[str] = None,
        temp: float = 1.0,
        max_tokens: int = 3000,
        max_retries: int = 3,
        base_retry_delay: float = 1.0,
    ):
        """
        Initializes the OpenAI gateway.

        Args:
            client: The initialized AsyncOpenAI client.
            model_name: The identifier for the OpenAI model to use (e.g., 'gpt-4o').
            sys_instruction: An optional system-level instruction or persona.
            temp: The temperature for text generation, controlling randomness.
            max_tokens: The maximum number of tokens to generate in the response.
            max_retries: Retries for failed API calls before the error propagates.
            base_retry_delay: Initial backoff delay in seconds, doubled after each retry.
        """
        super().__init__(max_retries=max_retries, base_retry_delay=base_retry_delay)
        self.client: AsyncOpenAI = client
        self.model: str = model_name
        self.sys_instruction = sys_instruction
        self.temperature = temp
        self.max_tokens = max_tokens

    def _build_messages(self, prompt: str, enable_thinking: bool) -> List[Dict[str, Any]]:
        system_parts = [self.sys_instruction] if self.sys_instruction else []
        if enable_thinking:
            system_parts.append(THINKING_INSTRUCTION)

        messages: List[Dict[str, Any]] = []
        if system_parts:
            messages.append({"role": "system", "content": "\n\n".join(system_parts)})
        messages.append({"role": "user", "content": prompt})
        return messages

    async def _query_impl(self, prompt: str, enable_thinking: bool) -> str:
        logger.debug(f"Querying OpenAI (model={self.model}, thinking={enable_thinking}): {prompt[:50]}...")

        response: ChatCompletion = await self.client.chat.completions.create(
            model=self.model,
            messages=self._build_messages(prompt, enable_thinking),  # type: ignore[arg-type]
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )

        if not response.choices:
            logger.warning("OpenAI response has no choices.")
            return ""
        return response.choices[0].message.content or ""
