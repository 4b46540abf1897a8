from typing import Optional

from google.genai import types
from google.genai.client import AsyncClient
from google.genai.types import GenerateContentResponse

from ...llm_core import ModelGateway, get_logger

logger = get_logger(__name__)

# -1 lets the model pick its own thinking budget.
AUTOMATIC_THINKING_BUDGET = -1


class GeminiGateway(ModelGateway):
    """
    ModelGateway backed by Google's Gemini models.
    Each query is a single generate_content call on the async client.
    """

    def __init__(
        self,
        aclient: AsyncClient,
        model_name: str,
        sys_instruction: Optional[str] = None,
        temp: float = 1.0,
        max_tokens: int = 3000,
        max_retries: int = 3,
        base_retry_delay: float = 1.0,
    ):
        """
        Initializes the Gemini gateway.

        Args:
            aclient: The initialized Google GenAI async client (``Client(...).aio``).
            model_name: The identifier for the Gemini model to use (e.g., 'gemini-2.5-flash').
            sys_instruction: An optional system-level instruction or persona.
            temp: The temperature for text generation, controlling randomness.
            max_tokens: The maximum number of tokens to generate in the response.
            max_retries: Retries for failed API calls before the error propagates.
            base_retry_delay: Initial backoff delay in seconds, doubled after each retry.
        """
        super().__init__(max_retries=max_retries, base_retry_delay=base_retry_delay)
        self.client: AsyncClient = aclient
        self.model: str = model_name
        self.sys_instruction = sys_instruction
        self.temperature = temp
        self.max_tokens = max_tokens
        logger.info(f"Initialized GeminiGateway with model='{model_name}', temp={temp}, max_tokens={max_tokens}")

    def _build_config(self, enable_thinking: bool) -> types.GenerateContentConfig:
        thinking_config = types.ThinkingConfig(thinking_budget=AUTOMATIC_THINKING_BUDGET) if enable_thinking else None
        return types.GenerateContentConfig(
            system_instruction=self.sys_instruction,
            temperature=self.temperature,
            max_output_tokens=self.max_tokens,
            thinking_config=thinking_config,
        )

    async def _query_impl(self, prompt: str, enable_thinking: bool) -> str:
        logger.debug(f"Querying Gemini (model={self.model}, thinking={enable_thinking}): {prompt[:50]}...")

        response: GenerateContentResponse = await self.client.models.generate_content(
            model=self.model,
            contents=prompt,
            config=self._build_config(enable_thinking),
        )
        return self._extract_text(response)

    @staticmethod
    def _extract_text(response: GenerateContentResponse) -> str:
        """Join the answer parts of the first candidate, skipping thought summaries."""
        if not response.candidates:
            return ""
        content = response.candidates[0].content
        if content is None or not content.parts:
            return ""
        return "".join(part.text for part in content.parts if part.text and not part.thought)
