import pytest
from unittest.mock import MagicMock, AsyncMock
from openai import AsyncOpenAI
from openai.types.chat import ChatCompletion, ChatCompletionMessage
from openai.types.chat.chat_completion import Choice
from typing import Any, Optional

from agentic_engine.llm_impl.openai_api.core import THINKING_INSTRUCTION, OpenAIGateway


@pytest.fixture
def mock_openai_client() -> Any:
    client = MagicMock(spec=AsyncOpenAI)
    client.chat = MagicMock()
    client.chat.completions = MagicMock()
    client.chat.completions.create = AsyncMock()
    return client


def completion(content: Optional[str]) -> Any:
    mock_message = MagicMock(spec=ChatCompletionMessage)
    mock_message.content = content

    mock_choice = MagicMock(spec=Choice)
    mock_choice.message = mock_message
    mock_choice.finish_reason = "stop"

    mock_response = MagicMock(spec=ChatCompletion)
    mock_response.choices = [mock_choice]
    return mock_response


@pytest.mark.asyncio
async def test_openai_gateway_initialization(mock_openai_client: Any) -> None:
    gateway = OpenAIGateway(client=mock_openai_client, model_name="gpt-4", sys_instruction="You are a helper.")
    assert gateway.model == "gpt-4"
    assert gateway.client == mock_openai_client
    assert gateway.sys_instruction == "You are a helper."


@pytest.mark.asyncio
async def test_query_sends_single_turn(mock_openai_client: Any) -> None:
    mock_openai_client.chat.completions.create.return_value = completion("Hello world")
    gateway = OpenAIGateway(
        client=mock_openai_client, model_name="gpt-4", sys_instruction="You are a helper.", temp=0.2, max_tokens=100
    )

    response = await gateway.query("Hello")

    assert response == "Hello world"
    call_args = mock_openai_client.chat.completions.create.call_args
    assert call_args.kwargs["model"] == "gpt-4"
    assert call_args.kwargs["temperature"] == 0.2
    assert call_args.kwargs["max_tokens"] == 100
    assert call_args.kwargs["messages"] == [
        {"role": "system", "content": "You are a helper."},
        {"role": "user", "content": "Hello"},
    ]


@pytest.mark.asyncio
async def test_thinking_adds_instruction(mock_openai_client: Any) -> None:
    mock_openai_client.chat.completions.create.return_value = completion("[Thinking: x] done")
    gateway = OpenAIGateway(client=mock_openai_client, model_name="gpt-4")

    await gateway.query("Analyze this", enable_thinking=True)

    messages = mock_openai_client.chat.completions.create.call_args.kwargs["messages"]
    assert messages[0] == {"role": "system", "content": THINKING_INSTRUCTION}
    assert messages[1] == {"role": "user", "content": "Analyze this"}


def test_build_messages_combines_system_parts(mock_openai_client: Any) -> None:
    gateway = OpenAIGateway(client=mock_openai_client, model_name="gpt-4", sys_instruction="Be brief.")

    assert gateway._build_messages("hi", False) == [
        {"role": "system", "content": "Be brief."},
        {"role": "user", "content": "hi"},
    ]
    assert gateway._build_messages("hi", True)[0]["content"] == f"Be brief.\n\n{THINKING_INSTRUCTION}"


@pytest.mark.asyncio
async def test_missing_content_becomes_empty_string(mock_openai_client: Any) -> None:
    gateway = OpenAIGateway(client=mock_openai_client, model_name="gpt-4")

    mock_openai_client.chat.completions.create.return_value = completion(None)
    assert await gateway.query("hi") == ""

    empty = MagicMock(spec=ChatCompletion)
    empty.choices = []
    mock_openai_client.chat.completions.create.return_value = empty
    assert await gateway.query("hi") == ""


@pytest.mark.asyncio
async def test_api_errors_propagate_after_retries(mock_openai_client: Any) -> None:
    mock_openai_client.chat.completions.create.side_effect = RuntimeError("rate limited")
    gateway = OpenAIGateway(client=mock_openai_client, model_name="gpt-4", max_retries=1, base_retry_delay=0)

    with pytest.raises(RuntimeError, match="rate limited"):
        await gateway.query("hi")

    assert mock_openai_client.chat.completions.create.await_count == 2
