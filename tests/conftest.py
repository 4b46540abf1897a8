import os
from typing import Any, Dict, Iterator, List, Sequence, Tuple

import pytest
from dotenv import find_dotenv, load_dotenv

from agentic_engine.llm_core import ModelGateway, RunContext, ToolRegistry
from agentic_engine.llm_core.security import url_validator

# Gateway tests use mocked clients; a .env is only picked up for local experiments.
env_file = find_dotenv(usecwd=True)
if env_file:
    load_dotenv(env_file)

PUBLIC_IP = "93.184.216.34"


class ScriptedGateway(ModelGateway):
    """Returns canned responses in order and records every prompt it receives."""

    def __init__(self, responses: Sequence[Any]):
        super().__init__(max_retries=0, base_retry_delay=0)
        self.responses = list(responses)
        self.calls: List[Tuple[str, bool]] = []

    async def _query_impl(self, prompt: str, enable_thinking: bool) -> str:
        self.calls.append((prompt, enable_thinking))
        if not self.responses:
            raise AssertionError("ScriptedGateway ran out of responses")
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response

    @property
    def prompts(self) -> List[str]:
        return [prompt for prompt, _ in self.calls]


@pytest.fixture
def scripted_gateway():
    def factory(*responses: Any) -> ScriptedGateway:
        return ScriptedGateway(responses)

    return factory


@pytest.fixture
def registry() -> ToolRegistry:
    return ToolRegistry(retry_base_delay=0)


@pytest.fixture
def run_context() -> RunContext:
    return RunContext(session_id="session_test")


@pytest.fixture
def fake_dns(monkeypatch: pytest.MonkeyPatch) -> Dict[str, List[str]]:
    """Replace DNS resolution with a lookup table. Unknown hosts resolve to a public address."""
    table: Dict[str, List[str]] = {}

    async def resolve(host: str) -> List[str]:
        if host in table:
            answer = table[host]
            if not answer:
                raise OSError(f"Name or service not known: {host}")
            return answer
        return [PUBLIC_IP]

    monkeypatch.setattr(url_validator, "_resolve", resolve)
    return table


@pytest.fixture
def clean_agentic_env() -> Iterator[None]:
    """Hide AGENTIC_* variables and drop any that a test loads from a .env file."""
    saved = {key: value for key, value in os.environ.items() if key.startswith("AGENTIC_")}
    for key in saved:
        del os.environ[key]
    yield
    for key in [k for k in os.environ if k.startswith("AGENTIC_")]:
        del os.environ[key]
    os.environ.update(saved)
