import json
from pathlib import Path

import pytest

from agentic_engine.llm_core import AgentSettings, MCPServerConfig


def write_env(tmp_path: Path, *lines: str) -> str:
    path = tmp_path / ".env"
    path.write_text("\n".join(lines) + "\n")
    return str(path)


def test_defaults_without_environment(clean_agentic_env: None, tmp_path: Path) -> None:
    settings = AgentSettings.from_env(str(tmp_path / "missing.env"))

    assert settings == AgentSettings()
    assert settings.max_turns == 10
    assert settings.max_retries == 2
    assert settings.retry_base_delay == 1.0
    assert settings.enable_web_fetch
    assert settings.mcp_servers == []


def test_values_from_dotenv(clean_agentic_env: None, tmp_path: Path) -> None:
    servers = [
        {"name": "files", "transport": "stdio", "command": "npx", "args": ["-y", "server-files"]},
        {"name": "search", "transport": "http", "url": "https://search.internal/mcp"},
    ]
    path = write_env(
        tmp_path,
        "AGENTIC_MAX_TURNS=4",
        "AGENTIC_MAX_RETRIES=3",
        "AGENTIC_RETRY_BASE_DELAY=0.25",
        "AGENTIC_SYSTEM_PROMPT=You are terse.",
        "AGENTIC_ENABLE_WEB_FETCH=no",
        f"AGENTIC_MCP_SERVERS='{json.dumps(servers)}'",
    )

    settings = AgentSettings.from_env(path)

    assert settings.max_turns == 4
    assert settings.max_retries == 3
    assert settings.retry_base_delay == 0.25
    assert settings.system_prompt == "You are terse."
    assert not settings.enable_web_fetch
    assert settings.mcp_servers == [
        MCPServerConfig(name="files", transport="stdio", command="npx", args=["-y", "server-files"]),
        MCPServerConfig(name="search", transport="http", url="https://search.internal/mcp"),
    ]


def test_process_environment_wins_over_dotenv(
    clean_agentic_env: None, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("AGENTIC_MAX_TURNS", "7")
    path = write_env(tmp_path, "AGENTIC_MAX_TURNS=2")

    assert AgentSettings.from_env(path).max_turns == 7


@pytest.mark.parametrize("raw, expected", [("1", True), ("TRUE", True), ("on", True), ("0", False), ("off", False)])
def test_enable_web_fetch_flag(
    clean_agentic_env: None, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, raw: str, expected: bool
) -> None:
    monkeypatch.setenv("AGENTIC_ENABLE_WEB_FETCH", raw)

    assert AgentSettings.from_env(str(tmp_path / "missing.env")).enable_web_fetch is expected


def test_invalid_server_json(clean_agentic_env: None, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AGENTIC_MCP_SERVERS", "[{not json")

    with pytest.raises(ValueError, match="AGENTIC_MCP_SERVERS is not valid JSON"):
        AgentSettings.from_env(str(tmp_path / "missing.env"))


def test_invalid_values(clean_agentic_env: None, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AGENTIC_MAX_TURNS", "0")

    with pytest.raises(ValueError, match="Invalid agent settings"):
        AgentSettings.from_env(str(tmp_path / "missing.env"))


def test_server_missing_command(clean_agentic_env: None, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AGENTIC_MCP_SERVERS", '[{"name": "broken", "transport": "stdio"}]')

    with pytest.raises(ValueError, match="missing 'command'"):
        AgentSettings.from_env(str(tmp_path / "missing.env"))
