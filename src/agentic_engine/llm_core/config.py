"""Settings for assembling an agent: loop limits, built-in tools and remote tool servers."""

import json
import os
from typing import Dict, List, Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, model_validator

from .logger import get_logger

logger = get_logger(__name__)

ENV_PREFIX = "AGENTIC_"

_TRUE_VALUES = {"1", "true", "yes", "on"}


class MCPServerConfig(BaseModel):
    """Connection settings for one remote tool server."""

    name: str
    transport: Literal["stdio", "http"]

    # stdio
    command: Optional[str] = None
    args: List[str] = Field(default_factory=list)
    env: Optional[Dict[str, str]] = None

    # http
    url: Optional[str] = None
    headers: Dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_transport_fields(self) -> "MCPServerConfig":
        if self.transport == "stdio" and not self.command:
            raise ValueError(f"Stdio server '{self.name}' is missing 'command'")
        if self.transport == "http" and not self.url:
            raise ValueError(f"HTTP server '{self.name}' is missing 'url'")
        return self


class AgentSettings(BaseModel):
    """Values the bootstrap layer needs to build an AgenticLoop."""

    max_turns: int = Field(default=10, ge=1)
    max_retries: int = Field(default=2, ge=1)
    retry_base_delay: float = Field(default=1.0, ge=0)
    system_prompt: Optional[str] = None
    enable_web_fetch: bool = True
    mcp_servers: List[MCPServerConfig] = Field(default_factory=list)

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "AgentSettings":
        """Build settings from ``AGENTIC_*`` environment variables.

        A ``.env`` file is loaded first; variables already set in the process
        environment take precedence. Unset variables keep their defaults.

        Raises:
            ValueError: If a variable cannot be parsed.
        """
        load_dotenv(dotenv_path)

        values: Dict[str, object] = {}
        for field in ("max_turns", "max_retries", "retry_base_delay", "system_prompt"):
            raw = os.getenv(f"{ENV_PREFIX}{field.upper()}")
            if raw is not None and raw != "":
                values[field] = raw

        enable_web_fetch = os.getenv(f"{ENV_PREFIX}ENABLE_WEB_FETCH")
        if enable_web_fetch:
            values["enable_web_fetch"] = enable_web_fetch.strip().lower() in _TRUE_VALUES

        servers = os.getenv(f"{ENV_PREFIX}MCP_SERVERS")
        if servers:
            try:
                values["mcp_servers"] = json.loads(servers)
            except json.JSONDecodeError as e:
                raise ValueError(f"{ENV_PREFIX}MCP_SERVERS is not valid JSON: {e}") from e

        try:
            settings = cls.model_validate(values)
        except ValidationError as e:
            raise ValueError(f"Invalid agent settings: {e}") from e

        logger.debug("Loaded agent settings: %s", settings.model_dump(exclude={"system_prompt"}))
        return settings
