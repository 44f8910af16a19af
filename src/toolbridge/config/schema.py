"""Pydantic models for toolbridge configuration."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class ModelConfig(BaseModel):
    """Language-model endpoint used by the orchestrator."""

    provider: Literal["openai", "anthropic"] = "openai"
    model: str = "qwen-plus"
    api_key: str | None = None
    api_key_env: str | None = "OPENAI_API_KEY"
    base_url: str | None = None
    base_url_env: str | None = "OPENAI_BASE_URL"
    temperature: float | None = None
    max_tokens: int = 4096
    timeout: float | None = 120.0
    system_prompt: str = ""


class HostConfig(BaseModel):
    """Tool-host process settings."""

    locator: str | None = None
    locator_env: str | None = "MCP_SERVER_PATH"
    default_locator: str = "./dist/server/index.js"
    handshake_timeout: float = Field(default=30.0, gt=0)
    call_timeout: float | None = Field(default=None, gt=0)
    client_name: str = "toolbridge"
    client_version: str = "0.1.0"
    env: dict[str, str] = Field(default_factory=dict)


class OrchestratorConfig(BaseModel):
    """Query state-machine settings."""

    max_rounds: int = Field(default=1, ge=1)
    tool_failure_policy: Literal["abort", "degrade"] = "abort"
    validate_arguments: bool = True


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    file: str = ""


class ToolBridgeConfig(BaseModel):
    """Top-level configuration for toolbridge."""

    model: ModelConfig = Field(default_factory=ModelConfig)
    host: HostConfig = Field(default_factory=HostConfig)
    orchestrator: OrchestratorConfig = Field(default_factory=OrchestratorConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
