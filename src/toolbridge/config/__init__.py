"""Configuration loading and validation."""

from toolbridge.config.loader import load_config
from toolbridge.config.schema import (
    HostConfig,
    LoggingConfig,
    ModelConfig,
    OrchestratorConfig,
    ToolBridgeConfig,
)

__all__ = [
    "HostConfig",
    "LoggingConfig",
    "ModelConfig",
    "OrchestratorConfig",
    "ToolBridgeConfig",
    "load_config",
]
