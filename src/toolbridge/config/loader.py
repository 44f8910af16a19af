"""Configuration loading.

Sources, lowest priority first:

    defaults < ~/.config/toolbridge/config.toml < ./toolbridge.toml
             < $TOOLBRIDGE_CONFIG < explicit path < overrides

After validation, values left unset fall back to environment variables:
``model.api_key_env`` and ``model.base_url_env`` (default
``OPENAI_API_KEY`` / ``OPENAI_BASE_URL``) for the model endpoint, and
``host.locator_env`` (default ``MCP_SERVER_PATH``) for the tool host,
which finally falls back to ``host.default_locator``.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from toolbridge.core.errors import ConfigError

from .schema import ToolBridgeConfig

if TYPE_CHECKING:
    from collections.abc import Iterator

CONFIG_ENV = "TOOLBRIDGE_CONFIG"
CONFIG_NAME = "toolbridge.toml"


def _implicit_sources() -> Iterator[Path]:
    config_home = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    for candidate in (
        Path(config_home) / "toolbridge" / "config.toml",
        Path.cwd() / CONFIG_NAME,
    ):
        if candidate.is_file():
            yield candidate


def _required(path: str | Path, missing: str) -> Path:
    p = Path(path)
    if not p.is_file():
        raise ConfigError(missing)
    return p


def _config_sources(explicit: str | Path | None) -> list[Path]:
    sources = list(_implicit_sources())
    from_env = os.environ.get(CONFIG_ENV)
    if from_env:
        sources.append(
            _required(from_env, f"{CONFIG_ENV} points to non-existent file: {from_env}")
        )
    if explicit is not None:
        sources.append(_required(explicit, f"Config file not found: {explicit}"))
    return sources


def _parse(path: Path) -> dict[str, Any]:
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    try:
        return tomllib.loads(raw.decode())
    except (tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return ``base`` updated with ``override``; nested tables merge key by key."""
    result = dict(base)
    for key, value in override.items():
        current = result.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            value = _deep_merge(current, value)
        result[key] = value
    return result


def _env(name: str | None) -> str | None:
    if not name:
        return None
    return os.environ.get(name) or None


def _resolve_env(config: ToolBridgeConfig) -> None:
    """Fill unset values from their environment variables (in-place)."""
    model = config.model
    if model.api_key is None:
        model.api_key = _env(model.api_key_env)
    if model.base_url is None:
        model.base_url = _env(model.base_url_env)

    host = config.host
    if host.locator is None:
        host.locator = _env(host.locator_env) or host.default_locator


def load_config(
    path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> ToolBridgeConfig:
    """Merge every config source, validate, then apply env fallbacks.

    Raises:
        ConfigError: A named file is missing, a file is not valid TOML,
            or the merged values fail validation.
    """
    merged: dict[str, Any] = {}
    for source in _config_sources(path):
        merged = _deep_merge(merged, _parse(source))
    if overrides:
        merged = _deep_merge(merged, overrides)

    try:
        config = ToolBridgeConfig.model_validate(merged)
    except ValidationError as e:
        raise ConfigError(f"Configuration validation failed: {e}") from e

    _resolve_env(config)
    return config
