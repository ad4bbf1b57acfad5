"""Shared Autoflow configuration utilities.

Centralises reading of ~/.autoflow/configuration.json so that the CLI and
embedding applications share one implementation. ``AUTOFLOW_CONFIG``
points at an alternative file.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from autoflow.graph.executor import DEFAULT_MAX_EXECUTIONS
from autoflow.graph.node import DEFAULT_MODEL
from autoflow.llm.litellm import DEFAULT_MAX_TOKENS

# ---------------------------------------------------------------------------
# Low-level config file access
# ---------------------------------------------------------------------------

AUTOFLOW_CONFIG_FILE = Path.home() / ".autoflow" / "configuration.json"
DEFAULT_API_KEY_ENV_VAR = "OPENAI_API_KEY"
DEFAULT_WEBHOOK_TIMEOUT = 10.0


def get_config_path() -> Path:
    """Location of the configuration file, honouring ``AUTOFLOW_CONFIG``."""
    override = os.environ.get("AUTOFLOW_CONFIG")
    return Path(override).expanduser() if override else AUTOFLOW_CONFIG_FILE


def get_autoflow_config() -> dict[str, Any]:
    """Load the configuration file. Missing or unreadable files mean defaults."""
    path = get_config_path()
    if not path.exists():
        return {}
    try:
        with open(path, encoding="utf-8-sig") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError):
        return {}
    return data if isinstance(data, dict) else {}


def _section(name: str) -> dict[str, Any]:
    section = get_autoflow_config().get(name, {})
    return section if isinstance(section, dict) else {}


# ---------------------------------------------------------------------------
# Derived helpers
# ---------------------------------------------------------------------------


def get_preferred_model() -> str:
    """Model used by the chat fallback when the assistant names none."""
    return _section("llm").get("model") or DEFAULT_MODEL


def get_max_tokens() -> int:
    """Return the configured max_tokens, falling back to DEFAULT_MAX_TOKENS."""
    return _section("llm").get("max_tokens", DEFAULT_MAX_TOKENS)


def get_api_key() -> str | None:
    """Return the API key from the environment variable named in configuration."""
    api_key_env_var = _section("llm").get("api_key_env_var") or DEFAULT_API_KEY_ENV_VAR
    return os.environ.get(api_key_env_var)


def get_api_base() -> str | None:
    return _section("llm").get("api_base")


def get_max_executions() -> int:
    return _section("execution").get("max_executions", DEFAULT_MAX_EXECUTIONS)


def get_webhook_url() -> str | None:
    return _section("webhook").get("url")


def get_webhook_timeout() -> float:
    return float(_section("webhook").get("timeout", DEFAULT_WEBHOOK_TIMEOUT))


def get_log_level() -> str:
    return _section("logging").get("level", "INFO")


def get_log_format() -> str:
    return _section("logging").get("format", "auto")


# ---------------------------------------------------------------------------
# RuntimeConfig
# ---------------------------------------------------------------------------


@dataclass
class RuntimeConfig:
    """Engine runtime configuration loaded from ~/.autoflow/configuration.json."""

    model: str = field(default_factory=get_preferred_model)
    max_tokens: int = field(default_factory=get_max_tokens)
    api_key: str | None = field(default_factory=get_api_key)
    api_base: str | None = field(default_factory=get_api_base)
    max_executions: int = field(default_factory=get_max_executions)
    webhook_url: str | None = field(default_factory=get_webhook_url)
    webhook_timeout: float = field(default_factory=get_webhook_timeout)
    log_level: str = field(default_factory=get_log_level)
    log_format: str = field(default_factory=get_log_format)
