"""Tests for configuration loading."""

import json

from autoflow.config import (
    RuntimeConfig,
    get_api_key,
    get_autoflow_config,
    get_config_path,
    get_max_executions,
)


def _write_config(tmp_path, monkeypatch, data):
    path = tmp_path / "configuration.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    monkeypatch.setenv("AUTOFLOW_CONFIG", str(path))
    return path


def test_defaults_without_config_file():
    config = RuntimeConfig()

    assert get_autoflow_config() == {}
    assert config.model == "gpt-4o"
    assert config.max_tokens == 1000
    assert config.api_key is None
    assert config.api_base is None
    assert config.max_executions == 50
    assert config.webhook_url is None
    assert config.webhook_timeout == 10.0
    assert config.log_level == "INFO"
    assert config.log_format == "auto"


def test_values_from_config_file(tmp_path, monkeypatch):
    _write_config(
        tmp_path,
        monkeypatch,
        {
            "llm": {
                "model": "claude-3-5-haiku-latest",
                "api_key_env_var": "MY_LLM_KEY",
                "api_base": "https://proxy.local",
                "max_tokens": 256,
            },
            "execution": {"max_executions": 10},
            "webhook": {"url": "https://hooks.example.com", "timeout": 3},
            "logging": {"level": "DEBUG", "format": "json"},
        },
    )
    monkeypatch.setenv("MY_LLM_KEY", "sk-custom")

    config = RuntimeConfig()

    assert config.model == "claude-3-5-haiku-latest"
    assert config.api_key == "sk-custom"
    assert config.api_base == "https://proxy.local"
    assert config.max_tokens == 256
    assert config.max_executions == 10
    assert config.webhook_url == "https://hooks.example.com"
    assert config.webhook_timeout == 3.0
    assert config.log_level == "DEBUG"
    assert config.log_format == "json"


def test_api_key_defaults_to_openai_variable(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-openai")
    assert get_api_key() == "sk-openai"


def test_invalid_json_is_ignored(tmp_path, monkeypatch):
    path = tmp_path / "configuration.json"
    path.write_text("{not json", encoding="utf-8")
    monkeypatch.setenv("AUTOFLOW_CONFIG", str(path))

    assert get_autoflow_config() == {}
    assert get_max_executions() == 50


def test_non_object_sections_are_ignored(tmp_path, monkeypatch):
    _write_config(tmp_path, monkeypatch, {"execution": 5})
    assert get_max_executions() == 50


def test_config_path_override(tmp_path, monkeypatch):
    monkeypatch.setenv("AUTOFLOW_CONFIG", str(tmp_path / "x.json"))
    assert get_config_path() == tmp_path / "x.json"

    monkeypatch.delenv("AUTOFLOW_CONFIG")
    assert get_config_path().parts[-2:] == (".autoflow", "configuration.json")
