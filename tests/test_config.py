"""
Tests for configuration loading (YAML file + environment overrides).
"""

import pytest

from hrchat.core.config import DEFAULT_CONFIG_PATH, HRChatConfig

ENV_KEYS = [
    "HRCHAT_RESOLVER", "LLM_API_URL", "LLM_MODEL", "LLM_API_KEY", "LLM_TIMEOUT_SECONDS",
    "DATABASE_URL", "REDIS_URL", "CACHE_TTL_CHAT_QUERY", "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_shipped_defaults():
    assert DEFAULT_CONFIG_PATH.exists()
    config = HRChatConfig.from_yaml()
    assert config.resolver == "llm"
    assert config.llm_model == "qwen2.5-coder:3b"
    assert config.llm_temperature == 0
    assert config.context_window == 10
    assert config.notification_limit == 100


def test_yaml_values(tmp_path):
    path = tmp_path / "hrchat.yaml"
    path.write_text(
        "resolver: pattern\n"
        "llm:\n"
        "  model: llama3\n"
        "  timeout_seconds: 12\n"
        "history:\n"
        "  context_window: 6\n"
        "cache:\n"
        "  query_ttl_seconds: 0\n"
    )
    config = HRChatConfig.from_yaml(path)
    assert config.resolver == "pattern"
    assert config.llm_model == "llama3"
    assert config.llm_timeout_seconds == 12.0
    assert config.context_window == 6
    assert config.query_cache_ttl_seconds == 0
    # Unset keys keep their defaults
    assert config.redis_url == "redis://localhost:6379/0"


def test_missing_file_uses_defaults(tmp_path):
    config = HRChatConfig.from_yaml(tmp_path / "absent.yaml")
    assert config == HRChatConfig()


def test_environment_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("HRCHAT_RESOLVER", "pattern")
    monkeypatch.setenv("LLM_API_URL", "http://gpu-box:8000/v1")
    monkeypatch.setenv("LLM_TIMEOUT_SECONDS", "3.5")
    monkeypatch.setenv("DATABASE_URL", "postgresql://hr@db/hr")
    monkeypatch.setenv("CACHE_TTL_CHAT_QUERY", "60")

    config = HRChatConfig.from_yaml(tmp_path / "absent.yaml")
    assert config.resolver == "pattern"
    assert config.llm_api_url == "http://gpu-box:8000/v1"
    assert config.llm_timeout_seconds == 3.5
    assert config.database_url == "postgresql://hr@db/hr"
    assert config.query_cache_ttl_seconds == 60
