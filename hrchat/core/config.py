"""
Configuration management for HR Chat.

Loads settings from a YAML config file, then applies environment overrides
(so deployments can swap the LLM endpoint, database or Redis without editing
the file).
"""
from dataclasses import dataclass
from pathlib import Path
import os
from typing import Any, Dict, Optional
import yaml

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()


RESOLVER_LLM = "llm"
RESOLVER_PATTERN = "pattern"


def _project_root() -> Path:
    """Return project root (parent of hrchat package)."""
    return Path(__file__).resolve().parent.parent.parent


DEFAULT_CONFIG_PATH = _project_root() / "config" / "default.yaml"


@dataclass
class HRChatConfig:
    """Configuration for the chat engine and its collaborators."""

    # Intent resolution strategy: "llm" (classifier) or "pattern" (regex rules)
    resolver: str = RESOLVER_LLM

    # OpenAI-compatible completion endpoint (Ollama by default)
    llm_api_url: str = "http://localhost:11434/v1"
    llm_model: str = "qwen2.5-coder:3b"
    llm_api_key: str = ""
    llm_timeout_seconds: float = 30.0
    llm_temperature: float = 0

    # Number of prior messages handed to the classifier
    context_window: int = 10

    database_url: str = "sqlite:///./hrchat.db"
    redis_url: str = "redis://localhost:6379/0"
    query_cache_ttl_seconds: int = 300     # 0 disables response caching

    notification_limit: int = 100
    log_level: str = "INFO"

    @classmethod
    def from_yaml(cls, config_path: Optional[Path] = None) -> "HRChatConfig":
        """Load configuration from YAML file (defaults if the file is missing)."""
        path = config_path or DEFAULT_CONFIG_PATH
        data: Dict[str, Any] = {}
        if path.exists():
            with open(path, 'r') as f:
                data = yaml.safe_load(f) or {}

        llm_config = data.get('llm', {})
        history_config = data.get('history', {})
        database_config = data.get('database', {})
        cache_config = data.get('cache', {})
        notifications_config = data.get('notifications', {})

        config = cls(
            resolver=data.get('resolver', RESOLVER_LLM),
            llm_api_url=llm_config.get('api_url', cls.llm_api_url),
            llm_model=llm_config.get('model', cls.llm_model),
            llm_api_key=llm_config.get('api_key', cls.llm_api_key),
            llm_timeout_seconds=float(llm_config.get('timeout_seconds', cls.llm_timeout_seconds)),
            llm_temperature=llm_config.get('temperature', cls.llm_temperature),
            context_window=history_config.get('context_window', cls.context_window),
            database_url=database_config.get('url', cls.database_url),
            redis_url=cache_config.get('redis_url', cls.redis_url),
            query_cache_ttl_seconds=cache_config.get('query_ttl_seconds', cls.query_cache_ttl_seconds),
            notification_limit=notifications_config.get('limit', cls.notification_limit),
            log_level=data.get('log_level', cls.log_level),
        )
        config.apply_env()
        return config

    def apply_env(self) -> None:
        """Override file values with environment variables when they are set."""
        self.resolver = os.getenv("HRCHAT_RESOLVER", self.resolver)
        self.llm_api_url = os.getenv("LLM_API_URL", self.llm_api_url)
        self.llm_model = os.getenv("LLM_MODEL", self.llm_model)
        self.llm_api_key = os.getenv("LLM_API_KEY", self.llm_api_key)
        self.llm_timeout_seconds = float(os.getenv("LLM_TIMEOUT_SECONDS", self.llm_timeout_seconds))
        self.database_url = os.getenv("DATABASE_URL", self.database_url)
        self.redis_url = os.getenv("REDIS_URL", self.redis_url)
        self.query_cache_ttl_seconds = int(os.getenv("CACHE_TTL_CHAT_QUERY", self.query_cache_ttl_seconds))
        self.log_level = os.getenv("LOG_LEVEL", self.log_level)


# Global config instance
_config: Optional[HRChatConfig] = None


def get_config() -> HRChatConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = HRChatConfig.from_yaml()
    return _config
