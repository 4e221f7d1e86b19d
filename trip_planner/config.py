"""
Runtime settings for the trip planner service.

Values come from environment variables (a local ``.env`` file is loaded
first) and are validated by pydantic.

Usage:
    from trip_planner.config import get_settings
    settings = get_settings()
    settings.max_tool_iterations
"""

import logging
import os
from functools import lru_cache
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from trip_planner.errors import ConfigurationError

logger = logging.getLogger(__name__)

# env var -> Settings field
ENV_FIELDS = {
    "MODEL_PROVIDER": "model_provider",
    "MODEL_NAME": "model_name",
    "MODEL_TEMPERATURE": "model_temperature",
    "OLLAMA_URL": "ollama_url",
    "OLLAMA_MODEL": "ollama_model",
    "MAX_TOOL_ITERATIONS": "max_tool_iterations",
    "CACHE_TTL_SECONDS": "cache_ttl_seconds",
    "CACHE_MAX_ENTRIES": "cache_max_entries",
    "CHAT_TIMEOUT_SECONDS": "chat_timeout_seconds",
    "MODEL_TIMEOUT_SECONDS": "model_timeout_seconds",
    "MODEL_MAX_ATTEMPTS": "model_max_attempts",
    "MODEL_INITIAL_DELAY": "model_initial_delay",
    "TOOL_MAX_ATTEMPTS": "tool_max_attempts",
    "TOOL_INITIAL_DELAY": "tool_initial_delay",
    "MAX_CONVERSATIONS": "max_conversations",
    "CONVERSATION_IDLE_SECONDS": "conversation_idle_seconds",
    "SERPAPI_KEY": "serpapi_key",
    "CORS_ORIGIN": "cors_origin",
    "LOG_LEVEL": "log_level",
}


class Settings(BaseModel):
    """Service configuration."""

    model_config = {"frozen": True, "protected_namespaces": ()}

    model_provider: Literal["langchain", "ollama"] = "langchain"
    model_name: str = "google_genai:gemini-2.5-flash"
    model_temperature: float = Field(0.7, ge=0.0, le=2.0)
    ollama_url: str = "http://localhost:11434"
    ollama_model: str = "gpt-oss:20b"

    max_tool_iterations: int = Field(5, ge=1, description="Tool rounds allowed per chat() call.")
    cache_ttl_seconds: float = Field(3600, gt=0)
    cache_max_entries: int = Field(1024, ge=1)
    chat_timeout_seconds: Optional[float] = Field(120, gt=0)
    model_timeout_seconds: Optional[float] = Field(60, gt=0)
    model_max_attempts: int = Field(3, ge=1)
    model_initial_delay: float = Field(1.0, ge=0)
    tool_max_attempts: int = Field(2, ge=1)
    tool_initial_delay: float = Field(0.5, ge=0)

    max_conversations: Optional[int] = Field(1000, ge=1)
    conversation_idle_seconds: Optional[float] = Field(86400, gt=0)

    serpapi_key: Optional[str] = None
    cors_origin: str = "http://localhost:8501"
    log_level: str = "INFO"


def load_settings(environ: Optional[dict[str, str]] = None) -> Settings:
    """Build settings from an environment mapping (``os.environ`` by default)."""
    if environ is None:
        load_dotenv()
        environ = dict(os.environ)

    values = {}
    for env_key, field_name in ENV_FIELDS.items():
        raw = environ.get(env_key, "").strip()
        if raw:
            values[field_name] = raw

    try:
        settings = Settings(**values)
    except ValidationError as e:
        raise ConfigurationError("Invalid configuration", details=str(e)) from e

    logger.debug("Settings loaded: provider=%s model=%s", settings.model_provider, settings.model_name)
    return settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings."""
    return load_settings()
