from trip_planner.config import Settings
from trip_planner.errors import ConfigurationError
from trip_planner.gateway.base import ModelGateway, extract_text
from trip_planner.gateway.langchain_gateway import LangChainGateway
from trip_planner.gateway.ollama import OllamaGateway


def build_gateway(settings: Settings) -> ModelGateway:
    """Create the gateway selected by `settings.model_provider`."""
    retry_options = {
        "timeout": settings.model_timeout_seconds,
        "max_attempts": settings.model_max_attempts,
        "initial_delay": settings.model_initial_delay,
    }
    if settings.model_provider == "langchain":
        return LangChainGateway(settings.model_name, temperature=settings.model_temperature, **retry_options)
    if settings.model_provider == "ollama":
        return OllamaGateway(
            settings.ollama_url,
            settings.ollama_model,
            temperature=settings.model_temperature,
            **retry_options,
        )
    raise ConfigurationError(f"Unknown model provider: {settings.model_provider}")


__all__ = ["ModelGateway", "LangChainGateway", "OllamaGateway", "build_gateway", "extract_text"]
