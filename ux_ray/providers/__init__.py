"""
Vision Provider Implementations

Pluggable vision model providers following a common interface.
Supports multiple backends: Google Gemini, Anthropic Claude, OpenAI GPT-4V,
Local LLMs.
"""

from ..errors import MissingCredentialsError
from ..models import Config
from .base import VisionProvider
from .gemini import GeminiProvider
from .anthropic import AnthropicProvider
from .openai import OpenAIProvider
from .local import LocalProvider

__all__ = [
    "VisionProvider",
    "GeminiProvider",
    "AnthropicProvider",
    "OpenAIProvider",
    "LocalProvider",
    "PROVIDER_NAMES",
    "get_provider",
]

PROVIDER_NAMES = ("gemini", "anthropic", "openai", "local")


def get_provider(provider_name: str, config: Config) -> VisionProvider:
    """
    Factory function to get configured vision provider.

    The API key is taken from `config` here, once; providers never read
    the environment themselves.

    Args:
        provider_name: One of "gemini", "anthropic", "openai", or "local"
        config: Configuration object with API keys

    Returns:
        Configured vision provider instance

    Raises:
        MissingCredentialsError: If the provider's API key is not configured
        ValueError: If provider name is unknown

    Example:
        provider = get_provider("gemini", config)
        text = await provider.generate(request)
    """
    if provider_name == "gemini":
        if not config.has_gemini():
            raise MissingCredentialsError(
                "Gemini API key not configured. "
                "Set GEMINI_API_KEY in .env file"
            )
        return GeminiProvider(api_key=config.gemini_api_key)

    elif provider_name == "anthropic":
        if not config.has_anthropic():
            raise MissingCredentialsError(
                "Anthropic API key not configured. "
                "Set ANTHROPIC_API_KEY in .env file"
            )
        return AnthropicProvider(api_key=config.anthropic_api_key)

    elif provider_name == "openai":
        if not config.has_openai():
            raise MissingCredentialsError(
                "OpenAI API key not configured. "
                "Set OPENAI_API_KEY in .env file"
            )
        return OpenAIProvider(api_key=config.openai_api_key)

    elif provider_name == "local":
        return LocalProvider(
            host=config.ollama_host,
            model=config.ollama_model
        )

    else:
        raise ValueError(
            f"Unknown provider: {provider_name}. "
            f"Choose from: {', '.join(PROVIDER_NAMES)}"
        )
