"""Factory for creating LLM providers."""

from typing import Dict, Optional, Type

from config import settings

from .base import LLMProvider
from .gemini_provider import GeminiProvider
from .litellm_provider import LiteLLMProvider


# Registry of available providers
PROVIDERS: Dict[str, Type[LLMProvider]] = {
    "litellm": LiteLLMProvider,
    "gemini": GeminiProvider,
    "google": GeminiProvider,
}


def get_provider(
    provider_name: Optional[str] = None,
    model: Optional[str] = None,
) -> LLMProvider:
    """Get an LLM provider instance.

    Args:
        provider_name: Explicit provider name (litellm, gemini). Falls back to
            settings.ai_provider.
        model: Default model for the provider. Falls back to settings.ai_model.

    Returns:
        LLMProvider instance

    Examples:
        get_provider()                      # LiteLLM with settings.ai_model
        get_provider("gemini")              # Gemini SDK directly
        get_provider(model="gpt-4o-mini")   # LiteLLM routed to OpenAI
    """
    provider_name = provider_name or settings.ai_provider
    if provider_name:
        provider_key = provider_name.lower()
        if provider_key not in PROVIDERS:
            raise ValueError(
                f"Unknown provider: {provider_name}. "
                f"Available: {list(PROVIDERS.keys())}"
            )
        if PROVIDERS[provider_key] is GeminiProvider:
            if model and not GeminiProvider.supports(model):
                raise ValueError(
                    f"Model {model} cannot run on the gemini provider; "
                    f"use a Gemini model or the litellm provider"
                )
            return GeminiProvider(default_model=model)

    return LiteLLMProvider(default_model=model or settings.ai_model)


def list_providers() -> Dict[str, bool]:
    """List all providers and their availability.

    Returns:
        Dict mapping provider name to availability status
    """
    result = {}
    for name in PROVIDERS:
        # Skip aliases
        if name == "google":
            continue
        try:
            result[name] = get_provider(name).is_available()
        except Exception:
            result[name] = False
    return result
