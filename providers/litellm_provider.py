"""LiteLLM-backed provider. Default route for every drafting call."""

from typing import Optional

from config import settings

from .base import LLMProvider, LLMResponse


# LiteLLM model strings: provider/model-name (OpenAI can omit prefix)
MODEL_ALIASES = {
    "gemini": "gemini/gemini-2.5-flash",
    "gemini-flash": "gemini/gemini-2.5-flash",
    "gemini-pro": "gemini/gemini-2.5-pro",
    "gpt-4o": "gpt-4o",
    "gpt-4o-mini": "gpt-4o-mini",
    "claude-sonnet": "anthropic/claude-sonnet-4-20250514",
    "claude-haiku": "anthropic/claude-3-5-haiku-20241022",
}


def to_litellm_model(model: Optional[str], default: str) -> str:
    """Resolve a short alias to a LiteLLM model string; unknown names pass through."""
    if not model:
        return default
    return MODEL_ALIASES.get(model.lower(), model)


def api_key_for(model: str) -> str:
    """Configured DEVSTREAK_*_API_KEY for a LiteLLM model string, or "".

    An empty result leaves litellm to its own provider env vars.
    """
    prefix, _, _ = model.partition("/")
    if prefix == "gemini":
        return settings.gemini_api_key
    if prefix == "anthropic" or model.startswith("claude"):
        return settings.anthropic_api_key
    if prefix == "openai" or "/" not in model:
        return settings.openai_api_key
    return ""


class LiteLLMProvider(LLMProvider):
    """Single provider that delegates to litellm.completion()."""

    def __init__(self, default_model: str, metadata: Optional[dict] = None):
        """Initialize with the LiteLLM model string to use by default.

        Args:
            default_model: LiteLLM model string (e.g. gemini/gemini-2.5-flash, gpt-4o-mini).
            metadata: Optional dict passed to litellm (e.g. which operation is drafting).
        """
        self._default_model = to_litellm_model(default_model, default_model)
        self._metadata = metadata or {}

    @property
    def name(self) -> str:
        return "litellm"

    @property
    def default_model(self) -> str:
        return self._default_model

    def set_metadata(self, metadata: dict) -> None:
        self._metadata.update(metadata)

    def complete(
        self,
        system_prompt: str,
        user_message: str,
        model: Optional[str] = None,
        max_tokens: int = 4096,
        json_output: bool = False,
    ) -> LLMResponse:
        import litellm

        resolved_model = to_litellm_model(model, self._default_model)
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_message},
        ]
        kwargs = {
            "model": resolved_model,
            "messages": messages,
            "max_tokens": max_tokens,
            "metadata": {**self._metadata},
        }
        if json_output:
            kwargs["response_format"] = {"type": "json_object"}
        api_key = api_key_for(resolved_model)
        if api_key:
            kwargs["api_key"] = api_key
        response = litellm.completion(**kwargs)

        content = response.choices[0].message.content or ""
        usage = getattr(response, "usage", None)
        input_tokens = getattr(usage, "prompt_tokens", 0) or 0
        output_tokens = getattr(usage, "completion_tokens", 0) or 0
        hidden = getattr(response, "_hidden_params", None) or {}
        cost = float(hidden.get("response_cost", 0) or 0)
        model_id = getattr(response, "model", None) or resolved_model

        return LLMResponse(
            content=content,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            model=model_id,
            provider=self.name,
            cost=cost,
        )

    def is_available(self) -> bool:
        """LiteLLM reads API keys from env; we consider it available if the model is set."""
        return bool(self._default_model)
