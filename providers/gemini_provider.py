"""Google Gemini provider implementation."""

import os
from typing import Optional

from .base import LLMProvider, LLMResponse


class GeminiProvider(LLMProvider):
    """Provider for Google Gemini models, called through google-generativeai."""

    MODELS = {
        "gemini": "gemini-2.5-flash",
        "gemini-flash": "gemini-2.5-flash",
        "gemini-pro": "gemini-2.5-pro",
    }
    DEFAULT_MODEL = "gemini-2.5-flash"

    def __init__(self, api_key: Optional[str] = None, default_model: Optional[str] = None):
        """Initialize Gemini provider.

        Args:
            api_key: Google API key. Uses DEVSTREAK_GEMINI_API_KEY, GEMINI_API_KEY
                or GOOGLE_API_KEY if not provided.
            default_model: Gemini model name or alias; see ``supports``.

        Raises:
            ValueError: If ``default_model`` is not a Gemini model.
        """
        from config import settings

        self.api_key = (
            api_key
            or settings.gemini_api_key
            or os.environ.get("GEMINI_API_KEY")
            or os.environ.get("GOOGLE_API_KEY")
        )
        if default_model and not self.supports(default_model):
            raise ValueError(f"{default_model} is not a Gemini model")
        self._default_model = self.DEFAULT_MODEL
        if default_model:
            self._default_model = self._resolve_model(default_model)
        self._configured = False

    @classmethod
    def supports(cls, model: str) -> bool:
        """True for Gemini aliases and gemini-* names, with or without the gemini/ prefix."""
        name = model.lower()
        return name in cls.MODELS or name.startswith("gemini-") or name.startswith("gemini/")

    @property
    def name(self) -> str:
        return "gemini"

    @property
    def default_model(self) -> str:
        return self._default_model

    def _configure(self):
        if not self._configured and self.api_key:
            import google.generativeai as genai
            genai.configure(api_key=self.api_key)
            self._configured = True

    def _resolve_model(self, model: Optional[str]) -> str:
        if not model:
            return self._default_model
        name = model.lower()
        if name.startswith("gemini/"):
            name = name[len("gemini/"):]
        return self.MODELS.get(name, name)

    def complete(
        self,
        system_prompt: str,
        user_message: str,
        model: Optional[str] = None,
        max_tokens: int = 4096,
        json_output: bool = False,
    ) -> LLMResponse:
        import google.generativeai as genai

        self._configure()
        resolved_model = self._resolve_model(model)

        gen_model = genai.GenerativeModel(
            model_name=resolved_model,
            system_instruction=system_prompt,
        )

        config_kwargs = {"max_output_tokens": max_tokens}
        if json_output:
            config_kwargs["response_mime_type"] = "application/json"

        response = gen_model.generate_content(
            user_message,
            generation_config=genai.types.GenerationConfig(**config_kwargs),
        )

        text = response.text
        if not text:
            raise RuntimeError("No response from Gemini")

        # Token counts are not always reported; estimate when missing
        usage = getattr(response, "usage_metadata", None)
        input_tokens = getattr(usage, "prompt_token_count", None) or len(system_prompt + user_message) // 4
        output_tokens = getattr(usage, "candidates_token_count", None) or len(text) // 4

        return LLMResponse(
            content=text,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            model=resolved_model,
            provider=self.name,
        )

    def is_available(self) -> bool:
        return bool(self.api_key)
