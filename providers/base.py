"""Provider interface for the AI drafting collaborator."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class LLMResponse:
    """One completion, normalized across providers."""
    content: str
    input_tokens: int
    output_tokens: int
    model: str
    provider: str
    cost: float = 0.0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class LLMProvider(ABC):
    """A text-completion backend the phase planner can draft with."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Registry name (litellm, gemini)."""

    @property
    @abstractmethod
    def default_model(self) -> str:
        """Model used when a call does not name one."""

    @abstractmethod
    def complete(
        self,
        system_prompt: str,
        user_message: str,
        model: Optional[str] = None,
        max_tokens: int = 4096,
        json_output: bool = False,
    ) -> LLMResponse:
        """Run one system + user completion.

        ``json_output`` asks the backend for a bare JSON document where it has
        such a mode; callers still validate the content themselves.
        """

    def is_available(self) -> bool:
        """True when the provider has the credentials it needs."""
        return True
