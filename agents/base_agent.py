"""Base class for LLM-backed collaborators.

An agent owns a system prompt and a Pydantic output contract. Each run sends
the prompt, the contract's JSON schema and the serialized input; the reply is
pulled out of any markdown fence, parsed, and validated. A reply that fails
validation is sent back once more (``settings.draft_max_retries``) with the
error attached.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from config import settings
from providers import LLMProvider, LLMResponse, get_provider

T = TypeVar("T", bound=BaseModel)

logger = logging.getLogger(__name__)

SCHEMA_HEADER = "\n\n# OUTPUT FORMAT\nYou MUST respond with valid JSON matching this schema:\n\n"


def extract_json(text: str) -> Any:
    """Parse the JSON payload of a model reply.

    Accepts a bare document or one wrapped in a ```json / ``` fence.

    Raises:
        json.JSONDecodeError: If no JSON document can be parsed.
    """
    body = text.strip()
    fence = body.find("```")
    if fence != -1:
        start = body.find("\n", fence)
        end = body.find("```", start + 1) if start != -1 else -1
        if start != -1 and end != -1:
            body = body[start + 1:end].strip()
    return json.loads(body)


class TokenUsage(BaseModel):
    """Token counts, per call or accumulated over an agent's lifetime."""
    input_tokens: int = 0
    output_tokens: int = 0

    def add(self, response: LLMResponse) -> None:
        self.input_tokens += response.input_tokens
        self.output_tokens += response.output_tokens


class AgentResult(BaseModel):
    """Validated output of one run plus what it took to get it."""
    output: Any
    token_usage: TokenUsage
    model: str
    provider: str = "litellm"
    raw_response: Optional[str] = None
    attempts: int = 1


class BaseAgent(ABC):
    """An LLM call with a typed, validated result."""

    def __init__(
        self,
        role: str,
        system_prompt: str,
        output_schema: Type[T],
        model: Optional[str] = None,
        provider: Optional[str] = None,
        llm_provider: Optional[LLMProvider] = None,
    ):
        """Initialize the agent.

        Args:
            role: Short name used in logs and provider metadata
            system_prompt: Instructions defining the agent's behavior
            output_schema: Pydantic model every reply must validate against
            model: Override the configured model (e.g. 'gemini/gemini-2.5-pro', 'gpt-4o-mini')
            provider: Provider name (litellm, gemini); see providers.get_provider
            llm_provider: Ready-made provider instance, used instead of ``provider``
        """
        self.role = role
        self.system_prompt = system_prompt
        self.output_schema = output_schema

        self.llm_provider: LLMProvider = llm_provider or get_provider(provider_name=provider, model=model)
        self.model = model or self.llm_provider.default_model
        if hasattr(self.llm_provider, "set_metadata"):
            self.llm_provider.set_metadata({"agent": self.role})

        self.total_usage = TokenUsage()

    def _full_system_prompt(self) -> str:
        schema = json.dumps(self.output_schema.model_json_schema(), indent=2)
        return f"{self.system_prompt}{SCHEMA_HEADER}```json\n{schema}\n```"

    def _user_message(self, input_data: BaseModel, error: Optional[str] = None) -> str:
        message = f"# INPUT\n\n{input_data.model_dump_json(indent=2)}"
        if error:
            message += (
                "\n\n# PREVIOUS ERROR\n\n"
                f"Your previous response did not match the required schema. Error: {error}\n\n"
                "Reply again with corrected JSON only."
            )
        return message

    def run(
        self,
        input_data: BaseModel,
        max_retries: Optional[int] = None,
        model: Optional[str] = None,
    ) -> AgentResult:
        """Call the model and return its validated output.

        Raises:
            ValidationError, json.JSONDecodeError: If the last allowed reply is still invalid.
            Exception: Whatever the provider raises; provider errors are not retried.
        """
        retries = settings.draft_max_retries if max_retries is None else max_retries
        logger.info("%s: %s (model %s)", self.role, self.get_task_description(), model or self.model)
        system_prompt = self._full_system_prompt()
        error: Optional[str] = None

        for attempt in range(1, retries + 2):
            response = self.llm_provider.complete(
                system_prompt=system_prompt,
                user_message=self._user_message(input_data, error),
                model=model or self.model,
                max_tokens=settings.max_tokens_per_draft,
                json_output=True,
            )
            self.total_usage.add(response)

            try:
                output = self.output_schema.model_validate(extract_json(response.content))
            except (json.JSONDecodeError, ValidationError) as e:
                logger.warning("%s: invalid reply (attempt %d of %d): %s", self.role, attempt, retries + 1, e)
                if attempt > retries:
                    raise
                error = str(e)
                continue

            return AgentResult(
                output=output,
                token_usage=TokenUsage(input_tokens=response.input_tokens, output_tokens=response.output_tokens),
                model=response.model,
                provider=response.provider,
                raw_response=response.content,
                attempts=attempt,
            )

        raise RuntimeError("unreachable: agent run loop exited without a result")

    @abstractmethod
    def get_task_description(self) -> str:
        """One line on what this agent produces."""
