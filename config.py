"""Configuration settings for DevStreak."""

from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings

# Export .env into os.environ so provider keys (e.g. GEMINI_API_KEY) reach litellm
load_dotenv()


class Settings(BaseSettings):
    """Global settings for DevStreak.

    Settings can be overridden via environment variables with DEVSTREAK_ prefix.
    Example: DEVSTREAK_USER_SEARCH_LIMIT=25
    """

    # Storage
    data_file: str = Field(
        default="./devstreak.json",
        description="JSON file backing the local project store"
    )
    current_user_id: Optional[str] = Field(
        default=None,
        description="User the CLI acts as when --user is not given"
    )

    # AI drafting
    ai_provider: Optional[str] = Field(
        default=None,
        description="LLM provider for phase drafting (litellm, gemini). None = auto"
    )
    ai_model: str = Field(
        default="gemini/gemini-2.5-flash",
        description="Model used to draft phases and tasks"
    )
    max_tokens_per_draft: int = Field(
        default=4096,
        description="Maximum tokens per drafting call"
    )
    draft_max_retries: int = Field(
        default=1,
        ge=0,
        description="Re-prompts when the model returns JSON that fails validation"
    )

    # Identity
    user_search_limit: int = Field(
        default=10,
        ge=1,
        description="Maximum users returned by a username search"
    )

    # Analytics
    phase_name_max_length: int = Field(
        default=15,
        ge=1,
        description="Phase titles longer than this are shortened in breakdowns"
    )

    # API settings (env: DEVSTREAK_<KEY>). Passed to litellm by model prefix;
    # when empty, the provider's standard env var is used.
    gemini_api_key: str = Field(
        default="",
        description="Google/Gemini API key (env: DEVSTREAK_GEMINI_API_KEY)",
    )
    openai_api_key: str = Field(
        default="",
        description="OpenAI API key (env: DEVSTREAK_OPENAI_API_KEY)",
    )
    anthropic_api_key: str = Field(
        default="",
        description="Anthropic API key (env: DEVSTREAK_ANTHROPIC_API_KEY)",
    )

    model_config = {
        "env_prefix": "DEVSTREAK_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    def get_data_path(self) -> Path:
        """Get the store file as a Path object."""
        return Path(self.data_file)


# Create singleton instance
settings = Settings()
