"""Configuration management for the Notely API."""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    # In sandboxed environments, .env might not be accessible
    # Environment variables should be set directly
    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Supabase configuration (required)
    SUPABASE_URL: str = Field(..., description="Supabase project URL")
    SUPABASE_SERVICE_ROLE_KEY: str = Field(..., description="Supabase service role key")

    # Environment
    NOTELY_ENV: str = Field(default="dev", description="Environment: dev, staging, prod, test")

    # AI provider configuration
    AI_PROVIDER: str = Field(default="anthropic", description="Completion provider: anthropic or openai")
    AI_MODELS: list[str] = Field(
        default=[
            "claude-haiku-4-5-20251001",
            "claude-3-5-haiku-20241022",
            "claude-sonnet-4-5-20250929",
        ],
        description="Anthropic candidate models, tried in order (cheapest first)",
    )
    OPENAI_MODELS: list[str] = Field(
        default=["gpt-4o-mini", "gpt-4.1-mini", "gpt-4o"],
        description="OpenAI candidate models, tried in order",
    )
    AI_MAX_TOKENS: int = Field(default=4096, description="Max output tokens per completion")
    AI_TEMPERATURE: float = Field(default=0.3, description="Sampling temperature")
    AI_PROBE_MAX_TOKENS: int = Field(default=1, description="Output budget for the model capability probe")

    # Server-side provider keys (only used by endpoints that are not user-scoped)
    ANTHROPIC_API_KEY: str | None = Field(default=None, description="Server Anthropic API key")
    OPENAI_API_KEY: str | None = Field(default=None, description="Server OpenAI API key")

    # Per-user provider credentials are stored encrypted with this Fernet key
    API_KEY_ENCRYPTION_KEY: str | None = Field(
        default=None, description="Fernet key for encrypting user provider keys"
    )

    # Streaming
    STREAM_STEP_DELAY_MS: int = Field(
        default=250, description="Pause between thinking steps in the generation stream"
    )

    # HTTP surface
    CORS_ORIGINS: list[str] = Field(
        default=["http://localhost:3000"], description="Allowed browser origins"
    )
    FRONTEND_URL: str = Field(default="http://localhost:3000", description="Base URL for share links")

    # Input limits
    MAX_TRANSCRIPT_CHARS: int = Field(default=200_000, description="Max transcript characters")
    MAX_PROMPT_CHARS: int = Field(default=8_000, description="Max free-text prompt characters")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance

    Raises:
        ValidationError: If required environment variables are missing
    """
    return Settings()
