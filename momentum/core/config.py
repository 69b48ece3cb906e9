"""Configuration management for Momentum Engine."""

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

    # LLM provider keys (optional - mock responses are served without them)
    ANTHROPIC_API_KEY: str | None = Field(default=None, description="Anthropic API key")
    OPENAI_API_KEY: str | None = Field(default=None, description="OpenAI API key")
    AI_PROVIDER: str = Field(
        default="anthropic",
        description="Provider for prompts, titles and note extraction: anthropic, openai, mock",
    )

    # Environment
    MOMENTUM_ENV: str = Field(default="dev", description="Environment: dev, staging, prod")

    # Model configuration
    COACHING_MODEL: str = Field(
        default="claude-sonnet-4-20250514", description="Model for goal coaching and why drilling"
    )
    COACHING_MAX_TOKENS: int = Field(default=300, description="Max tokens per coaching reply")
    EXTRACTION_MODEL: str = Field(
        default="claude-sonnet-4-20250514", description="Anthropic model for note extraction"
    )
    EXTRACTION_MAX_TOKENS: int = Field(default=3000, description="Max tokens for queued extraction")
    OPENAI_MODEL: str = Field(default="gpt-4o", description="OpenAI model for the openai provider")

    # Extraction queue configuration
    EXTRACTION_MIN_WORDS: int = Field(
        default=50, description="Minimum document word count before extraction is queued"
    )
    EXTRACTION_MAX_ATTEMPTS: int = Field(default=3, description="Attempts before a job fails")
    EXTRACTION_STUCK_MINUTES: int = Field(
        default=5, description="Processing jobs older than this are considered stuck"
    )
    EXTRACTION_RETENTION_DAYS: int = Field(
        default=30, description="Days to keep finished extraction jobs"
    )
    COACHING_EXTRACTION_MIN_MESSAGES: int = Field(
        default=4, description="Messages a coaching session needs before it is queued"
    )

    # Note quality (NVQ) configuration
    NVQ_PASSING_THRESHOLD: int = Field(default=7, description="Minimum NVQ total to pass")
    NVQ_MAX_REFINEMENT_ATTEMPTS: int = Field(
        default=2, description="Refinement rounds for notes below the passing threshold"
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance loaded from environment

    Raises:
        ValidationError: If required environment variables are missing
    """
    return Settings()
