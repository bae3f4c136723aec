"""Application configuration via Pydantic Settings."""

from typing import Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # API Settings
    PROJECT_NAME: str = "Archie"
    VERSION: str = "0.3.0"
    API_PREFIX: str = "/api"

    # LLM Configuration
    LLM_PROVIDER: Literal["openai", "anthropic"] = "openai"
    DEFAULT_MODEL: str = ""  # Empty = provider default (see clients/)
    OPENAI_API_KEY: str = ""     # Required for OpenAI/GPT
    OPENAI_BASE_URL: str = ""    # Optional: proxy or compatible endpoint
    ANTHROPIC_API_KEY: str = ""  # Required for Anthropic/Claude
    LLM_TEMPERATURE: float = 0.7
    LLM_MAX_TOKENS: int = 1500

    # Storage
    MEMORY_FILE_PATH: str = "context.json"
    CHECKPOINT_DATABASE_URL: str = "sqlite:///.archie/checkpoints.db"
    PROMPTS_CONFIG_PATH: Optional[str] = None

    # Workflow limits
    ANALYSIS_MAX_TURNS: int = 0  # 0 = unbounded (human ends the conversation)
    GRAPH_MAX_STEPS: int = 100

    # LangSmith Tracing (Optional - for debugging/monitoring)
    LANGSMITH_TRACING: bool = False
    LANGSMITH_API_KEY: str = ""
    LANGSMITH_PROJECT: str = ""
    LANGSMITH_ENDPOINT: str = ""

    # Logging
    LOG_LEVEL: str = "INFO"


# Global settings instance
settings = Settings()
