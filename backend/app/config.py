"""Application configuration using pydantic-settings."""

from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Model backend selection: "assistant" (OpenAI thread/run/poll) or "chat" (Groq)
    model_backend: Literal["assistant", "chat"] = "assistant"

    # OpenAI Assistants API
    openai_api_key: Optional[str] = None
    assistant_id: Optional[str] = None
    poll_interval_seconds: float = 1.0
    poll_max_attempts: int = 60

    # Groq (OpenAI-compatible chat completions)
    groq_api_key: Optional[str] = None
    groq_api_url: str = "https://api.groq.com/openai/v1/chat/completions"
    groq_model: str = "llama-3.3-70b-versatile"
    temperature: float = 0.3
    max_tokens: int = 4000
    top_p: float = 0.9
    model_request_timeout: float = 120.0

    # Website fetching
    fetch_timeout: float = 15.0
    max_redirects: int = 5

    # CORS
    cors_origins: str = "*"

    # Server
    host: str = "0.0.0.0"
    port: int = 3000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def missing_credentials(self) -> list[str]:
        """Names of environment variables the selected backend needs but lacks."""
        if self.model_backend == "chat":
            required = {"GROQ_API_KEY": self.groq_api_key}
        else:
            required = {
                "OPENAI_API_KEY": self.openai_api_key,
                "ASSISTANT_ID": self.assistant_id,
            }
        return [name for name, value in required.items() if not value]


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings for testing."""
    global _settings
    _settings = None
