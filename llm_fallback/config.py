"""
Gateway configuration.
"""
from pathlib import Path
from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings

from .sanitizer import SanitizerLimits


def find_env_file() -> str:
    """Find .env file - check local dir, then project root."""
    local_env = Path(".env")
    root_env = Path("../.env")

    if local_env.exists():
        return str(local_env)
    elif root_env.exists():
        return str(root_env)
    return ".env"  # default


def _split_names(value: str) -> list[str]:
    return [name.strip().lower() for name in value.split(",") if name.strip()]


class Settings(BaseSettings):
    """Service settings from environment variables."""

    # Server
    host: str = "0.0.0.0"
    port: int = 8080

    # Credentials. A missing key leaves that provider unconfigured.
    xai_api_key: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("xai_api_key", "grok_api_key")
    )
    gemini_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None

    # Fallback chains, tried left to right
    chat_providers: str = "xai,gemini"
    image_providers: str = "grok,openai,gemini"

    # Retry / timeouts
    retry_attempts: int = 2
    chat_retry_attempts: Optional[int] = None
    image_retry_attempts: Optional[int] = None
    # Per provider, e.g. "image.gemini=1,chat.xai=1"
    retry_attempts_overrides: str = ""
    retry_base_delay_ms: int = 700
    upstream_timeout_seconds: float = 60.0

    # Models
    xai_chat_model: str = "grok-3-mini"
    openai_chat_model: str = "gpt-4o-mini"
    gemini_chat_model: str = "gemini-2.0-flash"
    grok_image_model: str = "grok-2-image-1212"
    openai_image_model: str = "dall-e-3"
    gemini_image_model: str = "gemini-2.0-flash-preview-image-generation"

    # Cost guard
    max_messages: int = 24
    max_chars_per_message: int = 3200
    max_total_chars: int = 24000
    default_output_tokens: int = 1024
    max_output_tokens_cap: int = 2048

    # Logging
    log_level: str = "info"
    log_path: str = ""  # e.g. /app/logs/llm-fallback.log

    # Version
    version: str = "1.0.0"

    class Config:
        env_file = find_env_file()
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"
        populate_by_name = True

    @property
    def chat_provider_names(self) -> list[str]:
        return _split_names(self.chat_providers)

    @property
    def image_provider_names(self) -> list[str]:
        return _split_names(self.image_providers)

    def retry_attempts_for(self, chain: str, name: str) -> int:
        """Attempts for one provider: per-provider override, then per chain, then global."""
        overrides = {}
        for entry in _split_names(self.retry_attempts_overrides):
            key, sep, value = entry.partition("=")
            if not sep or "." not in key:
                raise ValueError(
                    f"Invalid RETRY_ATTEMPTS_OVERRIDES entry {entry!r}; expected chain.provider=N"
                )
            overrides[key.strip()] = int(value)

        if f"{chain}.{name}" in overrides:
            return overrides[f"{chain}.{name}"]
        chain_default = {"chat": self.chat_retry_attempts, "image": self.image_retry_attempts}.get(chain)
        if chain_default is not None:
            return chain_default
        return self.retry_attempts

    def sanitizer_limits(self) -> SanitizerLimits:
        return SanitizerLimits(
            max_messages=self.max_messages,
            max_chars_per_message=self.max_chars_per_message,
            max_total_chars=self.max_total_chars,
            default_output_tokens=self.default_output_tokens,
            hard_cap_output_tokens=self.max_output_tokens_cap,
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
