import os

from pathlib import Path
from typing import Any, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def model_post_init(self, __context: Any) -> None:
        """Ensure we pick up legacy environment variable aliases."""

        super().model_post_init(__context)

        if not self.llm_api_key:
            fallback = os.getenv("AIML_API_KEY") or os.getenv("OPENAI_API_KEY")
            if fallback:
                object.__setattr__(self, "llm_api_key", fallback)

    # Server Settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")
    cors_origins: List[str] = Field(default_factory=lambda: ["*"], description="Allowed CORS origins")
    cors_allow_credentials: bool = Field(default=False, description="Send credentialed CORS responses; ignored for wildcard origins")

    # Alchemy
    alchemy_api_key: str = Field(default="", description="Alchemy API key")
    alchemy_data_base_url: str = Field(
        default="https://api.g.alchemy.com/data/v1",
        description="Base URL of the Alchemy Data API (tokens by address)",
    )
    request_timeout_seconds: float = Field(default=30.0, description="Outbound request timeout")
    ipfs_gateway: str = Field(
        default="https://ipfs.io/ipfs/",
        description="HTTP gateway used to rewrite ipfs:// URIs",
    )
    nft_max_pages: int = Field(default=3, description="Maximum NFT pages fetched per network")
    default_networks: List[str] = Field(
        default_factory=lambda: ["ethereum"],
        description="Networks queried when a request does not name any",
    )

    # LLM Settings
    llm_provider: str = Field(default="openai", description="Default LLM provider")
    llm_api_key: str = Field(default="", description="API key for the chat-completion provider")
    llm_base_url: str = Field(default="https://api.aimlapi.com/v1", description="Chat-completion API base URL")
    llm_model: str = Field(default="gpt-4o", description="Default LLM model")
    max_tokens: int = Field(default=1000, description="Maximum tokens for LLM response")
    temperature: float = Field(default=0.7, description="LLM temperature setting")
    llm_max_attempts: int = Field(default=3, description="Attempts per LLM completion before falling back")
    llm_retry_delay_seconds: float = Field(default=1.0, description="Base delay for linear LLM retry backoff")

    # Conversation policy
    history_limit: int = Field(default=10, description="Most recent turns forwarded to the LLM")
    follow_up_max_length: int = Field(
        default=50,
        description="Messages shorter than this are treated as follow-ups when history exists",
    )
    assistant_name: str = Field(default="Arion", description="Persona name used in system prompts")

    # Free-query limiting (0 disables)
    free_query_limit: int = Field(default=0, description="Anonymous chat requests allowed per window")
    free_query_window_seconds: int = Field(default=86400, description="Free-query window in seconds")

    @field_validator("history_limit")
    @classmethod
    def _clamp_history_limit(cls, value: int) -> int:
        return max(10, min(20, value))

    @field_validator("default_networks")
    @classmethod
    def _lower_networks(cls, value: List[str]) -> List[str]:
        return [item.strip().lower() for item in value if item and item.strip()] or ["ethereum"]

    @property
    def has_alchemy_key(self) -> bool:
        """Check if Alchemy API key is configured"""
        return bool(self.alchemy_api_key)

    @property
    def has_llm_key(self) -> bool:
        """Check if the chat-completion provider is configured"""
        return bool(self.llm_api_key)

    @property
    def free_query_limit_enabled(self) -> bool:
        return self.free_query_limit > 0


settings = Settings()
