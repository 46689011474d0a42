"""
Inference service configuration.

The LLM and embedding provider is an external managed service. Only the
values the application needs to reach it are configured here.

Dependencies: pydantic_settings
System role: Inference endpoint configuration passed through to the container
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LlmProvider = Literal["openai", "azure_openai", "bedrock", "gemini", "anthropic", "ollama"]

# Providers reached through an API key rather than cloud IAM or a local daemon
KEYED_PROVIDERS: frozenset[str] = frozenset({"openai", "azure_openai", "gemini", "anthropic"})


class LlmSettings(BaseSettings):
    """External LLM + embeddings provider settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="LLM_",
        case_sensitive=False,
        extra="ignore",
    )

    provider: LlmProvider = Field(default="openai", description="Inference provider")
    model: str = Field(default="gpt-4o-mini", description="Chat completion model")
    embedding_model: str = Field(
        default="text-embedding-3-small",
        description="Embedding model",
    )
    endpoint: str = Field(default="", description="Provider endpoint (required for azure_openai and ollama)")
    api_key: str = Field(default="", description="Provider API key")

    @property
    def requires_api_key(self) -> bool:
        return self.provider in KEYED_PROVIDERS

    @property
    def requires_endpoint(self) -> bool:
        return self.provider in ("azure_openai", "ollama")
