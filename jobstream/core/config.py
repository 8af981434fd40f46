"""Configuration models and YAML loader for the streaming search service."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_PROVIDERS = ["theirstack", "adzuna", "themuse", "reed", "jsearch", "jobs_api"]


class ProviderConfig(BaseModel):
    """Per-provider request settings."""

    enabled: bool = True
    timeout_seconds: float = Field(default=15.0, gt=0)
    results_per_page: int = Field(default=30, ge=1, le=100)


class SearchConfig(BaseModel):
    """Session-level settings for one streamed search."""

    deadline_seconds: float = Field(default=60.0, gt=0)
    queries_per_provider: int = Field(default=2, ge=1, le=5)
    max_queries: int = Field(default=12, ge=1)
    initial_page_size: int = Field(default=12, ge=1)
    quota_reset_seconds: float = Field(default=3600.0, gt=0)
    providers: list[str] = Field(default_factory=lambda: list(DEFAULT_PROVIDERS))

    @field_validator("providers")
    @classmethod
    def providers_normalized(cls, v: list[str]) -> list[str]:
        seen: list[str] = []
        for name in v:
            key = name.lower().strip()
            if key and key not in seen:
                seen.append(key)
        return seen


class ScoringConfig(BaseModel):
    """Match scoring settings. The rule-based scorer is always available."""

    llm_enabled: bool = False
    llm_provider: str = "openai"
    llm_model: str | None = None
    timeout_seconds: float = Field(default=20.0, gt=0)
    max_concurrency: int = Field(default=5, ge=1)
    description_chars: int = Field(default=800, ge=100)


class ServerConfig(BaseModel):
    """HTTP server settings."""

    host: str = "127.0.0.1"
    port: int = Field(default=8000, ge=1, le=65535)
    transport_timeout_seconds: float = Field(default=180.0, gt=0)


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    search: SearchConfig = Field(default_factory=SearchConfig)
    providers: dict[str, ProviderConfig] = Field(default_factory=dict)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    @model_validator(mode="after")
    def timeouts_are_layered(self) -> "Settings":
        deadline = self.search.deadline_seconds
        for name in self.search.providers:
            provider = self.provider(name)
            if provider.enabled and provider.timeout_seconds >= deadline:
                msg = (
                    f"provider '{name}' timeout ({provider.timeout_seconds}s) must be "
                    f"shorter than the search deadline ({deadline}s)"
                )
                raise ValueError(msg)
        if self.server.transport_timeout_seconds <= deadline:
            msg = (
                f"transport timeout ({self.server.transport_timeout_seconds}s) must be "
                f"longer than the search deadline ({deadline}s)"
            )
            raise ValueError(msg)
        return self

    def provider(self, name: str) -> ProviderConfig:
        """Return the config for a provider, falling back to defaults."""
        return self.providers.get(name) or ProviderConfig()

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)

    @classmethod
    def load(cls, path: str | Path | None) -> "Settings":
        """Load settings from YAML, or return defaults when no path is given."""
        if path is None:
            return cls()
        return cls.from_yaml(path)
