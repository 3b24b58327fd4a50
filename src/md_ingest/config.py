"""Shared configuration loaded from environment / ``.env``."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings

from md_ingest.errors import ConfigurationError


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # Row store (Supabase / PostgREST)
    supabase_url: str = Field(default="", description="Base URL of the Supabase project, e.g. 'http://localhost:54321'")
    supabase_anon_key: str = Field(default="", description="Anonymous API key sent as the ``apikey`` header")
    request_timeout: float = Field(default=30.0, description="Timeout (seconds) for row-store requests")

    # Embedding service
    embedding_service_url: str = Field(
        default="http://host.docker.internal:8001",
        description=(
            "Base URL of the embedding service. The service must expose "
            "``POST /embed`` accepting ``{\"texts\": [...]}``."
        ),
    )
    embedding_timeout: float = Field(default=120.0, description="Timeout (seconds) for one batch embed call")

    # Segmentation
    max_section_length: int = Field(default=2500, ge=1, description="Sections longer than this are split into parts")
    min_section_length: int = Field(default=200, ge=0, description="Sections shorter than this are merged forward")

    # Logging
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    def require_ingestion_settings(self) -> None:
        """Raise :class:`ConfigurationError` unless every connection setting is present.

        Called before any I/O so a misconfigured deployment fails without
        touching the row store or the embedding service.
        """
        missing = [
            name
            for name, value in (
                ("SUPABASE_URL", self.supabase_url),
                ("SUPABASE_ANON_KEY", self.supabase_anon_key),
                ("EMBEDDING_SERVICE_URL", self.embedding_service_url),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(
                "Missing environment variables.",
                detail={"missing": missing},
            )


def get_settings() -> Settings:
    """Build a fresh :class:`Settings` from the current environment."""
    return Settings()
