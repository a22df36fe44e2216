"""
Application settings loaded from environment variables.

A single Settings instance is built once at process start and handed to the
provider client, commit gateway and endpoint constructors.

Environment variables are loaded from:
1. System environment variables
2. .env file in the working directory (if it exists)

Usage:
    from chatcommit.config import get_settings
    settings = get_settings()
"""

import logging
from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import ECHO, GOOGLE, GROQ, OPENAI, RepoCoordinates


class Settings(BaseSettings):
    """Process-wide configuration, validated at startup."""

    # -------------------------------------------------------------------------
    # LLM provider credentials (one per provider kind)
    # -------------------------------------------------------------------------

    GEMINI_API_KEY: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "API_KEY"),
        description="Google Gemini API key",
    )

    GROQ_API_KEY: Optional[str] = Field(default=None, description="Groq API key")

    OPENAI_API_KEY: Optional[str] = Field(default=None, description="OpenAI API key")

    # -------------------------------------------------------------------------
    # GitHub
    # -------------------------------------------------------------------------

    GITHUB_TOKEN: Optional[str] = Field(
        default=None, description="Token with contents:write on the target repo"
    )
    GITHUB_OWNER: Optional[str] = Field(default=None, description="Repository owner")
    GITHUB_REPO: Optional[str] = Field(default=None, description="Repository name")
    GITHUB_BRANCH: str = Field(default="main", description="Branch to commit to")
    GITHUB_API_URL: str = Field(
        default="https://api.github.com", description="GitHub REST API base URL"
    )

    # -------------------------------------------------------------------------
    # Application
    # -------------------------------------------------------------------------

    REQUEST_TIMEOUT: float = Field(
        default=60.0,
        gt=0,
        description="Timeout in seconds for provider and GitHub network clients",
    )
    LOG_LEVEL: str = Field(default="INFO", description="Root logging level")
    DEBUG: bool = Field(default=False, description="Verbose logging")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def has_github_config(self) -> bool:
        """True when the commit endpoint can reach a repository."""
        return bool(self.GITHUB_TOKEN and self.GITHUB_OWNER and self.GITHUB_REPO)

    def credential_for(self, provider_kind: str) -> Optional[str]:
        """Returns the credential required by a provider kind.

        The echo provider needs none.
        """
        if provider_kind == GOOGLE:
            return self.GEMINI_API_KEY
        if provider_kind == GROQ:
            return self.GROQ_API_KEY
        if provider_kind == OPENAI:
            return self.OPENAI_API_KEY
        if provider_kind == ECHO:
            return None
        raise ValueError(f"Unsupported provider: {provider_kind}")


CREDENTIAL_NAMES = {
    GOOGLE: "GEMINI_API_KEY",
    GROQ: "GROQ_API_KEY",
    OPENAI: "OPENAI_API_KEY",
}


@lru_cache
def get_settings() -> Settings:
    """Get the cached Settings instance so .env is parsed only once."""
    return Settings()


def resolve_coordinates(
    settings: Settings,
    owner: Optional[str] = None,
    repo: Optional[str] = None,
    branch: Optional[str] = None,
    token: Optional[str] = None,
) -> RepoCoordinates:
    """Builds repository coordinates from explicit input, falling back to settings."""
    return RepoCoordinates(
        owner=owner or settings.GITHUB_OWNER,
        repo=repo or settings.GITHUB_REPO,
        branch=branch or settings.GITHUB_BRANCH,
        token=token or settings.GITHUB_TOKEN,
    )


def configure_logging(settings: Settings) -> None:
    level = logging.DEBUG if settings.DEBUG else settings.LOG_LEVEL.upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
