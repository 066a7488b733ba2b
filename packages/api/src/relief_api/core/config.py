# This project was developed with assistance from AI tools.
"""
Application configuration.

All settings read from environment variables with sensible local dev defaults.
Group related settings together. LLM endpoints and model names are not
here; config/models.yaml reads them straight from the environment.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve project root .env regardless of CWD (matches inference/config.py approach)
_PROJECT_ROOT = Path(__file__).resolve().parents[5]
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Application settings -- single source of truth for env-driven config."""

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # -- App --
    APP_NAME: str = "relief-portal"
    DEBUG: bool = False

    # -- CORS --
    ALLOWED_HOSTS: list[str] = ["http://localhost:5173"]

    # -- Startup --
    SEED_FUNDS: bool = Field(
        default=False,
        description="Insert the sample fund catalog at startup (idempotent).",
    )

    # -- Auth --
    AUTH_DISABLED: bool = Field(
        default=False,
        description="Bypass JWT validation. Set True for tests and local dev without Keycloak.",
    )
    KEYCLOAK_URL: str = "http://localhost:8080"
    KEYCLOAK_REALM: str = "relief-portal"
    JWKS_CACHE_TTL: int = Field(
        default=300,
        description="JWKS cache lifetime in seconds (default 5 minutes).",
    )
    ADMIN_ROLE: str = Field(
        default="admin",
        description="Realm role that grants the Admin authorization claim.",
    )

    # -- Verification / session --
    MAX_VERIFICATION_ATTEMPTS: int = Field(
        default=3,
        description="Failed attempts in one verification session before the identity fails.",
    )
    PROFILE_PROVISIONING_GRACE_SECONDS: int = Field(
        default=10,
        description="How long a new account may exist without a profile before it is an error.",
    )
    SSO_LINK_URL: str | None = Field(
        default=None,
        description="External SSO linking endpoint. When unset, linking succeeds locally.",
    )

    # -- Decisioning --
    EVENT_WINDOW_DAYS: int = Field(
        default=90,
        description="How far back an event date may be for a relief request.",
    )
    DECISION_MODEL_TIER: str = "capable_large"
    DECISION_FALLBACK_TO_RULES: bool = Field(
        default=False,
        description="Use the rules-engine decision when the AI review fails instead of aborting.",
    )

    # -- Scratch storage (drafts, assistant conversation cache) --
    SCRATCH_BACKEND: Literal["memory", "redis"] = "memory"
    REDIS_URL: str = "redis://localhost:6379/0"
    SCRATCH_TTL_SECONDS: int = Field(
        default=60 * 60 * 24 * 30,
        description="Expiry for scratch entries in Redis (default 30 days).",
    )


settings = Settings()
