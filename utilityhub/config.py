"""
UtilityHub API — Application Configuration
============================================

What:  Centralized configuration management using Pydantic Settings.
Why:   Type-safe environment variable loading with validation on startup.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Injected into routes and vendor services through get_settings().
When:  Loaded once at module import time.

Secrets:
    GEMINI_API_KEY and REMOVE_BG_API_KEY are optional at startup. A missing key
    only disables the endpoints that need it: those requests fail with a
    ConfigurationError (HTTP 500) before any outbound call is made.
"""

from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes are grouped by concern for readability.
    """

    # ── Google Gemini ─────────────────────────────────────────────────────
    # Required by every text tool (grammar, humanizer, games, ...)
    gemini_api_key: str = Field(
        default="",
        description="Google Gemini API key for the generateContent endpoint",
    )
    gemini_model: str = Field(default="gemini-2.5-flash")
    gemini_api_base: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
    )

    # ── remove.bg ─────────────────────────────────────────────────────────
    remove_bg_api_key: str = Field(
        default="",
        description="remove.bg API key for background removal",
    )
    remove_bg_api_url: str = Field(default="https://api.remove.bg/v1/removebg")

    # What: Largest inbound image accepted by /api/remove-background
    # Default: 10MB; valid range 1MB to 50MB
    max_image_size: int = Field(default=10_485_760, ge=1_048_576, le=52_428_800)

    # ── CORS ──────────────────────────────────────────────────────────────
    # Format: comma-separated values (parsed by the *_list properties below)
    cors_allow_origins: str = Field(default="*")
    cors_allow_methods: str = Field(default="POST, OPTIONS")
    cors_allow_headers: str = Field(default="Content-Type")

    @property
    def cors_origins_list(self) -> List[str]:
        return _split_csv(self.cors_allow_origins)

    @property
    def cors_methods_list(self) -> List[str]:
        return [method.upper() for method in _split_csv(self.cors_allow_methods)]

    @property
    def cors_headers_list(self) -> List[str]:
        return _split_csv(self.cors_allow_headers)

    # ── Logging ───────────────────────────────────────────────────────────
    # Host and port belong to uvicorn / the serverless platform, not here
    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # ── Retry Configuration ───────────────────────────────────────────────
    # What: Bounded retry around each outbound vendor call
    # How: up to retry_max_retries extra attempts, waiting base * 2^n seconds
    #      before attempt n+1 (capped at retry_max_delay)
    retry_max_retries: int = Field(default=3, ge=0, le=10)
    retry_base_delay: float = Field(default=1.0, ge=0.0, le=30.0)
    retry_max_delay: float = Field(default=30.0, ge=0.0, le=120.0)

    # What: Whether connection-level failures are retried like an overload
    # signal (True) or fail the request on the first occurrence (False)
    retry_on_transport_errors: bool = Field(default=True)

    # What: Per-attempt deadline for outbound calls, in seconds
    upstream_timeout: float = Field(default=25.0, gt=0.0, le=300.0)

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        # .env may also hold entries for uvicorn or the platform
        "extra": "ignore",
    }

    def missing_credentials(self) -> List[str]:
        """Names of vendor secrets that are not configured."""
        missing = []
        if not self.gemini_api_key.strip():
            missing.append("GEMINI_API_KEY")
        if not self.remove_bg_api_key.strip():
            missing.append("REMOVE_BG_API_KEY")
        return missing


# Singleton instance, returned by get_settings() unless a test overrides it
settings = Settings()


def get_settings() -> Settings:
    """FastAPI dependency returning the active settings object."""
    return settings
