"""Configuration contracts."""

from __future__ import annotations

from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator

DEFAULT_API_ENDPOINT = "https://api.replicated.com"
LOG_LEVELS = ("debug", "info", "warn", "error")


class RetryPolicy(BaseModel):
    max_retries: int = Field(default=3, ge=0, le=10)
    base_delay: float = Field(default=1.0, gt=0)

    model_config = {"frozen": True}


class RbacSyncConfig(BaseModel):
    api_endpoint: str = DEFAULT_API_ENDPOINT
    api_token: str = ""
    log_level: str = "info"
    confirm: bool = False
    retry: RetryPolicy = Field(default_factory=RetryPolicy)

    model_config = {"frozen": True}

    @field_validator("api_endpoint")
    @classmethod
    def validate_endpoint(cls, value: str) -> str:
        parsed = urlparse(value.strip())
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError("api_endpoint must be a valid HTTP or HTTPS URL")
        return value.strip().rstrip("/")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.strip().lower()
        if level == "warning":
            level = "warn"
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of: {', '.join(LOG_LEVELS)}")
        return level

    @field_validator("api_token")
    @classmethod
    def strip_token(cls, value: str) -> str:
        return value.strip()
