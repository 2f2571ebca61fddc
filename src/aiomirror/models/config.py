"""Option and settings models.

Every field has a documented default so callers only pass what they change.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class RetryOptions(BaseModel):
    """Retry behaviour for network operations (clone, pull, push, API calls)."""

    max_attempts: int = Field(default=5, ge=1)
    initial_delay: float = Field(default=1.0, ge=0)
    max_delay: float = Field(default=30.0, ge=0)
    backoff_multiplier: float = Field(default=2.0, ge=1)
    jitter: bool = True


class CloneOptions(BaseModel):
    """Options for ``git clone``."""

    bare: bool = False
    branch: str | None = None
    depth: int | None = Field(default=None, ge=1)


class RateLimitOptions(BaseModel):
    """Outbound API quota: at most *max_calls* per *window_seconds*."""

    max_calls: int = Field(default=60, ge=1)
    window_seconds: float = Field(default=60.0, gt=0)


class GitHubCredentials(BaseModel):
    """Login/token pair for the hosted-platform API."""

    login: str
    token: str


class MirrorSettings(BaseModel):
    """Top-level settings, usually read from a YAML file."""

    owner: str = "vim-scripts"
    api_url: str = "https://api.github.com"
    credentials_file: str = "creds.json"
    retry: RetryOptions = Field(default_factory=RetryOptions)
    rate_limit: RateLimitOptions = Field(default_factory=RateLimitOptions)
