"""Rate-limited client for the hosted-platform API."""

from .client import GitHubClient, is_transient_api_error
from .ratelimit import RateLimiter

__all__ = ["GitHubClient", "RateLimiter", "is_transient_api_error"]
