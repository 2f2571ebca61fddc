"""Pydantic models for aiomirror."""

from .config import (
    CloneOptions,
    GitHubCredentials,
    MirrorSettings,
    RateLimitOptions,
    RetryOptions,
)
from .git import CommitInfo, EntryType, Identity, ProcessRequest

__all__ = [
    "CloneOptions",
    "CommitInfo",
    "EntryType",
    "GitHubCredentials",
    "Identity",
    "MirrorSettings",
    "ProcessRequest",
    "RateLimitOptions",
    "RetryOptions",
]
