"""aiomirror: async library for mirroring scripts into git repositories."""

from ._version import __version__
from .exceptions import GitError, GitHubError, MergeConflictError, MirrorError
from .git import CommitTransaction, GitRepository, ProcessRunner, RetryPolicy
from .github import GitHubClient, RateLimiter
from .models import (
    CloneOptions,
    CommitInfo,
    GitHubCredentials,
    Identity,
    MirrorSettings,
    ProcessRequest,
    RateLimitOptions,
    RetryOptions,
)
from .settings import load_credentials, load_settings

__all__ = [
    "CloneOptions",
    "CommitInfo",
    "CommitTransaction",
    "GitError",
    "GitHubClient",
    "GitHubCredentials",
    "GitHubError",
    "GitRepository",
    "Identity",
    "MergeConflictError",
    "MirrorError",
    "MirrorSettings",
    "ProcessRequest",
    "ProcessRunner",
    "RateLimitOptions",
    "RateLimiter",
    "RetryOptions",
    "RetryPolicy",
    "__version__",
    "load_credentials",
    "load_settings",
]
