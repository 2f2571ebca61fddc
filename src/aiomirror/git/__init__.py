"""Git repositories: dulwich for objects, the git binary for the network."""

from .process import ProcessRunner
from .repository import GitRepository
from .retry import RetryPolicy, classify_git_failure, is_transient_git_error
from .transaction import CommitTransaction

__all__ = [
    "CommitTransaction",
    "GitRepository",
    "ProcessRunner",
    "RetryPolicy",
    "classify_git_failure",
    "is_transient_git_error",
]
