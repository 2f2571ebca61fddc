"""Exception hierarchy for aiomirror."""

from __future__ import annotations


class MirrorError(Exception):
    """Base exception for all aiomirror errors."""


class GitError(MirrorError):
    """Error during a git operation.

    *command* and *output* are set when the error comes from a git
    subprocess.
    """

    def __init__(
        self,
        message: str,
        *,
        command: list[str] | None = None,
        output: str | None = None,
    ) -> None:
        super().__init__(message)
        self.command = command
        self.output = output


class MergeConflictError(GitError):
    """A pull or merge stopped on conflicts; retrying will not help."""


class GitHubError(MirrorError):
    """A call to the hosted-platform API failed."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
