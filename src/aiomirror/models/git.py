"""Git-related models."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

EntryType = Literal["blob", "tree"]


class Identity(BaseModel):
    """Author, committer or tagger of a git object.

    When *date* is ``None`` the identity is stamped with the current time at
    the moment it is used.  Naive datetimes are taken as local time.
    """

    name: str
    email: str
    date: datetime | None = None

    def resolved_date(self) -> datetime:
        """Return a timezone-aware timestamp for this identity."""
        if self.date is None:
            return datetime.now().astimezone()
        if self.date.tzinfo is None:
            return self.date.astimezone()
        return self.date

    def ident(self) -> bytes:
        """Return the ``Name <email>`` form stored in git objects."""
        return f"{self.name} <{self.email}>".encode()

    def git_date(self) -> str:
        """Return the ``<unix-seconds> <+HHMM>`` form read by the git binary."""
        when = self.resolved_date()
        return f"{int(when.timestamp())} {when.strftime('%z')}"


class ProcessRequest(BaseModel):
    """A single git invocation.

    *env* is overlaid on the parent environment for the child process only.
    """

    args: list[str]
    cwd: Path
    env: dict[str, str] = Field(default_factory=dict)


class CommitInfo(BaseModel):
    """A single commit in the history."""

    sha: str
    message: str
    author: str
    committer: str
    author_time: datetime
    commit_time: datetime
