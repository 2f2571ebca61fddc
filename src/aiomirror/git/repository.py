"""Git repository handle.

Local object work (init, commits, history) is done with dulwich.  Network
operations and annotated tags shell out to the git binary through
:class:`ProcessRunner`, and the network ones run under a
:class:`RetryPolicy`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path

from dulwich.repo import Repo

from ..exceptions import GitError
from ..models.config import CloneOptions
from ..models.git import CommitInfo, Identity, ProcessRequest
from .process import ProcessRunner
from .retry import RetryPolicy
from .transaction import CommitTransaction

logger = logging.getLogger(__name__)


def _commit_time(timestamp: int, offset: int) -> datetime:
    return datetime.fromtimestamp(timestamp, tz=timezone(timedelta(seconds=offset)))


class GitRepository:
    """A local git repository at *root*, bare or with a ``.git`` directory.

    Constructing a handle only attaches to and validates an existing
    repository; use :meth:`clone` or :meth:`init` to create one.
    """

    def __init__(
        self,
        root: Path | str,
        *,
        bare: bool = False,
        runner: ProcessRunner | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self.root = Path(root)
        self.bare = bare
        self.runner = runner or ProcessRunner()
        self.retry_policy = retry_policy or RetryPolicy()
        self._validate()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _validate(self) -> None:
        """Catch simple errors early: the layout must look like a repository."""
        if not self.root.is_dir():
            raise GitError(f"{self.root} does not exist")
        if self.bare:
            if not (self.root / "objects").is_dir():
                raise GitError(f"{self.root} does not appear to be a bare repo")
        else:
            git_dir = self.root / ".git"
            if not git_dir.is_dir():
                raise GitError(f"{git_dir} does not exist")
            if not (git_dir / "objects").is_dir():
                raise GitError(f"{git_dir} does not appear to be a git repo")

    @classmethod
    async def clone(
        cls,
        source: str,
        root: Path | str,
        options: CloneOptions | None = None,
        *,
        runner: ProcessRunner | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> GitRepository:
        """Clone *source* into *root*, retrying on network failure."""
        options = options or CloneOptions()
        runner = runner or ProcessRunner()
        retry_policy = retry_policy or RetryPolicy()
        root = Path(root).absolute()

        args = ["clone", source, str(root)]
        if options.bare:
            args.append("--bare")
        if options.branch:
            args.extend(["--branch", options.branch])
        if options.depth:
            args.extend(["--depth", str(options.depth)])

        # The target may not exist yet, so git runs from its parent.
        root.parent.mkdir(parents=True, exist_ok=True)
        request = ProcessRequest(args=args, cwd=root.parent)
        await retry_policy.retry(f"cloning {source}", lambda: runner.run(request))
        logger.info("Cloned %s into %s", source, root)

        return cls(root, bare=options.bare, runner=runner, retry_policy=retry_policy)

    @staticmethod
    def _init_sync(root: Path, bare: bool) -> None:
        root.mkdir(parents=True, exist_ok=True)
        object_dir = root / "objects" if bare else root / ".git" / "objects"
        if object_dir.is_dir():
            logger.debug("Repository already present at %s", root)
            return
        if not bare and (root / ".git").exists():
            raise GitError(f"{root / '.git'} does not appear to be a git repo")
        try:
            repo = Repo.init_bare(str(root)) if bare else Repo.init(str(root))
        except OSError as exc:
            raise GitError(f"cannot initialise repository in {root}: {exc}") from exc
        repo.close()
        logger.info("Initialised %srepository in %s", "bare " if bare else "", root)

    @classmethod
    async def init(
        cls,
        root: Path | str,
        *,
        bare: bool = False,
        runner: ProcessRunner | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> GitRepository:
        """Create an empty repository at *root* unless one is already there."""
        root = Path(root)
        await asyncio.to_thread(cls._init_sync, root, bare)
        return cls(root, bare=bare, runner=runner, retry_policy=retry_policy)

    def _open(self) -> Repo:
        return Repo(str(self.root), bare=self.bare)

    # ------------------------------------------------------------------
    # git binary
    # ------------------------------------------------------------------

    async def git(self, *args: str, env: dict[str, str] | None = None) -> str:
        """Run ``git <args>`` inside the repository and return its output."""
        request = ProcessRequest(args=list(args), cwd=self.root, env=env or {})
        return await self.runner.run(request)

    async def remote_add(self, name: str, url: str) -> None:
        await self.git("remote", "add", name, url)

    async def remote_remove(self, name: str) -> None:
        await self.git("remote", "rm", name)

    async def pull(self, *args: str) -> str:
        """``git pull --no-rebase``; conflicts fail at once, the rest is retried."""
        return await self.retry_policy.retry(
            f"pulling {' '.join(args)}".rstrip(),
            lambda: self.git("pull", "--no-rebase", *args),
        )

    async def push(self, *args: str) -> str:
        return await self.retry_policy.retry(
            f"pushing {' '.join(args)}".rstrip(),
            lambda: self.git("push", *args),
        )

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    async def create_tag(self, name: str, message: str, committer: Identity) -> None:
        """Create an annotated tag on HEAD, authored by *committer*.

        dulwich tags are authored through the repository config, so the git
        binary is used with the tagger passed in the child's environment.
        """
        env = {
            "GIT_COMMITTER_NAME": committer.name,
            "GIT_COMMITTER_EMAIL": committer.email,
            "GIT_COMMITTER_DATE": committer.git_date(),
        }
        await self.git("tag", "-a", name, "-m", message, env=env)
        logger.info("Created tag %s in %s", name, self.root)

    async def find_tag(self, name: str) -> str | None:
        """Return *name* if the tag exists, otherwise ``None``."""
        output = await self.git("tag", "-l", name)
        if not output or not output.strip():
            return None
        return output.strip()

    async def list_tags(self) -> list[str]:
        output = await self.git("tag", "-l")
        return [line.strip() for line in output.splitlines() if line.strip()]

    # ------------------------------------------------------------------
    # Commits
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def commit(
        self,
        message: str,
        author: Identity,
        committer: Identity | None = None,
    ) -> AsyncIterator[CommitTransaction]:
        """Build one commit from the edits made inside the ``async with`` block.

        If the block raises, nothing is written.  The new sha is available as
        ``transaction.commit_id`` afterwards.
        """
        repo = await asyncio.to_thread(self._open)
        try:
            transaction = await asyncio.to_thread(
                CommitTransaction, repo, message, author, committer or author
            )
            yield transaction
            await asyncio.to_thread(transaction.commit_sync)
        finally:
            repo.close()

    def _head_sync(self) -> str | None:
        repo = self._open()
        try:
            return repo.head().decode("ascii")
        except KeyError:
            return None
        finally:
            repo.close()

    async def head(self) -> str | None:
        """Return the sha of the current branch head, or ``None`` if unborn."""
        return await asyncio.to_thread(self._head_sync)

    def _history_sync(self, limit: int) -> list[CommitInfo]:
        repo = self._open()
        try:
            try:
                repo.head()
            except KeyError:
                return []

            commits: list[CommitInfo] = []
            for entry in repo.get_walker(max_entries=limit):
                commit = entry.commit
                commits.append(
                    CommitInfo(
                        sha=commit.id.decode("ascii"),
                        message=commit.message.decode("utf-8", errors="replace"),
                        author=commit.author.decode("utf-8", errors="replace"),
                        committer=commit.committer.decode("utf-8", errors="replace"),
                        author_time=_commit_time(commit.author_time, commit.author_timezone),
                        commit_time=_commit_time(commit.commit_time, commit.commit_timezone),
                    )
                )
            return commits
        finally:
            repo.close()

    async def history(self, limit: int = 20) -> list[CommitInfo]:
        """Return up to *limit* commits, newest first."""
        return await asyncio.to_thread(self._history_sync, limit)
