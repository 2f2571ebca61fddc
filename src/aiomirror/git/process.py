"""Runs the git binary for the operations dulwich cannot express.

Clone, pull, push, remotes and annotated tags go through here.  Output is
captured with stderr folded into stdout so a failure carries everything git
printed.
"""

from __future__ import annotations

import asyncio
import logging
import os
import subprocess

from ..exceptions import GitError
from ..models.git import ProcessRequest
from .retry import classify_git_failure

logger = logging.getLogger(__name__)


class ProcessRunner:
    """Executes ``git`` subprocesses described by :class:`ProcessRequest`."""

    def __init__(self, git_binary: str = "git") -> None:
        self.git_binary = git_binary

    def run_sync(self, request: ProcessRequest) -> str:
        """Run *request* and return its combined output.

        Raises :class:`GitError` (or :class:`MergeConflictError`) on a
        non-zero exit status.
        """
        command = [self.git_binary, *request.args]
        env = None
        if request.env:
            env = {**os.environ, **request.env}

        if not request.cwd.is_dir():
            raise GitError(
                f"{' '.join(command)}: {request.cwd} does not exist", command=command
            )

        logger.debug("Running %s in %s", " ".join(command), request.cwd)
        try:
            result = subprocess.run(
                command,
                cwd=str(request.cwd),
                env=env,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
            )
        except FileNotFoundError as exc:
            raise GitError(
                f"{' '.join(command)}: git binary not found: {exc}", command=command
            ) from exc

        if result.returncode != 0:
            raise classify_git_failure(command, result.stdout or "")

        return result.stdout or ""

    async def run(self, request: ProcessRequest) -> str:
        """Async wrapper around :meth:`run_sync`."""
        return await asyncio.to_thread(self.run_sync, request)
