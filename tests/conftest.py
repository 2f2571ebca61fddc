"""Shared fixtures for aiomirror tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from aiomirror.git import GitRepository, ProcessRunner, RetryPolicy
from aiomirror.models import Identity, RetryOptions


@pytest.fixture
def author() -> Identity:
    return Identity(
        name="Script Author",
        email="author@example.com",
        date=datetime(2010, 5, 4, 12, 30, tzinfo=timezone(timedelta(hours=2))),
    )


@pytest.fixture
def fast_retry() -> RetryPolicy:
    """Retry policy that never actually sleeps."""
    options = RetryOptions(max_attempts=3, initial_delay=0, jitter=False)
    return RetryPolicy(options, sleep=AsyncMock())


@pytest.fixture
def mock_runner() -> ProcessRunner:
    """ProcessRunner whose ``run`` is an AsyncMock returning empty output."""
    runner = ProcessRunner()
    runner.run = AsyncMock(return_value="")  # type: ignore[method-assign]
    return runner


@pytest.fixture
async def bare_repo(tmp_path: Path) -> GitRepository:
    """Empty bare repository created with dulwich."""
    return await GitRepository.init(tmp_path / "bare.git", bare=True)


@pytest.fixture
async def work_repo(tmp_path: Path) -> GitRepository:
    """Empty non-bare repository created with dulwich."""
    return await GitRepository.init(tmp_path / "work")
