"""Tests for the GitHub API client."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import httpx
import pytest

from aiomirror.exceptions import GitHubError
from aiomirror.git.retry import RetryPolicy
from aiomirror.github.client import GitHubClient, is_transient_api_error
from aiomirror.github.ratelimit import RateLimiter
from aiomirror.models import GitHubCredentials, RetryOptions


class Recorder:
    """httpx transport handler that records requests and replays responses."""

    def __init__(self, *responses: httpx.Response | Exception) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def credentials() -> GitHubCredentials:
    return GitHubCredentials(login="vim-scripts", token="s3cret")


def _client(
    credentials: GitHubCredentials, recorder: Recorder, **kwargs: object
) -> GitHubClient:
    http = httpx.AsyncClient(
        base_url="https://api.example.test", transport=httpx.MockTransport(recorder)
    )
    retry = RetryPolicy(
        RetryOptions(max_attempts=3, initial_delay=0, jitter=False),
        is_retryable=is_transient_api_error,
        sleep=AsyncMock(),
    )
    return GitHubClient(
        credentials,
        rate_limiter=RateLimiter(sleep=AsyncMock()),
        retry_policy=retry,
        http_client=http,
        **kwargs,  # type: ignore[arg-type]
    )


class TestTurnOffFeatures:
    async def test_patches_repository(self, credentials: GitHubCredentials) -> None:
        recorder = Recorder(httpx.Response(200, json={"name": "foo.vim", "has_wiki": False}))
        client = _client(credentials, recorder)

        result = await client.turn_off_features("foo.vim")

        assert result["has_wiki"] is False
        [request] = recorder.requests
        assert request.method == "PATCH"
        assert request.url.path == "/repos/vim-scripts/foo.vim"
        assert json.loads(request.content) == {"has_issues": False, "has_wiki": False}
        assert request.headers["Authorization"] == "token s3cret"

    async def test_counts_against_rate_limit(self, credentials: GitHubCredentials) -> None:
        recorder = Recorder(httpx.Response(200, json={}))
        client = _client(credentials, recorder)
        await client.turn_off_features("foo.vim")
        assert client.rate_limiter.calls == 1

    async def test_missing_repository_raises(self, credentials: GitHubCredentials) -> None:
        recorder = Recorder(httpx.Response(404, json={"message": "Not Found"}))
        client = _client(credentials, recorder)
        with pytest.raises(GitHubError) as info:
            await client.turn_off_features("ghost.vim")
        assert info.value.status_code == 404


class TestRetries:
    async def test_server_error_retried(self, credentials: GitHubCredentials) -> None:
        recorder = Recorder(
            httpx.Response(502, text="bad gateway"),
            httpx.Response(200, json={"name": "foo.vim"}),
        )
        client = _client(credentials, recorder)
        assert await client.update_repository("foo.vim", description="x") == {"name": "foo.vim"}
        assert len(recorder.requests) == 2
        assert client.rate_limiter.calls == 2

    async def test_transport_error_retried(self, credentials: GitHubCredentials) -> None:
        recorder = Recorder(
            httpx.ConnectError("connection refused"),
            httpx.Response(200, json={}),
        )
        client = _client(credentials, recorder)
        await client.update_repository("foo.vim", has_wiki=False)
        assert len(recorder.requests) == 2

    async def test_client_error_not_retried(self, credentials: GitHubCredentials) -> None:
        recorder = Recorder(httpx.Response(422, json={"message": "Validation Failed"}))
        client = _client(credentials, recorder)
        with pytest.raises(GitHubError) as info:
            await client.update_repository("foo.vim", name="")
        assert info.value.status_code == 422
        assert len(recorder.requests) == 1


class TestRepositories:
    async def test_rename_through_update(self, credentials: GitHubCredentials) -> None:
        recorder = Recorder(httpx.Response(200, json={"name": "bar.vim"}))
        client = _client(credentials, recorder)
        result = await client.update_repository("foo.vim", name="bar.vim")
        assert result == {"name": "bar.vim"}
        [request] = recorder.requests
        assert request.url.path == "/repos/vim-scripts/foo.vim"
        assert json.loads(request.content) == {"name": "bar.vim"}

    async def test_get_existing(self, credentials: GitHubCredentials) -> None:
        recorder = Recorder(httpx.Response(200, json={"full_name": "vim-scripts/foo.vim"}))
        client = _client(credentials, recorder)
        repo = await client.get_repository("foo.vim")
        assert repo == {"full_name": "vim-scripts/foo.vim"}
        assert recorder.requests[0].method == "GET"

    async def test_get_missing_returns_none(self, credentials: GitHubCredentials) -> None:
        recorder = Recorder(httpx.Response(404, json={"message": "Not Found"}))
        client = _client(credentials, recorder)
        assert await client.get_repository("ghost.vim") is None

    async def test_create_for_user(self, credentials: GitHubCredentials) -> None:
        recorder = Recorder(httpx.Response(201, json={"name": "foo.vim"}))
        client = _client(credentials, recorder)
        await client.create_repository(
            "foo.vim", description="A plugin", homepage="http://www.vim.org/scripts/script.php?script_id=1"
        )
        [request] = recorder.requests
        assert request.method == "POST"
        assert request.url.path == "/user/repos"
        assert json.loads(request.content) == {
            "name": "foo.vim",
            "description": "A plugin",
            "homepage": "http://www.vim.org/scripts/script.php?script_id=1",
        }

    async def test_create_for_organization(self, credentials: GitHubCredentials) -> None:
        recorder = Recorder(httpx.Response(201, json={"name": "foo.vim"}))
        client = _client(credentials, recorder, owner="mirrors")
        await client.create_repository("foo.vim")
        assert recorder.requests[0].url.path == "/orgs/mirrors/repos"
        assert json.loads(recorder.requests[0].content) == {"name": "foo.vim"}


class TestLifecycle:
    async def test_owned_client_closed(self, credentials: GitHubCredentials) -> None:
        async with GitHubClient(credentials, api_url="https://api.example.test") as client:
            assert client._owns_client is True
        assert client._client.is_closed

    async def test_borrowed_client_left_open(self, credentials: GitHubCredentials) -> None:
        recorder = Recorder()
        client = _client(credentials, recorder)
        await client.aclose()
        assert not client._client.is_closed


class TestTransientClassifier:
    def test_classification(self) -> None:
        assert is_transient_api_error(httpx.ReadTimeout("slow"))
        assert is_transient_api_error(GitHubError("x", status_code=500))
        assert is_transient_api_error(GitHubError("x", status_code=429))
        assert not is_transient_api_error(GitHubError("x", status_code=403))
        assert not is_transient_api_error(GitHubError("x"))
        assert not is_transient_api_error(ValueError("x"))
