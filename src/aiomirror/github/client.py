"""Hosted-platform (GitHub) API client for mirror repositories.

Every request passes through a shared :class:`RateLimiter`, and each
rate-limited request is wrapped in a :class:`RetryPolicy` that only retries
transport failures and server-side errors.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..exceptions import GitHubError
from ..git.retry import RetryPolicy
from ..models.config import GitHubCredentials
from .ratelimit import RateLimiter

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"


def is_transient_api_error(exc: BaseException) -> bool:
    """Return ``True`` for failures that may succeed on another attempt."""
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, GitHubError) and exc.status_code is not None:
        return exc.status_code == 429 or exc.status_code >= 500
    return False


class GitHubClient:
    """Creates and configures repositories under *owner*."""

    def __init__(
        self,
        credentials: GitHubCredentials,
        *,
        owner: str = "vim-scripts",
        api_url: str = DEFAULT_API_URL,
        rate_limiter: RateLimiter | None = None,
        retry_policy: RetryPolicy | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.credentials = credentials
        self.owner = owner
        self.rate_limiter = rate_limiter or RateLimiter()
        self.retry_policy = retry_policy or RetryPolicy(is_retryable=is_transient_api_error)
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(base_url=api_url, timeout=30.0)
        self._headers = {
            "Accept": "application/vnd.github+json",
            "Authorization": f"token {credentials.token}",
            "User-Agent": f"aiomirror ({credentials.login})",
        }

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def _send(self, method: str, path: str, payload: dict[str, Any] | None) -> httpx.Response:
        response = await self._client.request(method, path, json=payload, headers=self._headers)
        if response.is_error and response.status_code != 404:
            raise GitHubError(
                f"{method} {path} failed with {response.status_code}: {response.text}",
                status_code=response.status_code,
            )
        return response

    async def request(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Send one API request within the rate limit, retrying transient failures.

        404 responses are returned to the caller; every other error status
        raises :class:`GitHubError`.
        """
        return await self.retry_policy.retry(
            f"{method} {path}",
            lambda: self.rate_limiter.call(self._send, method, path, payload),
        )

    # ------------------------------------------------------------------
    # Repositories
    # ------------------------------------------------------------------

    async def get_repository(self, name: str) -> dict[str, Any] | None:
        """Return the repository's metadata, or ``None`` if it does not exist."""
        response = await self.request("GET", f"/repos/{self.owner}/{name}")
        if response.status_code == 404:
            return None
        return response.json()

    async def create_repository(
        self,
        name: str,
        *,
        description: str | None = None,
        homepage: str | None = None,
    ) -> dict[str, Any]:
        """Create *name* under the owner (a user or an organization)."""
        payload: dict[str, Any] = {"name": name}
        if description is not None:
            payload["description"] = description
        if homepage is not None:
            payload["homepage"] = homepage

        if self.owner == self.credentials.login:
            path = "/user/repos"
        else:
            path = f"/orgs/{self.owner}/repos"

        logger.info("Creating repository %s/%s", self.owner, name)
        response = await self.request("POST", path, payload)
        if response.status_code == 404:
            raise GitHubError(f"POST {path} failed with 404", status_code=404)
        return response.json()

    async def update_repository(self, name: str, /, **fields: Any) -> dict[str, Any]:
        """Patch repository settings such as ``has_issues`` or ``description``."""
        path = f"/repos/{self.owner}/{name}"
        response = await self.request("PATCH", path, fields)
        if response.status_code == 404:
            raise GitHubError(f"PATCH {path} failed with 404", status_code=404)
        return response.json()

    async def turn_off_features(self, name: str) -> dict[str, Any]:
        """Turn off the issues and wiki tabs for a new repository."""
        logger.info("Disabling wiki and issues for %s/%s", self.owner, name)
        return await self.update_repository(name, has_issues=False, has_wiki=False)
