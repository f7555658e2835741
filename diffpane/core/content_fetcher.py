"""Full file content fetchers for the full-content alignment path.

A fetcher answers one question: what was the text of ``path`` at
``revision`` in a given repository?  It returns the text, or None when the
file does not exist at that revision (added or deleted files), and raises a
``ContentFetchError`` subclass for everything else.  The strategy selector
turns those errors into a diff-only fallback; fetchers never retry.

All methods use httpx.AsyncClient and are safe to call concurrently, once
per side of the diff.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Literal, Protocol
from urllib.parse import quote

import httpx

from diffpane.core.exceptions import (
    ContentFetchAuthError,
    ContentFetchError,
    ContentFetchRateLimitError,
    ContentFetchTimeoutError,
)

logger = logging.getLogger(__name__)

GITHUB_API_BASE = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"

AZURE_DEVOPS_BASE = "https://dev.azure.com"
AZURE_DEVOPS_API_VERSION = "6.0"

Provider = Literal["github", "azure_devops"]


@dataclass(frozen=True)
class RepositoryCoordinates:
    """Where a repository lives.

    For GitHub ``organization`` is the owner; Azure DevOps also needs the
    ``project`` the repository belongs to.
    """

    provider: Provider
    organization: str
    repository: str
    project: str | None = None


class ContentFetcher(Protocol):
    """The collaborator contract used by the strategy selector."""

    async def fetch(
        self, coordinates: RepositoryCoordinates, path: str, revision: str
    ) -> str | None: ...


class _HttpContentFetcher:
    """Shared request/response handling for the REST fetchers."""

    provider_name = "provider"

    def __init__(
        self,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout = timeout
        self._transport = transport

    async def _get(
        self,
        url: str,
        *,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        auth: tuple[str, str] | None = None,
    ) -> httpx.Response:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                return await client.get(url, params=params, headers=headers, auth=auth)
        except httpx.TimeoutException as exc:
            raise ContentFetchTimeoutError(f"{self.provider_name} request timed out: {url}") from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise ContentFetchError(f"{self.provider_name} request failed: {exc}") from exc

    def _text_or_none(self, response: httpx.Response, path: str, revision: str) -> str | None:
        """Map a raw-content response to text, None (missing) or an error."""
        if response.status_code == 404:
            logger.info(
                "File not present at revision",
                extra={"provider": self.provider_name, "path": path, "revision": revision},
            )
            return None
        if response.status_code == 401:
            raise ContentFetchAuthError(
                f"{self.provider_name} rejected the credentials", status_code=401
            )
        if response.status_code >= 400:
            raise ContentFetchError(
                f"Failed to fetch {path}@{revision}: {response.text[:200]}",
                status_code=response.status_code,
            )
        return response.text


class GitHubContentFetcher(_HttpContentFetcher):
    """Fetch raw file content through the GitHub contents API."""

    provider_name = "github"

    def __init__(
        self,
        token: str = "",
        *,
        api_base: str = GITHUB_API_BASE,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(timeout=timeout, transport=transport)
        self.token = token
        self.api_base = api_base.rstrip("/")

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github.v3.raw",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _check_rate_limit(self, response: httpx.Response) -> None:
        """Log low rate limits; raise when the limit is exhausted."""
        remaining_str = response.headers.get("X-RateLimit-Remaining")
        if remaining_str is None:
            return

        remaining = int(remaining_str)
        reset_ts = int(response.headers.get("X-RateLimit-Reset", 0))
        if remaining == 0 and response.status_code in (403, 429):
            raise ContentFetchRateLimitError(
                f"GitHub rate limit exceeded. Resets at: {reset_ts}",
                reset_at=str(reset_ts),
            )
        if remaining < 100:
            logger.warning(
                "GitHub rate limit low",
                extra={
                    "remaining": remaining,
                    "limit": int(response.headers.get("X-RateLimit-Limit", -1)),
                    "resets_in_seconds": max(0, reset_ts - int(time.time())),
                },
            )

    async def fetch(
        self, coordinates: RepositoryCoordinates, path: str, revision: str
    ) -> str | None:
        """Return the content of ``path`` at ``revision``, or None if absent."""
        url = (
            f"{self.api_base}/repos/{quote(coordinates.organization, safe='')}"
            f"/{quote(coordinates.repository, safe='')}"
            f"/contents/{quote(path.lstrip('/'))}"
        )
        response = await self._get(url, params={"ref": revision}, headers=self._headers())
        self._check_rate_limit(response)
        if response.status_code == 403:
            raise ContentFetchAuthError(
                f"GitHub denied access to {coordinates.organization}/{coordinates.repository}",
                status_code=403,
            )
        return self._text_or_none(response, path, revision)


class AzureDevOpsContentFetcher(_HttpContentFetcher):
    """Fetch file content at a commit through the Azure DevOps items API."""

    provider_name = "azure_devops"

    def __init__(
        self,
        personal_access_token: str = "",
        *,
        base_url: str = AZURE_DEVOPS_BASE,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(timeout=timeout, transport=transport)
        self.personal_access_token = personal_access_token
        self.base_url = base_url.rstrip("/")

    async def fetch(
        self, coordinates: RepositoryCoordinates, path: str, revision: str
    ) -> str | None:
        """Return the content of ``path`` at commit ``revision``, or None if absent."""
        project = coordinates.project or coordinates.repository
        url = (
            f"{self.base_url}/{quote(coordinates.organization, safe='')}/{quote(project, safe='')}"
            f"/_apis/git/repositories/{quote(coordinates.repository, safe='')}/items"
        )
        params = {
            "path": path if path.startswith("/") else f"/{path}",
            "versionDescriptor.version": revision,
            "versionDescriptor.versionType": "commit",
            "api-version": AZURE_DEVOPS_API_VERSION,
        }
        # PAT auth is Basic with an empty user name.
        auth = ("", self.personal_access_token) if self.personal_access_token else None
        response = await self._get(url, params=params, auth=auth)
        if response.status_code == 203:
            # Azure DevOps answers unauthenticated calls with a sign-in page.
            raise ContentFetchAuthError("Azure DevOps returned a sign-in page", status_code=203)
        return self._text_or_none(response, path, revision)
