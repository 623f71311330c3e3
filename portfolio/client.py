import aiohttp
import asyncio
import logging
from typing import Optional, Dict, Any
from urllib.parse import quote

from .config import settings
from .domain import (
    ApiError,
    NotFoundError,
    RateLimitError,
    UpstreamUnavailableError,
)

logger = logging.getLogger(__name__)

JSON_ACCEPT = "application/vnd.github+json"
RAW_ACCEPT = "application/vnd.github.raw"


class GitHubClient:
    """
    Read-only GitHub REST client for the public profile resources.

    Every request is issued once; non-success statuses surface as ApiError
    subclasses carrying the upstream status and transport failures surface
    as UpstreamUnavailableError, so callers decide what is fatal.
    """

    def __init__(
        self,
        api_url: str = settings.github_api_url,
        token: Optional[str] = settings.github_token,
        user_agent: str = settings.user_agent,
        timeout_seconds: Optional[float] = settings.request_timeout_seconds,
    ):
        self.api_url = api_url.rstrip("/")
        self.headers = {
            "Accept": JSON_ACCEPT,
            "User-Agent": user_agent,
        }
        if token:
            self.headers["Authorization"] = f"Bearer {token}"
        self.timeout_seconds = timeout_seconds
        self._session = None

    async def __aenter__(self):
        """Async context manager entry."""
        self._session = aiohttp.ClientSession(
            headers=self.headers,
            timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        if self._session:
            await self._session.close()
            self._session = None

    async def _get(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        accept: str = JSON_ACCEPT,
    ):
        """
        Issue a single GET and return the decoded body.

        JSON responses are decoded; raw responses are returned as bytes.
        """
        if not self._session:
            raise RuntimeError("Client must be used as async context manager")

        url = f"{self.api_url}{path}"
        try:
            async with self._session.get(
                url, params=params, headers={"Accept": accept}
            ) as resp:
                if not 200 <= resp.status < 300:
                    message = await self._error_message(resp)
                    if resp.status == 403:
                        raise RateLimitError(message, status=resp.status)
                    if resp.status == 404:
                        raise NotFoundError(message, status=resp.status)
                    raise ApiError(message, status=resp.status)

                if accept == RAW_ACCEPT:
                    return await resp.read()
                try:
                    return await resp.json(content_type=None)
                except ValueError as e:
                    raise UpstreamUnavailableError(
                        f"Malformed JSON from {path}: {e}"
                    ) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"🔁 Network error on {path}: {e}")
            raise UpstreamUnavailableError(f"Request to {path} failed: {e}") from e

    @staticmethod
    async def _error_message(resp) -> str:
        """Pull GitHub's ``message`` field out of an error body when present."""
        try:
            payload = await resp.json(content_type=None)
        except ValueError:
            payload = None
        if isinstance(payload, dict) and isinstance(payload.get("message"), str):
            return payload["message"]
        return f"GitHub API returned status {resp.status}"

    async def get_user(self, username: str) -> Dict[str, Any]:
        return await self._get(f"/users/{quote(username, safe='')}")

    async def list_repos(self, username: str, per_page: int = 100):
        """Most recently updated repositories first, one page only."""
        return await self._get(
            f"/users/{quote(username, safe='')}/repos",
            params={"per_page": per_page, "sort": "updated"},
        )

    async def get_readme(self, full_name: str) -> bytes:
        """Raw README content for an ``owner/name`` repository."""
        return await self._get(f"/repos/{full_name}/readme", accept=RAW_ACCEPT)

    async def list_public_events(self, username: str, per_page: int = 100):
        return await self._get(
            f"/users/{quote(username, safe='')}/events/public",
            params={"per_page": per_page},
        )
