"""
GitHub REST client, the paged upstream source for code search.
"""

import logging
from typing import Any, Optional

import httpx

from code_search_mcp.errors import UpstreamError
from code_search_mcp.models.search import SearchPage

DEFAULT_API_URL = "https://api.github.com"
API_VERSION = "2022-11-28"
DEFAULT_MEDIA_TYPE = "application/vnd.github+json"
TEXT_MATCH_MEDIA_TYPE = "application/vnd.github.v3.text-match+json"

logger = logging.getLogger(__name__)


class GitHubClient:
    def __init__(
        self,
        token: Optional[str] = None,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"User-Agent": "github-code-search-mcp/0.1.0", "X-GitHub-Api-Version": API_VERSION},
            timeout=timeout,
            transport=transport,
        )

    def _headers(self, text_match: bool) -> dict[str, str]:
        headers = {"Accept": TEXT_MATCH_MEDIA_TYPE if text_match else DEFAULT_MEDIA_TYPE}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    @staticmethod
    def _raise_for_status(resp: httpx.Response) -> None:
        if resp.status_code < 400:
            return
        remaining = resp.headers.get("X-RateLimit-Remaining")
        if resp.status_code == 429 or (resp.status_code == 403 and remaining == "0"):
            raise UpstreamError(
                f"GitHub rate limit exceeded (HTTP {resp.status_code})",
                code="rate_limited",
                status_code=resp.status_code,
                details={"reset": resp.headers.get("X-RateLimit-Reset")},
            )
        raise UpstreamError(f"HTTP {resp.status_code}: {resp.text[:200]}", status_code=resp.status_code)

    async def fetch_page(
        self,
        q: str,
        *,
        sort: Optional[str] = None,
        order: Optional[str] = None,
        per_page: int,
        page: int,
        text_match: bool = False,
    ) -> SearchPage:
        """GET /search/code for a single page.

        `has_next` follows the `rel="next"` entry of the Link header only.
        """
        params: dict[str, Any] = {"q": q, "per_page": per_page, "page": page}
        if sort:
            params["sort"] = sort
        if order:
            params["order"] = order

        try:
            resp = await self._client.get("/search/code", params=params, headers=self._headers(text_match))
        except httpx.HTTPError as e:
            raise UpstreamError(f"GitHub request failed: {e}", code="network_error") from e
        self._raise_for_status(resp)

        try:
            data = resp.json()
        except ValueError as e:
            raise UpstreamError(f"Undecodable GitHub response: {e}", code="bad_response",
                                status_code=resp.status_code) from e

        logger.debug("Fetched page %s for %r (%s items)", page, q, len(data.get("items") or []))
        return SearchPage(
            items=data.get("items") or [],
            total_count=data.get("total_count", 0),
            incomplete=bool(data.get("incomplete_results", False)),
            has_next="next" in resp.links,
        )

    async def close(self) -> None:
        await self._client.aclose()
