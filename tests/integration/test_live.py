"""
Integration tests against the real GitHub code search API.

Requires environment variables:
  GITHUB_TOKEN           token allowed to use code search
  CODESEARCH_INTEGRATION any value enables the tests

Run: CODESEARCH_INTEGRATION=1 pytest tests/integration/ -v
"""

import os

import pytest

from code_search_mcp import GitHubClient, SearchAggregator, SearchRequest, UpstreamError

SKIP = not os.environ.get("CODESEARCH_INTEGRATION")
TOKEN = os.environ.get("GITHUB_TOKEN", "")
QUERY = "repo:octokit/rest.js path:src"

pytestmark = pytest.mark.skipif(SKIP, reason="CODESEARCH_INTEGRATION not set")


class TestPaging:
    @pytest.mark.asyncio
    async def test_single_page(self):
        client = GitHubClient(token=TOKEN)
        try:
            page = await client.fetch_page(QUERY, per_page=5, page=1)
        finally:
            await client.close()
        assert page.total_count > 0
        assert 0 < len(page.items) <= 5

    @pytest.mark.asyncio
    async def test_aggregate_respects_bounds(self):
        client = GitHubClient(token=TOKEN)
        try:
            result = await SearchAggregator(client).aggregate(
                SearchRequest(q=QUERY, per_page=5, max_items=12, max_pages=3)
            )
        finally:
            await client.close()
        assert result.pages_fetched <= 3
        assert len(result.items) <= 12
        assert all(link.uri.startswith("https://github.com/") for link in result.preview())


class TestErrors:
    @pytest.mark.asyncio
    async def test_rejects_invalid_token(self):
        client = GitHubClient(token="invalid")
        try:
            with pytest.raises(UpstreamError) as exc_info:
                await client.fetch_page(QUERY, per_page=1, page=1)
        finally:
            await client.close()
        assert exc_info.value.status_code == 401
