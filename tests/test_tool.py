"""search-code tool: argument validation and composite response."""

import json

import pytest
from mcp import types

from code_search_mcp.aggregator import SearchAggregator
from code_search_mcp.errors import UpstreamError, ValidationError
from code_search_mcp.tool import TOOL_NAME, parse_arguments, run_search_code, search_code_tool


class TestArguments:
    def test_minimal(self):
        request = parse_arguments({"q": "foo"})
        assert request.q == "foo"
        assert request.per_page == 25

    @pytest.mark.parametrize("arguments", [
        {},
        {"q": ""},
        {"q": "x", "per_page": 0},
        {"q": "x", "per_page": 26},
        {"q": "x", "per_page": 100},
        {"q": "x", "page": 0},
        {"q": "x", "max_items": 0},
        {"q": "x", "max_items": 101},
        {"q": "x", "max_pages": 0},
        {"q": "x", "sort": "stars"},
        {"q": "x", "order": "up"},
    ])
    def test_rejected(self, arguments):
        with pytest.raises(ValidationError) as exc_info:
            parse_arguments(arguments)
        assert exc_info.value.code == "invalid_params"
        assert exc_info.value.details["errors"]

    def test_tool_definition(self):
        tool = search_code_tool()
        assert tool.name == TOOL_NAME == "search-code"
        assert tool.inputSchema["type"] == "object"
        assert tool.inputSchema["required"] == ["q"]
        assert tool.inputSchema["properties"]["per_page"]["maximum"] == 25


class TestRunSearchCode:
    @pytest.mark.asyncio
    async def test_composite_response(self, pages, fake_source):
        source = fake_source(pages([25, 25, 25], total=75))
        content = await run_search_code(SearchAggregator(source), {"q": "foo", "max_items": 60})

        summary, payload, *links = content
        assert isinstance(summary, types.TextContent)
        assert summary.text == "total_count=75, returned 60 items via 3 page(s)"

        data = json.loads(payload.text)
        assert data["total"] == 75
        assert data["incomplete"] is False
        assert len(data["items"]) == 60

        assert len(links) == 50
        assert all(isinstance(link, types.ResourceLink) for link in links)
        assert str(links[0].uri) == "https://github.com/octo/repo/blob/main/src/file0.py"
        assert links[0].name == "octo/repo:src/file0.py"
        assert links[0].mimeType == "text/html"
        assert links[0].description == "View on GitHub"

    @pytest.mark.asyncio
    async def test_invalid_arguments_never_reach_upstream(self, fake_source):
        source = fake_source([])
        with pytest.raises(ValidationError):
            await run_search_code(SearchAggregator(source), {"q": "", "per_page": 50})
        assert source.calls == []

    @pytest.mark.asyncio
    async def test_upstream_failure_propagates(self, pages, fake_source):
        source = fake_source(pages([2, 2]), error=UpstreamError("HTTP 500: boom", status_code=500),
                             fail_on_page=2)
        with pytest.raises(UpstreamError):
            await run_search_code(SearchAggregator(source), {"q": "foo", "per_page": 2})
