"""
The `search-code` tool and the MCP server that exposes it.
"""

import json
import logging
from typing import Any, Union

import pydantic
from mcp import types
from mcp.server.lowlevel import Server

from code_search_mcp import __version__
from code_search_mcp.aggregator import SearchAggregator
from code_search_mcp.errors import ValidationError
from code_search_mcp.models.search import SearchRequest, SearchResult

SERVER_NAME = "github-code-search"
TOOL_NAME = "search-code"

logger = logging.getLogger(__name__)

Content = Union[types.TextContent, types.ResourceLink]


def search_code_tool() -> types.Tool:
    return types.Tool(
        name=TOOL_NAME,
        title="GitHub Code Search",
        description="Search GitHub code with qualifiers (Streamable HTTP).",
        inputSchema=SearchRequest.model_json_schema(),
    )


def parse_arguments(arguments: dict[str, Any]) -> SearchRequest:
    try:
        return SearchRequest.model_validate(arguments or {})
    except pydantic.ValidationError as e:
        problems = [
            f"{'.'.join(str(p) for p in err['loc']) or 'arguments'}: {err['msg']}"
            for err in e.errors()
        ]
        raise ValidationError("Invalid search-code arguments: " + "; ".join(problems),
                              details={"errors": problems}) from e


def render_result(result: SearchResult) -> list[Content]:
    """Summary line, full JSON payload, then up to 50 resource links."""
    content: list[Content] = [
        types.TextContent(type="text", text=result.summary()),
        types.TextContent(type="text", text=json.dumps(result.payload(), indent=2)),
    ]
    for link in result.preview():
        content.append(types.ResourceLink(
            type="resource_link",
            uri=link.uri,
            name=link.name,
            mimeType=link.mime_type,
            description=link.description,
        ))
    return content


async def run_search_code(aggregator: SearchAggregator, arguments: dict[str, Any]) -> list[Content]:
    request = parse_arguments(arguments)
    logger.info("search-code q=%r per_page=%s max_items=%s max_pages=%s",
                request.q, request.per_page, request.max_items, request.max_pages)
    result = await aggregator.aggregate(request)
    return render_result(result)


def build_server(aggregator: SearchAggregator) -> Server:
    server: Server = Server(SERVER_NAME, version=__version__)

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return [search_code_tool()]

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any]) -> list[Content]:
        # Raised errors come back to the caller as an isError tool result.
        if name != TOOL_NAME:
            raise ValueError(f"Unknown tool: {name}")
        return await run_search_code(aggregator, arguments)

    return server
