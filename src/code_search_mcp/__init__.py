"""
github-code-search-mcp: GitHub code search over MCP Streamable HTTP.

Session-aware Streamable HTTP endpoint exposing one `search-code` tool that
pages through the GitHub code search API into a single bounded result.
"""

__version__ = "0.1.0"

from code_search_mcp.aggregator import SearchAggregator
from code_search_mcp.errors import (
    CodeSearchError,
    ClientProtocolError,
    SessionError,
    TransportWriteError,
    UpstreamError,
    ValidationError,
)
from code_search_mcp.models.search import SearchPage, SearchRequest, SearchResult
from code_search_mcp.sessions import InMemorySessionStore, SessionRegistry
from code_search_mcp.transport.github import GitHubClient

__all__ = [
    "SearchAggregator",
    "SessionRegistry",
    "InMemorySessionStore",
    "GitHubClient",
    "SearchRequest",
    "SearchPage",
    "SearchResult",
    "CodeSearchError",
    "ClientProtocolError",
    "SessionError",
    "TransportWriteError",
    "UpstreamError",
    "ValidationError",
]
