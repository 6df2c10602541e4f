"""
Search models: tool arguments, upstream pages, aggregated result.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

MAX_PER_PAGE = 25
DEFAULT_PER_PAGE = MAX_PER_PAGE
MAX_REQUESTED_ITEMS = 100
ABSOLUTE_MAX_ITEMS = 1000
PREVIEW_LIMIT = 50


class SearchRequest(BaseModel):
    """Arguments of the `search-code` tool."""

    q: str = Field(min_length=1, description="Search query, e.g. `repo:octokit/rest.js path:src`")
    sort: Optional[Literal["indexed"]] = None
    order: Optional[Literal["asc", "desc"]] = None
    per_page: int = Field(DEFAULT_PER_PAGE, ge=1, le=MAX_PER_PAGE)
    page: int = Field(1, ge=1)
    max_items: Optional[int] = Field(None, ge=1, le=MAX_REQUESTED_ITEMS)
    max_pages: Optional[int] = Field(None, ge=1)
    text_match: bool = False

    @property
    def item_limit(self) -> int:
        """Caller bound folded with the absolute ceiling."""
        if self.max_items is None:
            return ABSOLUTE_MAX_ITEMS
        return min(self.max_items, ABSOLUTE_MAX_ITEMS)


class SearchPage(BaseModel):
    """One page as returned by the upstream source."""

    items: list[dict[str, Any]] = []
    total_count: int = 0
    incomplete: bool = False
    has_next: bool = False


class LoopState(str, Enum):
    FETCHING = "fetching"
    BOUNDED_STOP = "bounded_stop"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


class ResultLink(BaseModel):
    uri: str
    name: str
    mime_type: str = "text/html"
    description: str = "View on GitHub"

    @classmethod
    def from_item(cls, item: dict[str, Any]) -> Optional[ResultLink]:
        uri = item.get("html_url")
        if not uri:
            return None
        path = item.get("path") or item.get("name") or uri
        full_name = (item.get("repository") or {}).get("full_name")
        return cls(uri=uri, name=f"{full_name}:{path}" if full_name else path)


class SearchResult(BaseModel):
    total_count: int = 0
    incomplete: bool = False
    items: list[dict[str, Any]] = []
    pages_fetched: int = 0
    stop_reason: LoopState = LoopState.EXHAUSTED

    def summary(self) -> str:
        return (
            f"total_count={self.total_count}, returned {len(self.items)} items "
            f"via {self.pages_fetched} page(s)"
        )

    def payload(self) -> dict[str, Any]:
        return {"total": self.total_count, "incomplete": self.incomplete, "items": self.items}

    def preview(self, limit: int = PREVIEW_LIMIT) -> list[ResultLink]:
        links = []
        for item in self.items[:limit]:
            link = ResultLink.from_item(item)
            if link is not None:
                links.append(link)
        return links
