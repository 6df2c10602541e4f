"""Shared fakes: an in-memory paged source and a recording transport."""

from typing import Any, Optional

import pytest
from starlette.responses import JSONResponse

from code_search_mcp.models.search import SearchPage


def make_item(i: int, repo: str = "octo/repo") -> dict[str, Any]:
    return {
        "name": f"file{i}.py",
        "path": f"src/file{i}.py",
        "html_url": f"https://github.com/{repo}/blob/main/src/file{i}.py",
        "repository": {"full_name": repo},
    }


def make_pages(sizes: list[int], total: Optional[int] = None) -> list[SearchPage]:
    """Pages with the given item counts; every page but the last links to a next one."""
    total = sum(sizes) if total is None else total
    pages, offset = [], 0
    for n, size in enumerate(sizes):
        pages.append(SearchPage(
            items=[make_item(offset + i) for i in range(size)],
            total_count=total,
            has_next=n < len(sizes) - 1,
        ))
        offset += size
    return pages


class FakeSource:
    def __init__(self, pages: list[SearchPage], error: Optional[Exception] = None, fail_on_page: int = 1):
        self.pages = pages
        self.error = error
        self.fail_on_page = fail_on_page
        self.calls: list[dict[str, Any]] = []

    async def fetch_page(self, q, *, sort=None, order=None, per_page, page, text_match=False) -> SearchPage:
        self.calls.append({"q": q, "sort": sort, "order": order, "per_page": per_page,
                           "page": page, "text_match": text_match})
        if self.error is not None and page == self.fail_on_page:
            raise self.error
        if page - 1 < len(self.pages):
            return self.pages[page - 1]
        return SearchPage(items=[], total_count=0, has_next=False)

    @property
    def pages_requested(self) -> list[int]:
        return [c["page"] for c in self.calls]


class FakeTransport:
    def __init__(self, session_id: str):
        self.session_id = session_id
        self.closed = False
        self.close_calls = 0
        self.requests: list[dict[str, Any]] = []

    async def handle_request(self, scope, receive, send) -> None:
        self.requests.append(scope)
        await JSONResponse({"session": self.session_id},
                           headers={"mcp-session-id": self.session_id})(scope, receive, send)

    def close(self) -> None:
        self.closed = True
        self.close_calls += 1


@pytest.fixture
def pages():
    return make_pages


@pytest.fixture
def fake_source():
    return FakeSource


@pytest.fixture
def connector():
    """Connector that attaches FakeTransports and remembers them by id."""

    class Connector:
        def __init__(self) -> None:
            self.transports: dict[str, FakeTransport] = {}

        async def __call__(self, session_id: str) -> FakeTransport:
            transport = FakeTransport(session_id)
            self.transports[session_id] = transport
            return transport

    return Connector()
