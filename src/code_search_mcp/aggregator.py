"""
Search aggregator. Folds a paged upstream source into one bounded result.

The paging loop is a small state machine. `gate` and `step` are pure
functions over an immutable `Progress`, so every termination rule can be
exercised without network I/O; `SearchAggregator` only drives them.

Per iteration, in order:
  1. stop before fetching once `max_pages` pages were fetched
  2. fetch; keep total_count from the first page, OR in `incomplete`
  3. append the page items
  4. stop on an empty page (exhausted)
  5. stop once the caller's `max_items` is reached
  6. stop and truncate at the absolute ceiling
  7. stop when upstream has no next page (exhausted)
  8. advance the page number
"""

import logging
from typing import Any, Optional, Protocol

from pydantic import BaseModel

from code_search_mcp.errors import UpstreamError
from code_search_mcp.models.search import (
    ABSOLUTE_MAX_ITEMS,
    LoopState,
    SearchPage,
    SearchRequest,
    SearchResult,
)

logger = logging.getLogger(__name__)


class PageSource(Protocol):
    async def fetch_page(
        self,
        q: str,
        *,
        sort: Optional[str] = None,
        order: Optional[str] = None,
        per_page: int,
        page: int,
        text_match: bool = False,
    ) -> SearchPage: ...


class Progress(BaseModel):
    model_config = {"frozen": True}

    state: LoopState = LoopState.FETCHING
    page: int = 1
    pages_fetched: int = 0
    total_count: int = 0
    incomplete: bool = False
    items: list[dict[str, Any]] = []

    @property
    def done(self) -> bool:
        return self.state is not LoopState.FETCHING

    def to_result(self) -> SearchResult:
        return SearchResult(
            total_count=self.total_count,
            incomplete=self.incomplete,
            items=self.items,
            pages_fetched=self.pages_fetched,
            stop_reason=self.state,
        )


def start(request: SearchRequest) -> Progress:
    return Progress(page=request.page)


def gate(progress: Progress, request: SearchRequest) -> Progress:
    """Rule 1: the page budget is checked before every fetch."""
    if progress.done:
        return progress
    if request.max_pages is not None and progress.pages_fetched >= request.max_pages:
        return progress.model_copy(update={"state": LoopState.BOUNDED_STOP})
    return progress


def step(progress: Progress, page: SearchPage, request: SearchRequest) -> Progress:
    """Rules 2-8: fold one fetched page into the running progress."""
    first = progress.pages_fetched == 0
    items = progress.items + page.items
    update: dict[str, Any] = {
        "pages_fetched": progress.pages_fetched + 1,
        "total_count": page.total_count if first else progress.total_count,
        "incomplete": progress.incomplete or page.incomplete,
    }

    if not page.items:
        update["state"] = LoopState.EXHAUSTED
    elif request.max_items is not None and len(items) >= request.max_items:
        items = items[:request.item_limit]
        update["state"] = LoopState.BOUNDED_STOP
    elif len(items) >= ABSOLUTE_MAX_ITEMS:
        items = items[:ABSOLUTE_MAX_ITEMS]
        update["state"] = LoopState.BOUNDED_STOP
    elif not page.has_next:
        update["state"] = LoopState.EXHAUSTED
    else:
        update["page"] = progress.page + 1

    update["items"] = items
    return progress.model_copy(update=update)


def fail(progress: Progress) -> Progress:
    return progress.model_copy(update={"state": LoopState.FAILED, "items": []})


class SearchAggregator:
    def __init__(self, source: PageSource):
        self._source = source

    async def aggregate(self, request: SearchRequest) -> SearchResult:
        """Run the paging loop to completion.

        Pages are fetched one at a time in increasing order. Any fetch
        failure aborts the run with `UpstreamError`; nothing accumulated so
        far is returned.
        """
        progress = start(request)
        while True:
            progress = gate(progress, request)
            if progress.done:
                break
            try:
                page = await self._source.fetch_page(
                    request.q,
                    sort=request.sort,
                    order=request.order,
                    per_page=request.per_page,
                    page=progress.page,
                    text_match=request.text_match,
                )
            except UpstreamError as e:
                progress = fail(progress)
                logger.warning("Search %r failed on page %s: %s", request.q, progress.page, e)
                raise
            except Exception as e:
                progress = fail(progress)
                logger.warning("Search %r failed on page %s: %s", request.q, progress.page, e)
                raise UpstreamError(f"Fetching page {progress.page} failed: {e}", code="bad_response") from e
            progress = step(progress, page, request)
            if progress.done:
                break

        logger.info(
            "Search %r stopped (%s) after %s page(s) with %s items",
            request.q, progress.state.value, progress.pages_fetched, len(progress.items),
        )
        return progress.to_result()
