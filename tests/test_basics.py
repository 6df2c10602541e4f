"""Basic unit tests for the github-code-search-mcp package."""

from code_search_mcp import (
    CodeSearchError,
    ClientProtocolError,
    GitHubClient,
    SearchAggregator,
    SessionError,
    SessionRegistry,
    TransportWriteError,
    UpstreamError,
    ValidationError,
    __version__,
)
from code_search_mcp.models.search import ABSOLUTE_MAX_ITEMS, DEFAULT_PER_PAGE, SearchRequest


def test_version():
    assert __version__ == "0.1.0"


def test_public_exports():
    assert SearchAggregator is not None
    assert SessionRegistry is not None
    assert GitHubClient is not None


def test_error_hierarchy():
    for cls in (ClientProtocolError, SessionError, TransportWriteError, UpstreamError, ValidationError):
        assert issubclass(cls, CodeSearchError)


def test_error_attributes():
    err = CodeSearchError(code="test_code", message="something broke")
    assert err.code == "test_code"
    assert str(err) == "something broke"
    assert err.details is None

    err_with_details = SessionError("bad session", details={"id": "123"})
    assert err_with_details.code == "session_error"
    assert err_with_details.details == {"id": "123"}

    missing = ClientProtocolError("no session")
    assert missing.code == "session_required"
    assert missing.status_code == 400

    upstream = UpstreamError("HTTP 502: bad gateway", status_code=502)
    assert upstream.code == "http_error"
    assert upstream.status_code == 502

    assert TransportWriteError("gone").code == "send_failed"
    assert ValidationError("bad").code == "invalid_params"


def test_request_defaults():
    request = SearchRequest(q="foo")
    assert request.per_page == DEFAULT_PER_PAGE == 25
    assert request.page == 1
    assert request.max_items is None
    assert request.item_limit == ABSOLUTE_MAX_ITEMS
    assert request.text_match is False
