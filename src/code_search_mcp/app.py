"""
HTTP routing layer. Serves the MCP endpoint over Streamable HTTP.

Every call to /mcp is resolved to a session through the registry and handed
to that session's transport. Only an `initialize` message may open a
session; other calls must carry a known `mcp-session-id` header.
"""

import contextlib
import json
import logging
from typing import Any, AsyncIterator, Optional

import anyio
from anyio.abc import TaskGroup
from mcp.server.lowlevel import Server
from starlette.applications import Starlette
from starlette.datastructures import Headers
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from code_search_mcp.aggregator import PageSource, SearchAggregator
from code_search_mcp.config import ServerConfig
from code_search_mcp.errors import ClientProtocolError, TransportWriteError
from code_search_mcp.sessions import SessionRegistry, SessionStore
from code_search_mcp.tool import build_server
from code_search_mcp.transport.github import GitHubClient
from code_search_mcp.transport.streamable import McpSessionTransport

MCP_SESSION_ID_HEADER = "mcp-session-id"
MCP_PATH = "/mcp"

logger = logging.getLogger(__name__)


def is_handshake(body: bytes) -> bool:
    """True when the JSON-RPC body (single or batch) carries `initialize`."""
    try:
        message = json.loads(body)
    except ValueError:
        return False
    messages = message if isinstance(message, list) else [message]
    return any(isinstance(m, dict) and m.get("method") == "initialize" for m in messages)


def _replay(body: bytes, receive: Receive) -> Receive:
    """Hand the already-read body to the transport, then fall through."""
    sent = False

    async def _receive() -> Message:
        nonlocal sent
        if not sent:
            sent = True
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return _receive


def _without_session_header(scope: Scope) -> Scope:
    headers = [(k, v) for k, v in scope["headers"] if k.lower() != MCP_SESSION_ID_HEADER.encode()]
    return {**scope, "headers": headers}


def _protocol_error(exc: ClientProtocolError) -> JSONResponse:
    return JSONResponse(
        {"jsonrpc": "2.0", "id": None, "error": {"code": -32600, "message": str(exc)}},
        status_code=exc.status_code,
    )


class McpEndpoint:
    """ASGI endpoint owning the session registry and the session task group."""

    def __init__(self, server: Optional[Server], *, json_response: bool = False,
                 store: Optional[SessionStore] = None):
        self._server = server
        self._json_response = json_response
        self._task_group: Optional[TaskGroup] = None
        self.registry = SessionRegistry(self._connect, store=store)

    @contextlib.asynccontextmanager
    async def run(self) -> AsyncIterator[None]:
        async with anyio.create_task_group() as tg:
            self._task_group = tg
            try:
                yield
            finally:
                self.registry.close_all()
                tg.cancel_scope.cancel()
                self._task_group = None

    async def _connect(self, session_id: str) -> McpSessionTransport:
        if self._task_group is None or self._server is None:
            raise RuntimeError("MCP endpoint is not running")
        transport = McpSessionTransport(session_id, self._server, json_response=self._json_response)
        await transport.attach(self._task_group, on_close=self.registry.release)
        return transport

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive)
        session_id = request.headers.get(MCP_SESSION_ID_HEADER)
        handshake = False
        if request.method == "POST":
            body = await request.body()
            handshake = is_handshake(body)
            receive = _replay(body, receive)

        try:
            session = await self.registry.resolve(session_id, handshake=handshake)
        except ClientProtocolError as e:
            logger.info("Rejected %s %s: %s", request.method, request.url.path, e)
            await _protocol_error(e)(scope, receive, send)
            return

        if session_id is not None and session_id != session.id:
            scope = _without_session_header(scope)

        try:
            await session.transport.handle_request(scope, receive, send)
        except TransportWriteError as e:
            logger.warning("%s", e)


class RequestLogMiddleware:
    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            sid = Headers(scope=scope).get(MCP_SESSION_ID_HEADER, "-")
            logger.info("%s %s sid=%s", scope["method"], scope["path"], sid)
        await self.app(scope, receive, send)


def create_app(config: ServerConfig, source: Optional[PageSource] = None) -> Starlette:
    """Build the Starlette app.

    With no `source`, a GitHubClient is created from `config` and closed on
    shutdown.
    """
    client: Any = source
    if client is None:
        client = GitHubClient(token=config.github_token, base_url=config.api_url)
    endpoint = McpEndpoint(build_server(SearchAggregator(client)), json_response=config.json_response)

    async def healthz(request: Request) -> JSONResponse:
        return JSONResponse({"status": "ok", "sessions": len(endpoint.registry)})

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        async with endpoint.run():
            logger.info("MCP Streamable HTTP endpoint ready at %s", MCP_PATH)
            yield
        if source is None:
            await client.close()

    app = Starlette(
        routes=[
            Route(MCP_PATH, endpoint=endpoint, methods=["GET", "POST", "DELETE"]),
            Route("/healthz", endpoint=healthz, methods=["GET"]),
        ],
        middleware=[
            Middleware(RequestLogMiddleware),
            Middleware(
                CORSMiddleware,
                allow_origins=config.cors_origins,
                allow_methods=["GET", "POST", "DELETE"],
                allow_headers=["content-type", "mcp-session-id", "mcp-protocol-version", "last-event-id"],
                expose_headers=["mcp-session-id"],
            ),
        ],
        lifespan=lifespan,
    )
    app.state.endpoint = endpoint
    return app
