"""
Streamable HTTP session transport.

Wraps the MCP SDK's StreamableHTTPServerTransport for one session and runs
the MCP server loop for it in a task group. `attach()` returns only once the
loop is connected to the transport streams.
"""

import logging
from typing import Callable, Optional

import anyio
from anyio.abc import TaskGroup, TaskStatus
from mcp.server.lowlevel import Server
from mcp.server.streamable_http import StreamableHTTPServerTransport
from starlette.requests import ClientDisconnect
from starlette.types import Receive, Scope, Send

from code_search_mcp.errors import TransportWriteError

logger = logging.getLogger(__name__)

SEND_FAILURES = (anyio.ClosedResourceError, anyio.BrokenResourceError, ClientDisconnect, OSError)


class McpSessionTransport:
    def __init__(self, session_id: str, server: Server, *, json_response: bool = False):
        self.session_id = session_id
        self._server = server
        self._http = StreamableHTTPServerTransport(
            mcp_session_id=session_id,
            is_json_response_enabled=json_response,
        )
        self._scope: Optional[anyio.CancelScope] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed or self._http.is_terminated

    async def attach(self, task_group: TaskGroup, on_close: Callable[[str], None]) -> None:
        """Start the server loop; `on_close(session_id)` fires when it ends."""

        async def run(*, task_status: TaskStatus[None] = anyio.TASK_STATUS_IGNORED) -> None:
            with anyio.CancelScope() as scope:
                self._scope = scope
                try:
                    async with self._http.connect() as (read_stream, write_stream):
                        task_status.started()
                        await self._server.run(
                            read_stream,
                            write_stream,
                            self._server.create_initialization_options(),
                            stateless=False,
                        )
                except Exception:
                    logger.exception("Server loop for session %s crashed", self.session_id)
                finally:
                    self._closed = True
                    on_close(self.session_id)

        await task_group.start(run)

    async def handle_request(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await self._http.handle_request(scope, receive, send)
        except SEND_FAILURES as e:
            raise TransportWriteError(f"Send failed on session {self.session_id}: {e!r}") from e

    def close(self) -> None:
        self._closed = True
        if self._scope is not None:
            self._scope.cancel()
