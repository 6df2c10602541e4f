"""
Session registry: maps session ids to live streaming transports.

The registry is the sole owner of every transport it registers. A session
is published only after its transport is fully attached, so a lookup can
never observe a half-built entry. Store operations never await, which keeps
insert and delete atomic on the event loop.
"""

from __future__ import annotations

import logging
import secrets
import time
from typing import Any, Awaitable, Callable, Iterator, Optional, Protocol

from code_search_mcp.errors import ClientProtocolError, SessionError

logger = logging.getLogger(__name__)


class Transport(Protocol):
    @property
    def closed(self) -> bool: ...

    async def handle_request(self, scope: Any, receive: Any, send: Any) -> None: ...

    def close(self) -> None: ...


Connector = Callable[[str], Awaitable[Transport]]


def new_session_id() -> str:
    return secrets.token_hex(16)


class Session:
    __slots__ = ("id", "transport", "created_at")

    def __init__(self, id: str, transport: Transport):
        self.id = id
        self.transport = transport
        self.created_at = time.time()

    def __repr__(self) -> str:
        return f"Session(id={self.id!r})"


class SessionStore(Protocol):
    def get(self, session_id: str) -> Optional[Session]: ...

    def put(self, session: Session) -> None: ...

    def delete(self, session_id: str) -> Optional[Session]: ...

    def __contains__(self, session_id: object) -> bool: ...

    def __iter__(self) -> Iterator[str]: ...

    def __len__(self) -> int: ...


class InMemorySessionStore:
    """Process-local store. Entries vanish with the process."""

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}

    def get(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    def put(self, session: Session) -> None:
        if session.id in self._sessions:
            raise SessionError(f"Session {session.id} already registered", details={"id": session.id})
        self._sessions[session.id] = session

    def delete(self, session_id: str) -> Optional[Session]:
        return self._sessions.pop(session_id, None)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._sessions))

    def __len__(self) -> int:
        return len(self._sessions)


class SessionRegistry:
    def __init__(
        self,
        connector: Connector,
        store: Optional[SessionStore] = None,
        id_factory: Callable[[], str] = new_session_id,
    ):
        self._connector = connector
        self._store: SessionStore = store if store is not None else InMemorySessionStore()
        self._id_factory = id_factory

    def __len__(self) -> int:
        return len(self._store)

    def get(self, session_id: str) -> Optional[Session]:
        return self._store.get(session_id)

    async def resolve(self, session_id: Optional[str] = None, *, handshake: bool = False) -> Session:
        """Return the session for `session_id`, opening one for a handshake.

        A known id always wins. Otherwise only a handshake may create a
        session; any other call raises `ClientProtocolError` and leaves the
        registry untouched.
        """
        if session_id is not None:
            session = self._store.get(session_id)
            if session is not None:
                return session
        if not handshake:
            if session_id is None:
                raise ClientProtocolError("Bad Request: No valid session ID provided")
            raise ClientProtocolError(
                f"Not Found: unknown session {session_id}", code="unknown_session", status_code=404,
            )
        return await self._open()

    async def _open(self) -> Session:
        session_id = self._id_factory()
        while session_id in self._store:
            session_id = self._id_factory()

        transport = await self._connector(session_id)
        session = Session(session_id, transport)
        try:
            self._store.put(session)
        except SessionError:
            transport.close()
            raise
        logger.info("Session %s opened (%s live)", session_id, len(self._store))

        # The transport may have shut down while attaching; its close signal
        # found nothing to evict then.
        if transport.closed:
            self.release(session_id)
        return session

    def release(self, session_id: str) -> None:
        """Evict `session_id` and close its transport. Unknown ids are ignored."""
        session = self._store.delete(session_id)
        if session is None:
            return
        session.transport.close()
        logger.info("Session %s released (%s live)", session_id, len(self._store))

    def close_all(self) -> None:
        for session_id in list(self._store):
            self.release(session_id)
