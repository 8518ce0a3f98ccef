"""
Session bookkeeping for the streamable HTTP transport.

A session moves through ``absent -> pending -> active -> absent``. It is
pending from the moment its transport is created until the transport reports
a successful initialization, and only then does it appear in the table. A
request naming a pending session is answered as not found; clients only learn
the identifier from the initialization response, so the window is narrow.

Table mutation and request routing are plain functions over a mapping, so the
lifecycle can be exercised without a network stack.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Union


@dataclass(frozen=True)
class Session:
    """A live transport and the server instance that owns it."""
    session_id: str
    transport: Any
    server: Any


@dataclass(frozen=True)
class SessionInitialized:
    """The transport answered its first request with the session identifier."""
    session: Session


@dataclass(frozen=True)
class SessionClosed:
    """The transport was terminated or its server stopped running."""
    session_id: str


SessionEvent = Union[SessionInitialized, SessionClosed]


def transition(sessions: Mapping[str, Session], event: SessionEvent) -> Dict[str, Session]:
    """
    Return the session mapping that results from applying an event.

    The input mapping is not modified. Closing an identifier that is not
    registered is a no-op.
    """
    updated = dict(sessions)
    if isinstance(event, SessionInitialized):
        updated[event.session.session_id] = event.session
    elif isinstance(event, SessionClosed):
        updated.pop(event.session_id, None)
    else:
        raise TypeError(f"Unsupported session event: {event!r}")
    return updated


class SessionTable:
    """
    Registry of active sessions keyed by session identifier.

    Each ``apply`` swaps in a new mapping in one assignment, so lookups never
    observe a half-applied change.
    """

    def __init__(self):
        self._sessions: Dict[str, Session] = {}

    def apply(self, event: SessionEvent) -> None:
        self._sessions = transition(self._sessions, event)

    def get(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    def snapshot(self) -> Mapping[str, Session]:
        """Read-only view of the current mapping."""
        return MappingProxyType(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._sessions))


class Route(str, Enum):
    """What to do with an inbound /mcp request."""
    FORWARD = "forward"
    NOT_FOUND = "not_found"
    CREATE = "create"
    INVALID = "invalid"


def route_request(method: str, session_id: Optional[str], sessions: Union[SessionTable, Mapping[str, Session]]) -> Route:
    """
    Decide how to handle a request.

    Args:
        method: HTTP method
        session_id: Value of the mcp-session-id header, if any
        sessions: Registered sessions

    Returns:
        FORWARD for a registered session, NOT_FOUND for an unknown one,
        CREATE for a POST without a session, INVALID otherwise
    """
    if session_id:
        return Route.FORWARD if session_id in sessions else Route.NOT_FOUND
    if method.upper() == "POST":
        return Route.CREATE
    return Route.INVALID
