"""In-memory coordination service.

Suitable for tests and single-process demos. Every client obtained from one
``InMemoryCoordinationService`` shares the same entries, sequence counters
and watches, so several participants can run an election against it inside
one event loop.

The service also exposes the failure hooks a real deployment would produce
on its own: removing an entry, expiring or disconnecting a session, and
making the service unreachable.
"""

from __future__ import annotations

import logging
from enum import Enum

from ballot.coordination.base import CoordinationClient, NotificationSink
from ballot.coordination.events import (
    ConnectionState,
    ConnectionStateChanged,
    Notification,
    NodeRemoved,
)
from ballot.errors import CollaboratorUnavailableError, SessionExpiredError

logger = logging.getLogger(__name__)

SEQUENCE_WIDTH = 10


class SessionStatus(str, Enum):
    """Lifecycle of an in-memory session."""

    NEW = "new"
    CONNECTED = "connected"
    EXPIRED = "expired"
    CLOSED = "closed"


class InMemoryCoordinationService:
    """Shared state behind a set of in-memory sessions."""

    def __init__(self) -> None:
        # namespace -> entry name -> owning session id
        self._entries: dict[str, dict[str, int]] = {}
        self._sequences: dict[str, int] = {}
        # (namespace, entry name) -> ids of sessions watching it
        self._watches: dict[tuple[str, str], set[int]] = {}
        self._sessions: dict[int, InMemoryCoordinationClient] = {}
        self._next_session_id = 1
        self.available = True

    def session(self) -> InMemoryCoordinationClient:
        """Create a new, not yet connected, session."""
        client = InMemoryCoordinationClient(self, self._next_session_id)
        self._sessions[client.session_id] = client
        self._next_session_id += 1
        return client

    def entries(self, namespace: str) -> set[str]:
        """Names of the live entries under ``namespace``."""
        return set(self._entries.get(namespace, {}))

    def create(self, namespace: str, prefix: str, session_id: int) -> str:
        sequence = self._sequences.get(namespace, 0)
        self._sequences[namespace] = sequence + 1
        name = f"{prefix}{sequence:0{SEQUENCE_WIDTH}d}"
        self._entries.setdefault(namespace, {})[name] = session_id
        return name

    def watch(self, namespace: str, name: str, session_id: int) -> bool:
        if name not in self._entries.get(namespace, {}):
            return False
        self._watches.setdefault((namespace, name), set()).add(session_id)
        return True

    def remove(self, namespace: str, name: str) -> None:
        """Remove an entry and fire the watches armed on it."""
        owners = self._entries.get(namespace, {})
        if owners.pop(name, None) is None:
            return
        logger.debug(f"Removed entry {namespace}/{name}")
        for session_id in sorted(self._watches.pop((namespace, name), set())):
            watcher = self._sessions.get(session_id)
            if watcher is not None:
                watcher.deliver(NodeRemoved(candidate_id=name))

    def drop_session_entries(self, session_id: int) -> None:
        for namespace, owners in list(self._entries.items()):
            for name, owner in list(owners.items()):
                if owner == session_id:
                    self.remove(namespace, name)
        for watchers in self._watches.values():
            watchers.discard(session_id)

    def expire_session(self, client: InMemoryCoordinationClient) -> None:
        """Expire a session: its entries vanish and it is told it expired."""
        client.status = SessionStatus.EXPIRED
        self.drop_session_entries(client.session_id)
        client.deliver(ConnectionStateChanged(state=ConnectionState.EXPIRED), force=True)

    def disconnect(self, client: InMemoryCoordinationClient) -> None:
        """Report a connection loss to a session without expiring it."""
        client.deliver(ConnectionStateChanged(state=ConnectionState.DISCONNECTED))


class InMemoryCoordinationClient(CoordinationClient):
    """A session with an ``InMemoryCoordinationService``."""

    def __init__(self, service: InMemoryCoordinationService, session_id: int) -> None:
        self._service = service
        self.session_id = session_id
        self.status = SessionStatus.NEW
        self._sink: NotificationSink | None = None

    def deliver(self, notification: Notification, force: bool = False) -> None:
        if self._sink is None:
            return
        if self.status is SessionStatus.CONNECTED or force:
            self._sink(notification)

    def _check(self) -> None:
        if self.status is SessionStatus.EXPIRED:
            raise SessionExpiredError(f"Session {self.session_id} expired")
        if self.status is SessionStatus.CLOSED:
            raise SessionExpiredError(f"Session {self.session_id} is closed")
        if not self._service.available:
            raise CollaboratorUnavailableError("Coordination service is unreachable")
        if self.status is not SessionStatus.CONNECTED:
            raise CollaboratorUnavailableError(f"Session {self.session_id} is not connected")

    async def connect(self, sink: NotificationSink) -> None:
        if not self._service.available:
            raise CollaboratorUnavailableError("Coordination service is unreachable")
        self._sink = sink
        self.status = SessionStatus.CONNECTED
        self.deliver(ConnectionStateChanged(state=ConnectionState.CONNECTED))

    async def create_ephemeral_sequential(self, namespace: str, prefix: str) -> str:
        self._check()
        return self._service.create(namespace, prefix, self.session_id)

    async def list_children(self, namespace: str) -> set[str]:
        self._check()
        return self._service.entries(namespace)

    async def watch_existence(self, namespace: str, name: str) -> bool:
        self._check()
        return self._service.watch(namespace, name, self.session_id)

    async def close(self) -> None:
        if self.status is SessionStatus.CLOSED:
            return
        was_expired = self.status is SessionStatus.EXPIRED
        self.status = SessionStatus.CLOSED
        if not was_expired:
            self._service.drop_session_entries(self.session_id)
        self._sink = None
