"""Coordination service contract.

Defines the abstract interface the election core requires from a
coordination service (ZooKeeper, or the in-memory service used in tests).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable

from ballot.coordination.events import Notification

# Receives notifications from the coordination service. Implementations may
# invoke it from any thread; the sink is responsible for handing the
# notification over to the event loop.
NotificationSink = Callable[[Notification], None]


class CoordinationClient(ABC):
    """One session with a coordination service.

    A client owns exactly one session. Entries it creates are ephemeral and
    disappear when the session ends. All operations raise
    ``SessionExpiredError`` once the session has expired and
    ``CollaboratorUnavailableError`` when the service cannot be reached.
    """

    @abstractmethod
    async def connect(self, sink: NotificationSink) -> None:
        """Open the session and start delivering notifications to ``sink``.

        Connection state changes and watch notifications are delivered to
        ``sink`` one at a time, in the order the service produced them.
        """
        ...

    @abstractmethod
    async def create_ephemeral_sequential(self, namespace: str, prefix: str) -> str:
        """Create a sequential ephemeral entry under ``namespace``.

        Args:
            namespace: Parent path shared by all candidates (e.g., "/election")
            prefix: Name prefix of the entry (e.g., "c_")

        Returns:
            The entry name without the namespace (e.g., "c_0000000003")
        """
        ...

    @abstractmethod
    async def list_children(self, namespace: str) -> set[str]:
        """Return the names of the live entries under ``namespace``.

        No ordering is guaranteed.
        """
        ...

    @abstractmethod
    async def watch_existence(self, namespace: str, name: str) -> bool:
        """Check whether an entry exists and arm a one-shot removal watch on it.

        The check and the arming happen in one atomic step: a removal that
        happens after this returns True is always delivered to the sink as a
        ``NodeRemoved`` notification, exactly once.

        Returns:
            True if the entry exists, False if it is already gone
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release the session and every ephemeral entry it owns."""
        ...
