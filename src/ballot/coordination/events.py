"""Notifications delivered by the coordination service.

Two classes of notification reach the election core:
- ConnectionStateChanged: the session connected, disconnected or expired
- NodeRemoved: an entry this participant armed a watch on was removed
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum


class ConnectionState(str, Enum):
    """State of the coordination session."""

    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    EXPIRED = "expired"


@dataclass(frozen=True, slots=True)
class ConnectionStateChanged:
    """The coordination session changed state."""

    state: ConnectionState
    kind: str = "connection"
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def terminal(self) -> bool:
        """Whether this state ends the participant's session."""
        return self.state is not ConnectionState.CONNECTED


@dataclass(frozen=True, slots=True)
class NodeRemoved:
    """A watched candidate entry was removed."""

    candidate_id: str
    kind: str = "node_removed"
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


Notification = ConnectionStateChanged | NodeRemoved
