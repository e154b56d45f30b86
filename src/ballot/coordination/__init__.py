"""Coordination service clients.

Supported backends:
- zookeeper: Apache ZooKeeper via kazoo
- memory: in-process service for tests and demos
"""

from ballot.coordination.base import CoordinationClient, NotificationSink
from ballot.coordination.factory import create_client, get_memory_service
from ballot.coordination.memory import InMemoryCoordinationClient, InMemoryCoordinationService

__all__ = [
    "CoordinationClient",
    "NotificationSink",
    "InMemoryCoordinationClient",
    "InMemoryCoordinationService",
    "create_client",
    "get_memory_service",
]
