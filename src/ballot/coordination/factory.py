"""Coordination client factory.

Creates coordination sessions based on configuration.
"""

from __future__ import annotations

import logging

from ballot.config import Settings, settings
from ballot.coordination.base import CoordinationClient
from ballot.coordination.memory import InMemoryCoordinationService

logger = logging.getLogger(__name__)

_memory_service: InMemoryCoordinationService | None = None


def get_memory_service() -> InMemoryCoordinationService:
    """Get the process-wide in-memory coordination service."""
    global _memory_service
    if _memory_service is None:
        _memory_service = InMemoryCoordinationService()
    return _memory_service


def create_client(config: Settings | None = None) -> CoordinationClient:
    """Create a new coordination session based on configuration.

    Args:
        config: Settings to use (defaults to the global settings)

    Returns:
        An unconnected coordination client
    """
    config = config or settings
    backend = config.backend.lower()

    if backend in {"memory", "inmemory", "in_memory"}:
        return get_memory_service().session()

    if backend in {"zookeeper", "zk"}:
        from ballot.coordination.zookeeper import ZooKeeperClient

        logger.debug(f"Using ZooKeeper at {config.zk_hosts}")
        return ZooKeeperClient(
            hosts=config.zk_hosts,
            session_timeout=config.session_timeout,
            connect_timeout=config.connect_timeout,
        )

    raise ValueError("Unsupported coordination backend. Supported values: memory, zookeeper.")
