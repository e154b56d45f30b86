"""Tests for the coordination client factory."""

import pytest

from ballot.config import Settings
from ballot.coordination.factory import create_client, get_memory_service
from ballot.coordination.memory import InMemoryCoordinationClient
from ballot.coordination.zookeeper import ZooKeeperClient


class TestCreateClient:
    """Test backend selection."""

    def test_memory_backend(self) -> None:
        """The memory backend shares one process-wide service."""
        client = create_client(Settings(backend="memory"))

        assert isinstance(client, InMemoryCoordinationClient)
        assert get_memory_service() is get_memory_service()

    def test_zookeeper_backend(self) -> None:
        """The zookeeper backend is configured from settings."""
        config = Settings(backend="zookeeper", ZK_HOSTS="zk1:2181,zk2:2181", ZK_SESSION_TIMEOUT=5.0)

        client = create_client(config)

        assert isinstance(client, ZooKeeperClient)
        assert client.hosts == "zk1:2181,zk2:2181"
        assert client.session_timeout == 5.0

    def test_unknown_backend(self) -> None:
        """Unknown backends are rejected."""
        with pytest.raises(ValueError):
            create_client(Settings(backend="etcd"))
