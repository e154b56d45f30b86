"""Apache ZooKeeper coordination client.

Uses kazoo with asyncio.to_thread for non-blocking calls. kazoo invokes
state listeners and watch callbacks on its own threads; both are translated
into notifications and handed to the sink, which moves them onto the event
loop.

Example:
    client = ZooKeeperClient(hosts="zk1:2181,zk2:2181", session_timeout=3.0)
    await client.connect(dispatcher.submit)
    name = await client.create_ephemeral_sequential("/election", "c_")
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any, TypeVar

from kazoo.client import KazooClient, KazooState
from kazoo.exceptions import KazooException, NoNodeError
from kazoo.exceptions import SessionExpiredError as KazooSessionExpiredError
from kazoo.handlers.threading import KazooTimeoutError
from kazoo.protocol.states import EventType, WatchedEvent

from ballot.coordination.base import CoordinationClient, NotificationSink
from ballot.coordination.events import ConnectionState, ConnectionStateChanged, NodeRemoved
from ballot.errors import CollaboratorUnavailableError, SessionExpiredError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_STATE_MAP = {
    KazooState.CONNECTED: ConnectionState.CONNECTED,
    KazooState.SUSPENDED: ConnectionState.DISCONNECTED,
    KazooState.LOST: ConnectionState.EXPIRED,
}


def _join(namespace: str, name: str) -> str:
    return f"{namespace.rstrip('/')}/{name}"


def _basename(path: str) -> str:
    return path.rsplit("/", 1)[-1]


class ZooKeeperClient(CoordinationClient):
    """One ZooKeeper session.

    Args:
        hosts: Comma-separated host:port list
        session_timeout: Session timeout in seconds
        connect_timeout: Time allowed for the initial connection in seconds
        client: Pre-built KazooClient (used by tests)
    """

    def __init__(
        self,
        hosts: str = "localhost:2181",
        session_timeout: float = 3.0,
        connect_timeout: float = 15.0,
        client: KazooClient | None = None,
    ) -> None:
        self.hosts = hosts
        self.session_timeout = session_timeout
        self.connect_timeout = connect_timeout
        self._zk = client or KazooClient(hosts=hosts, timeout=session_timeout)
        self._sink: NotificationSink | None = None
        self._closed = False

    async def connect(self, sink: NotificationSink) -> None:
        self._sink = sink
        self._zk.add_listener(self._on_state_change)
        await self._run(self._zk.start, timeout=self.connect_timeout)
        logger.info(f"Connected to ZooKeeper at {self.hosts}")

    async def create_ephemeral_sequential(self, namespace: str, prefix: str) -> str:
        path = await self._run(
            self._zk.create,
            _join(namespace, prefix),
            b"",
            ephemeral=True,
            sequence=True,
            makepath=True,
        )
        logger.debug(f"Created znode {path}")
        return _basename(path)

    async def list_children(self, namespace: str) -> set[str]:
        try:
            children = await self._run(self._zk.get_children, namespace)
        except CollaboratorUnavailableError as e:
            if isinstance(e.__cause__, NoNodeError):
                return set()
            raise
        return set(children)

    async def watch_existence(self, namespace: str, name: str) -> bool:
        stat = await self._run(self._zk.exists, _join(namespace, name), watch=self._on_watch)
        return stat is not None

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._zk.remove_listener(self._on_state_change)
        await self._run(self._zk.stop)
        await self._run(self._zk.close)
        logger.info("ZooKeeper session closed")

    async def _run(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        try:
            return await asyncio.to_thread(func, *args, **kwargs)
        except KazooSessionExpiredError as e:
            raise SessionExpiredError("ZooKeeper session expired") from e
        except KazooTimeoutError as e:
            raise CollaboratorUnavailableError(f"Timed out connecting to {self.hosts}") from e
        except KazooException as e:
            raise CollaboratorUnavailableError(f"ZooKeeper call failed: {e!r}") from e

    def _on_state_change(self, state: str) -> None:
        # Runs on a kazoo thread; must not block
        mapped = _STATE_MAP.get(state)
        if mapped is None or self._sink is None or self._closed:
            return
        self._sink(ConnectionStateChanged(state=mapped))

    def _on_watch(self, event: WatchedEvent) -> None:
        # Runs on a kazoo thread. Watches are one-shot, so any other event
        # on the path re-arms until the znode is gone.
        if self._sink is None or self._closed:
            return
        if event.type != EventType.DELETED:
            try:
                if self._zk.exists(event.path, watch=self._on_watch) is not None:
                    logger.debug(f"Re-armed watch on {event.path} after {event.type}")
                    return
            except KazooException as e:
                logger.warning(f"Could not re-arm watch on {event.path}: {e!r}")
        self._sink(NodeRemoved(candidate_id=_basename(event.path)))
