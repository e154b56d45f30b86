"""Sequential delivery of coordination notifications.

The coordination client hands notifications to ``EventDispatcher.submit``
from whatever thread it runs callbacks on. They are queued on the event
loop and handled one at a time, in arrival order: a removal that triggers
a new election cycle is fully handled before the next notification is
looked at.
"""

from __future__ import annotations

import asyncio
import logging

from ballot.coordination.events import (
    ConnectionState,
    ConnectionStateChanged,
    Notification,
    NodeRemoved,
)
from ballot.election.lifecycle import SessionLifecycle
from ballot.election.participant import Participant
from ballot.errors import ElectionError
from ballot.observability.metrics import record_notification

logger = logging.getLogger(__name__)


class EventDispatcher:
    """Single sequential channel from the coordination service to a participant.

    Must be created from within the running event loop. Notifications
    submitted before ``start()`` are buffered and handled once it runs.
    """

    def __init__(self, participant: Participant, lifecycle: SessionLifecycle) -> None:
        self._participant = participant
        self._lifecycle = lifecycle
        self._loop = asyncio.get_running_loop()
        self._queue: asyncio.Queue[Notification] = asyncio.Queue()
        self._running = False
        self._task: asyncio.Task[None] | None = None
        self._connection_state: ConnectionState | None = None

    @property
    def connection_state(self) -> ConnectionState | None:
        """Last connection state reported by the coordination service."""
        return self._connection_state

    @property
    def pending_count(self) -> int:
        """Number of notifications waiting to be handled."""
        return self._queue.qsize()

    def submit(self, notification: Notification) -> None:
        """Queue a notification. Safe to call from any thread."""
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is self._loop:
            self._queue.put_nowait(notification)
        else:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, notification)

    async def start(self) -> None:
        """Start handling queued notifications."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._process_loop())

    async def stop(self) -> None:
        """Stop handling notifications."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def drain(self) -> None:
        """Wait for all queued notifications to be handled."""
        await self._queue.join()

    async def dispatch(self, notification: Notification) -> None:
        """Handle one notification to completion."""
        record_notification(notification.kind)

        if isinstance(notification, ConnectionStateChanged):
            self._on_connection_state(notification)
        elif isinstance(notification, NodeRemoved):
            await self._on_node_removed(notification.candidate_id)

    def _on_connection_state(self, event: ConnectionStateChanged) -> None:
        state = event.state
        self._connection_state = state

        if not event.terminal:
            logger.info("Connected to coordination service")
            return

        logger.warning(f"Disconnected from coordination service ({state.value})")
        # Leadership is revoked here, not when the controlling flow wakes
        if state is ConnectionState.EXPIRED:
            self._participant.terminate("session expired")
        else:
            self._participant.terminate("disconnected")
        self._lifecycle.signal(state=state)

    async def _on_node_removed(self, candidate_id: str) -> None:
        target = self._participant.watch_target
        if target is None or target.candidate_id != candidate_id:
            logger.debug(f"Ignoring removal of unwatched candidate {candidate_id}")
            return

        try:
            await self._participant.on_predecessor_removed()
        except ElectionError as e:
            logger.error(f"Re-election failed: {e}")
            self._participant.terminate(str(e))
            self._lifecycle.signal(error=e)

    async def _process_loop(self) -> None:
        while self._running:
            notification = await self._queue.get()
            try:
                await self.dispatch(notification)
            except Exception as e:
                logger.exception("Error dispatching notification")
                self._participant.terminate("dispatch failure")
                self._lifecycle.signal(error=e)
            finally:
                self._queue.task_done()
