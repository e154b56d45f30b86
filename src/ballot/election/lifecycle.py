"""Session lifecycle controller.

Blocks the controlling flow until the session is disconnected or expired
(or the election failed), then releases the coordination session.

Example:
    async with SessionLifecycle(client) as lifecycle:
        termination = await lifecycle.wait()
    # session released here, even if the wait was cancelled
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from types import TracebackType

from ballot.coordination.base import CoordinationClient
from ballot.coordination.events import ConnectionState
from ballot.observability.metrics import record_termination

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Termination:
    """Why the participant's session ended."""

    state: ConnectionState | None = None
    error: BaseException | None = None

    @property
    def reason(self) -> str:
        if self.error is not None:
            return type(self.error).__name__
        if self.state is not None:
            return self.state.value
        return "unknown"


class SessionLifecycle:
    """One-shot termination signal plus release of the coordination session.

    ``signal()`` may be called any number of times, before or after
    ``wait()`` starts; only the first call is recorded and the wait resumes
    exactly once.
    """

    def __init__(self, client: CoordinationClient) -> None:
        self._client = client
        self._terminated = asyncio.Event()
        self._termination: Termination | None = None
        self._released = False

    @property
    def signaled(self) -> bool:
        return self._terminated.is_set()

    @property
    def termination(self) -> Termination | None:
        return self._termination

    @property
    def released(self) -> bool:
        return self._released

    def signal(
        self,
        state: ConnectionState | None = None,
        error: BaseException | None = None,
    ) -> bool:
        """Record the termination condition and wake the waiter.

        Returns:
            True if this call terminated the session, False if it already was
        """
        if self._terminated.is_set():
            logger.debug("Termination already signaled, ignoring")
            return False

        self._termination = Termination(state=state, error=error)
        record_termination(self._termination.reason)
        self._terminated.set()
        return True

    async def wait(self) -> Termination:
        """Suspend until the session terminates."""
        await self._terminated.wait()
        return self._termination or Termination()

    async def release(self) -> None:
        """Close the coordination session; only the first call has effect."""
        if self._released:
            return
        self._released = True
        await self._client.close()
        logger.info("Coordination session released")

    async def __aenter__(self) -> SessionLifecycle:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        # Shield so a cancelled wait still closes the session
        await asyncio.shield(self.release())
