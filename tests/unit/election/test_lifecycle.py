"""Tests for the session lifecycle controller."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from ballot.coordination.base import CoordinationClient
from ballot.coordination.events import ConnectionState
from ballot.election.lifecycle import SessionLifecycle, Termination
from ballot.errors import SessionExpiredError


@pytest.fixture
def client() -> AsyncMock:
    """Coordination client double."""
    return AsyncMock(spec=CoordinationClient)


@pytest.fixture
def lifecycle(client: AsyncMock) -> SessionLifecycle:
    """Fresh lifecycle controller."""
    return SessionLifecycle(client)


class TestTermination:
    """Test termination reasons."""

    def test_reason_from_state(self) -> None:
        """A connection state names the reason."""
        assert Termination(state=ConnectionState.EXPIRED).reason == "expired"

    def test_reason_from_error(self) -> None:
        """An error takes precedence over the state."""
        termination = Termination(state=ConnectionState.DISCONNECTED, error=SessionExpiredError())
        assert termination.reason == "SessionExpiredError"


class TestSignal:
    """Test the one-shot termination signal."""

    async def test_signal_before_wait(self, lifecycle: SessionLifecycle) -> None:
        """A signal raised before the wait starts is not lost."""
        lifecycle.signal(state=ConnectionState.DISCONNECTED)

        termination = await asyncio.wait_for(lifecycle.wait(), timeout=1.0)

        assert termination.state is ConnectionState.DISCONNECTED

    async def test_signal_after_wait_starts(self, lifecycle: SessionLifecycle) -> None:
        """A waiter blocked before the signal wakes up."""
        waiter = asyncio.create_task(lifecycle.wait())
        await asyncio.sleep(0)
        assert not waiter.done()

        lifecycle.signal(state=ConnectionState.EXPIRED)

        termination = await asyncio.wait_for(waiter, timeout=1.0)
        assert termination.state is ConnectionState.EXPIRED

    async def test_repeated_signals_wake_once(self, lifecycle: SessionLifecycle) -> None:
        """Only the first of several disconnects is recorded."""
        assert lifecycle.signal(state=ConnectionState.DISCONNECTED) is True
        assert lifecycle.signal(state=ConnectionState.DISCONNECTED) is False
        assert lifecycle.signal(state=ConnectionState.EXPIRED) is False

        termination = await lifecycle.wait()

        assert termination.state is ConnectionState.DISCONNECTED
        assert lifecycle.termination is termination

    async def test_signal_with_error(self, lifecycle: SessionLifecycle) -> None:
        """An error is carried to the waiter."""
        error = SessionExpiredError("expired")
        lifecycle.signal(error=error)

        termination = await lifecycle.wait()

        assert termination.error is error


class TestRelease:
    """Test release of the coordination session."""

    async def test_release_closes_once(
        self, lifecycle: SessionLifecycle, client: AsyncMock
    ) -> None:
        """Releasing twice closes the session once."""
        await lifecycle.release()
        await lifecycle.release()

        client.close.assert_awaited_once()
        assert lifecycle.released

    async def test_context_manager_releases(
        self, lifecycle: SessionLifecycle, client: AsyncMock
    ) -> None:
        """Leaving the context releases the session."""
        lifecycle.signal(state=ConnectionState.DISCONNECTED)

        async with lifecycle:
            await lifecycle.wait()

        client.close.assert_awaited_once()

    async def test_cancelled_wait_still_releases(
        self, lifecycle: SessionLifecycle, client: AsyncMock
    ) -> None:
        """Interrupting the wait releases the session."""

        async def block() -> None:
            async with lifecycle:
                await lifecycle.wait()

        task = asyncio.create_task(block())
        await asyncio.sleep(0)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        client.close.assert_awaited_once()
