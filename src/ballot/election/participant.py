"""Election participant.

A participant owns one candidate identity for the lifetime of one
coordination session and drives it through the election:

1. volunteer() registers an ephemeral sequential entry under the namespace
2. run_election_cycle() fetches a fresh membership snapshot and either
   becomes leader (lowest sequence) or arms a watch on its predecessor
3. on_predecessor_removed() re-runs the cycle from scratch when the watch fires

Example:
    participant = Participant(client, namespace="/election")
    await participant.volunteer()
    await participant.run_election_cycle()

    if participant.is_leader:
        ...
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from dataclasses import dataclass
from enum import Enum
from typing import TypeVar

from ballot.coordination.base import CoordinationClient
from ballot.election.ordering import order, predecessor_of
from ballot.errors import (
    CandidateNotFoundError,
    CoordinationError,
    InvalidCandidateIdError,
    ParticipantStateError,
    SessionExpiredError,
)
from ballot.observability.metrics import record_election_cycle, record_leadership, record_watch_race

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_NAMESPACE = "/election"
DEFAULT_PREFIX = "c_"


class ParticipantState(str, Enum):
    """States of the election state machine."""

    UNREGISTERED = "unregistered"
    VOLUNTEERING = "volunteering"
    LEADER = "leader"
    WATCHING = "watching"
    TERMINAL = "terminal"


@dataclass(frozen=True, slots=True)
class WatchTarget:
    """The predecessor currently watched and the cycle that armed the watch."""

    candidate_id: str
    cycle: int


class Participant:
    """One candidate in a leader election.

    Not safe for concurrent use: the controlling flow drives it until the
    first election cycle completes, the event dispatcher afterwards.

    Args:
        client: Coordination session owned by this participant
        namespace: Election namespace shared by all candidates
        prefix: Name prefix of candidate entries
    """

    def __init__(
        self,
        client: CoordinationClient,
        namespace: str = DEFAULT_NAMESPACE,
        prefix: str = DEFAULT_PREFIX,
    ) -> None:
        self.client = client
        self.namespace = namespace
        self.prefix = prefix

        self._state = ParticipantState.UNREGISTERED
        self._candidate_id: str | None = None
        self._watch_target: WatchTarget | None = None
        self._cycles = 0

        self._on_elected: list[asyncio.Future[None]] = []

    @property
    def state(self) -> ParticipantState:
        return self._state

    @property
    def candidate_id(self) -> str | None:
        """Id assigned at registration, None before volunteer()."""
        return self._candidate_id

    @property
    def watch_target(self) -> WatchTarget | None:
        return self._watch_target

    @property
    def is_leader(self) -> bool:
        """Check if this participant currently holds leadership."""
        return self._state is ParticipantState.LEADER

    @property
    def terminated(self) -> bool:
        return self._state is ParticipantState.TERMINAL

    async def volunteer(self) -> str:
        """Register this participant as a candidate.

        Callable once per session.

        Returns:
            The candidate id assigned by the coordination service

        Raises:
            ParticipantStateError: If already volunteered in this session
        """
        if self._state is not ParticipantState.UNREGISTERED:
            raise ParticipantStateError(
                f"Cannot volunteer from state {self._state.value}; a new session is required"
            )

        self._candidate_id = await self._call(
            self.client.create_ephemeral_sequential(self.namespace, self.prefix)
        )
        self._state = ParticipantState.VOLUNTEERING
        logger.info(f"Registered candidate {self.namespace}/{self._candidate_id}")
        return self._candidate_id

    async def run_election_cycle(self) -> ParticipantState:
        """Decide leadership against a fresh membership snapshot.

        Either becomes leader or arms a watch on the immediate predecessor.
        If the predecessor disappears between the snapshot and the watch,
        the attempt is discarded and repeated with a new snapshot.

        Returns:
            LEADER or WATCHING

        Raises:
            ParticipantStateError: If not registered or already terminal
            SessionExpiredError: If the session expired (participant is terminal)
            CollaboratorUnavailableError: If the service is unreachable
        """
        candidate_id = self._candidate_id
        if candidate_id is None or self._state is ParticipantState.TERMINAL:
            raise ParticipantStateError(
                f"Cannot run an election cycle from state {self._state.value}"
            )

        self._cycles += 1
        record_election_cycle()

        while True:
            snapshot = await self._call(self.client.list_children(self.namespace))

            try:
                predecessor = predecessor_of(candidate_id, order(snapshot))
            except (CandidateNotFoundError, InvalidCandidateIdError):
                self._terminate("inconsistent snapshot")
                raise

            if predecessor is None:
                self._handle_election()
                return self._state

            exists = await self._call(self.client.watch_existence(self.namespace, predecessor))
            if not exists:
                record_watch_race()
                logger.debug(f"Predecessor {predecessor} vanished before watch, retrying")
                continue

            self._watch_target = WatchTarget(candidate_id=predecessor, cycle=self._cycles)
            self._state = ParticipantState.WATCHING
            logger.info(f"Not the leader, watching {predecessor}")
            return self._state

    async def on_predecessor_removed(self) -> ParticipantState:
        """Re-run the election after the watched predecessor was removed.

        Any number of candidates may have failed at the same time, so the
        full order is recomputed from a fresh snapshot.
        """
        if self._watch_target is not None:
            logger.info(f"Watched candidate {self._watch_target.candidate_id} removed")
        self._watch_target = None
        return await self.run_election_cycle()

    def terminate(self, reason: str) -> None:
        """Leave the election; this identity can no longer be used."""
        if self._state is ParticipantState.TERMINAL:
            return
        self._terminate(reason)

    async def wait_for_leadership(self, timeout: float | None = None) -> bool:
        """Wait until this participant becomes the leader.

        Args:
            timeout: Maximum time to wait in seconds (None = wait forever)

        Returns:
            True if leadership was acquired, False on timeout or termination
        """
        if self.is_leader:
            return True
        if self.terminated:
            return False

        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._on_elected.append(future)

        try:
            await asyncio.wait_for(future, timeout=timeout)
        except asyncio.TimeoutError:
            if future in self._on_elected:
                self._on_elected.remove(future)
            return False
        return self.is_leader

    async def _call(self, operation: Awaitable[T]) -> T:
        try:
            return await operation
        except SessionExpiredError:
            self._terminate("session expired")
            raise
        except CoordinationError as e:
            self._terminate(f"coordination failure: {e}")
            raise

    def _handle_election(self) -> None:
        was_leader = self.is_leader
        self._watch_target = None
        self._state = ParticipantState.LEADER
        if was_leader:
            return

        logger.info(f"Elected as leader ({self._candidate_id})")
        record_leadership(True)
        for future in self._on_elected:
            if not future.done():
                future.set_result(None)
        self._on_elected.clear()

    def _terminate(self, reason: str) -> None:
        was_leader = self.is_leader
        self._state = ParticipantState.TERMINAL
        self._watch_target = None

        if was_leader:
            logger.warning(f"Lost leadership ({self._candidate_id}): {reason}")
            record_leadership(False)
        else:
            logger.info(f"Left the election ({self._candidate_id}): {reason}")

        # Wake leadership waiters; they observe the terminal state
        for future in self._on_elected:
            if not future.done():
                future.set_result(None)
        self._on_elected.clear()
