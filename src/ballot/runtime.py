"""Runtime wiring for one election participant.

Connects the coordination session, the participant, the event dispatcher
and the session lifecycle controller, and exposes the two operations a
process needs: start the election, then block until it is over.

Example:
    node = ElectionNode(create_client(), namespace="/election")
    await node.start()
    termination = await node.wait_until_terminated()
"""

from __future__ import annotations

import logging

from ballot.coordination.base import CoordinationClient
from ballot.election.dispatcher import EventDispatcher
from ballot.election.lifecycle import SessionLifecycle, Termination
from ballot.election.participant import (
    DEFAULT_NAMESPACE,
    DEFAULT_PREFIX,
    Participant,
    ParticipantState,
)
from ballot.errors import ParticipantStateError
from ballot.observability.logging import bind_candidate

logger = logging.getLogger(__name__)


class ElectionNode:
    """A process taking part in the election through one coordination session.

    Args:
        client: Unconnected coordination session, owned by this node
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
        self.participant = Participant(client, namespace=namespace, prefix=prefix)
        self.lifecycle = SessionLifecycle(client)
        self._dispatcher: EventDispatcher | None = None

    @property
    def dispatcher(self) -> EventDispatcher | None:
        return self._dispatcher

    async def start(self) -> ParticipantState:
        """Connect, volunteer and run the first election cycle.

        Notifications arriving meanwhile are buffered and handled once the
        first cycle has completed. On failure the session is released.

        Returns:
            LEADER or WATCHING
        """
        if self._dispatcher is not None:
            raise ParticipantStateError("Election node already started")

        self._dispatcher = EventDispatcher(self.participant, self.lifecycle)
        try:
            await self.client.connect(self._dispatcher.submit)
            candidate_id = await self.participant.volunteer()
            bind_candidate(candidate_id, self.namespace)
            state = await self.participant.run_election_cycle()
        except BaseException:
            self.participant.terminate("startup failed")
            await self.lifecycle.release()
            raise

        await self._dispatcher.start()
        return state

    async def wait_until_terminated(self) -> Termination:
        """Block until disconnected or expired, then release the session.

        Returns:
            The connection state that ended the session

        Raises:
            ElectionError: If the election ended because of an error
        """
        if self._dispatcher is None:
            raise ParticipantStateError("Election node has not been started")

        async with self.lifecycle:
            try:
                termination = await self.lifecycle.wait()
            finally:
                await self._dispatcher.stop()
                self.participant.terminate("session released")

        logger.info(f"Election over ({termination.reason})")
        if termination.error is not None:
            raise termination.error
        return termination

    async def run(self) -> Termination:
        """Start the election and block until it is over."""
        await self.start()
        return await self.wait_until_terminated()
