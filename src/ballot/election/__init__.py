"""Leader election on a coordination service.

Provides:
- Deterministic ordering of candidates
- The election participant state machine
- Sequential dispatch of coordination notifications
- The session lifecycle controller

Example:
    from ballot.election import Participant

    participant = Participant(client, namespace="/election")
    await participant.volunteer()
    await participant.run_election_cycle()
"""

from ballot.election.dispatcher import EventDispatcher
from ballot.election.lifecycle import SessionLifecycle, Termination
from ballot.election.ordering import is_leader, order, parse_sequence, predecessor_of
from ballot.election.participant import Participant, ParticipantState, WatchTarget

__all__ = [
    "EventDispatcher",
    "Participant",
    "ParticipantState",
    "SessionLifecycle",
    "Termination",
    "WatchTarget",
    "is_leader",
    "order",
    "parse_sequence",
    "predecessor_of",
]
