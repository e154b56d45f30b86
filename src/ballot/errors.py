"""Error taxonomy for the election core.

Races between a membership snapshot and arming a watch are not errors; they
are retried inside the election cycle and never surface here.
"""

from __future__ import annotations


class ElectionError(Exception):
    """Base exception for election errors."""

    pass


class ParticipantStateError(ElectionError):
    """Operation not permitted in the participant's current state."""

    pass


class InvalidCandidateIdError(ElectionError, ValueError):
    """Candidate id carries no numeric sequence suffix."""

    pass


class CandidateNotFoundError(ElectionError):
    """A membership snapshot does not contain the participant's own id."""

    def __init__(self, candidate_id: str) -> None:
        super().__init__(f"Candidate {candidate_id!r} is not in the membership snapshot")
        self.candidate_id = candidate_id


class CoordinationError(ElectionError):
    """Base exception for coordination service failures."""

    pass


class SessionExpiredError(CoordinationError):
    """The coordination session expired; its candidate id is void."""

    pass


class CollaboratorUnavailableError(CoordinationError):
    """The coordination service could not be reached."""

    pass
