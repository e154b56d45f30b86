"""Deterministic ordering of election candidates.

Candidate ids end in the sequence number assigned by the coordination
service (``c_0000000007``). Ordering is by that number, never by the raw
string, so ids whose sequence has outgrown the zero padding still sort
correctly.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from ballot.errors import CandidateNotFoundError, InvalidCandidateIdError

_SEQUENCE_SUFFIX = re.compile(r"(\d+)$")


def parse_sequence(candidate_id: str) -> int:
    """Return the numeric sequence suffix of a candidate id."""
    match = _SEQUENCE_SUFFIX.search(candidate_id)
    if match is None:
        raise InvalidCandidateIdError(f"Candidate id {candidate_id!r} has no sequence suffix")
    return int(match.group(1))


def order(candidate_ids: Iterable[str]) -> list[str]:
    """Sort candidate ids ascending by sequence number.

    Args:
        candidate_ids: Live candidate ids in any iteration order

    Returns:
        A new list, lowest sequence first
    """
    return sorted(candidate_ids, key=lambda cid: (parse_sequence(cid), cid))


def _position(candidate_id: str, ordered: Sequence[str]) -> int:
    try:
        return ordered.index(candidate_id)
    except ValueError:
        raise CandidateNotFoundError(candidate_id) from None


def is_leader(candidate_id: str, ordered: Sequence[str]) -> bool:
    """True iff ``candidate_id`` is first in ``ordered``."""
    return _position(candidate_id, ordered) == 0


def predecessor_of(candidate_id: str, ordered: Sequence[str]) -> str | None:
    """Return the id immediately before ``candidate_id``, or None if it is first.

    Raises:
        CandidateNotFoundError: If ``candidate_id`` is not in ``ordered``
    """
    index = _position(candidate_id, ordered)
    if index == 0:
        return None
    return ordered[index - 1]
