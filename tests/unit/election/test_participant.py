"""Tests for the election participant."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from ballot.coordination.base import CoordinationClient
from ballot.election.participant import Participant, ParticipantState, WatchTarget
from ballot.errors import (
    CandidateNotFoundError,
    CollaboratorUnavailableError,
    InvalidCandidateIdError,
    ParticipantStateError,
    SessionExpiredError,
)

SCENARIO_A = {"c_0000000001", "c_0000000003", "c_0000000007"}


def make_client(candidate_id: str, *snapshots: set[str]) -> AsyncMock:
    """Coordination client double returning the given snapshots in turn."""
    client = AsyncMock(spec=CoordinationClient)
    client.create_ephemeral_sequential.return_value = candidate_id
    if len(snapshots) == 1:
        client.list_children.return_value = snapshots[0]
    else:
        client.list_children.side_effect = list(snapshots)
    client.watch_existence.return_value = True
    return client


async def volunteered(client: AsyncMock) -> Participant:
    participant = Participant(client, namespace="/election")
    await participant.volunteer()
    return participant


class TestVolunteer:
    """Test candidate registration."""

    async def test_volunteer_registers_candidate(self) -> None:
        """Volunteering creates an entry and stores the assigned id."""
        client = make_client("c_0000000003", SCENARIO_A)
        participant = Participant(client, namespace="/election", prefix="c_")

        candidate_id = await participant.volunteer()

        assert candidate_id == "c_0000000003"
        assert participant.candidate_id == "c_0000000003"
        assert participant.state is ParticipantState.VOLUNTEERING
        client.create_ephemeral_sequential.assert_awaited_once_with("/election", "c_")

    async def test_second_volunteer_is_usage_error(self) -> None:
        """Volunteering twice in one session is rejected."""
        client = make_client("c_0000000003", SCENARIO_A)
        participant = await volunteered(client)

        with pytest.raises(ParticipantStateError):
            await participant.volunteer()
        client.create_ephemeral_sequential.assert_awaited_once()

    async def test_volunteer_unavailable_surfaces(self) -> None:
        """An unreachable service fails volunteer and ends participation."""
        client = make_client("c_0000000003", SCENARIO_A)
        client.create_ephemeral_sequential.side_effect = CollaboratorUnavailableError("down")
        participant = Participant(client)

        with pytest.raises(CollaboratorUnavailableError):
            await participant.volunteer()
        assert participant.state is ParticipantState.TERMINAL

    async def test_cycle_before_volunteer_rejected(self) -> None:
        """An election cycle requires a registered candidate."""
        participant = Participant(make_client("c_0000000003", SCENARIO_A))

        with pytest.raises(ParticipantStateError):
            await participant.run_election_cycle()


class TestElectionCycle:
    """Test leader / predecessor decisions."""

    async def test_lowest_candidate_becomes_leader(self) -> None:
        """The lowest sequence becomes leader without arming a watch."""
        client = make_client("c_0000000001", SCENARIO_A)
        participant = await volunteered(client)

        state = await participant.run_election_cycle()

        assert state is ParticipantState.LEADER
        assert participant.is_leader
        assert participant.watch_target is None
        client.watch_existence.assert_not_awaited()

    @pytest.mark.parametrize(
        ("candidate_id", "predecessor"),
        [("c_0000000003", "c_0000000001"), ("c_0000000007", "c_0000000003")],
    )
    async def test_follower_watches_predecessor(self, candidate_id: str, predecessor: str) -> None:
        """Followers watch the candidate immediately before them."""
        client = make_client(candidate_id, SCENARIO_A)
        participant = await volunteered(client)

        state = await participant.run_election_cycle()

        assert state is ParticipantState.WATCHING
        assert not participant.is_leader
        assert participant.watch_target == WatchTarget(candidate_id=predecessor, cycle=1)
        client.watch_existence.assert_awaited_once_with("/election", predecessor)

    async def test_repeated_cycles_same_decision(self) -> None:
        """An unchanged membership yields the same decision every time."""
        client = make_client("c_0000000007", SCENARIO_A)
        participant = await volunteered(client)

        targets = []
        for _ in range(3):
            assert await participant.run_election_cycle() is ParticipantState.WATCHING
            targets.append(participant.watch_target.candidate_id)

        assert targets == ["c_0000000003"] * 3
        assert client.list_children.await_count == 3

    async def test_repeated_cycles_leader_stays_leader(self) -> None:
        """Re-running the cycle as leader keeps leadership."""
        client = make_client("c_0000000001", SCENARIO_A)
        participant = await volunteered(client)

        await participant.run_election_cycle()
        assert await participant.run_election_cycle() is ParticipantState.LEADER

    async def test_vanished_predecessor_retries_with_fresh_snapshot(self) -> None:
        """A predecessor gone at watch time triggers a fresh snapshot."""
        client = make_client(
            "c_0000000003",
            {"c_0000000001", "c_0000000003"},
            {"c_0000000003"},
        )
        client.watch_existence.return_value = False
        participant = await volunteered(client)

        state = await participant.run_election_cycle()

        assert state is ParticipantState.LEADER
        assert client.list_children.await_count == 2
        client.watch_existence.assert_awaited_once_with("/election", "c_0000000001")

    async def test_race_retry_arms_new_predecessor(self) -> None:
        """After a race the watch goes to the predecessor of the new snapshot."""
        client = make_client(
            "c_0000000007",
            SCENARIO_A,
            {"c_0000000001", "c_0000000007"},
        )
        client.watch_existence.side_effect = [False, True]
        participant = await volunteered(client)

        state = await participant.run_election_cycle()

        assert state is ParticipantState.WATCHING
        assert participant.watch_target.candidate_id == "c_0000000001"
        assert [c.args[1] for c in client.watch_existence.await_args_list] == [
            "c_0000000003",
            "c_0000000001",
        ]

    async def test_missing_self_is_consistency_failure(self) -> None:
        """A snapshot without our own id fails the cycle and ends participation."""
        client = make_client("c_0000000009", SCENARIO_A)
        participant = await volunteered(client)

        with pytest.raises(CandidateNotFoundError):
            await participant.run_election_cycle()
        assert participant.state is ParticipantState.TERMINAL

    async def test_malformed_id_in_snapshot_is_terminal(self) -> None:
        """A re-election over a snapshot with a foreign entry ends participation."""
        client = make_client(
            "c_0000000003",
            SCENARIO_A,
            {"c_0000000003", "lock"},
        )
        participant = await volunteered(client)
        await participant.run_election_cycle()

        with pytest.raises(InvalidCandidateIdError):
            await participant.on_predecessor_removed()

        assert participant.state is ParticipantState.TERMINAL
        assert participant.watch_target is None


class TestPredecessorRemoved:
    """Test re-election after the watched predecessor is removed."""

    async def test_recomputes_from_fresh_snapshot(self) -> None:
        """Removal of the watched leader hands leadership to the watcher."""
        client = make_client(
            "c_0000000003",
            SCENARIO_A,
            {"c_0000000003", "c_0000000007"},
        )
        participant = await volunteered(client)
        await participant.run_election_cycle()

        state = await participant.on_predecessor_removed()

        assert state is ParticipantState.LEADER
        assert participant.watch_target is None
        assert client.list_children.await_count == 2

    async def test_concurrent_failures_skip_to_live_predecessor(self) -> None:
        """Several failed candidates are skipped, not just the watched one."""
        client = make_client(
            "c_0000000009",
            {"c_0000000001", "c_0000000003", "c_0000000007", "c_0000000009"},
            {"c_0000000001", "c_0000000009"},
        )
        participant = await volunteered(client)
        await participant.run_election_cycle()
        assert participant.watch_target.candidate_id == "c_0000000007"

        await participant.on_predecessor_removed()

        assert participant.watch_target == WatchTarget(candidate_id="c_0000000001", cycle=2)


class TestFailures:
    """Test session expiry and unavailability."""

    async def test_session_expired_is_terminal(self) -> None:
        """Session expiry surfaces and voids the candidate."""
        client = make_client("c_0000000003", SCENARIO_A)
        participant = await volunteered(client)
        client.list_children.side_effect = SessionExpiredError("expired")

        with pytest.raises(SessionExpiredError):
            await participant.run_election_cycle()

        assert participant.state is ParticipantState.TERMINAL
        assert participant.terminated

    async def test_terminal_participant_cannot_continue(self) -> None:
        """After expiry neither a cycle nor a new volunteer is allowed."""
        client = make_client("c_0000000003", SCENARIO_A)
        participant = await volunteered(client)
        client.watch_existence.side_effect = SessionExpiredError("expired")

        with pytest.raises(SessionExpiredError):
            await participant.run_election_cycle()
        with pytest.raises(ParticipantStateError):
            await participant.run_election_cycle()
        with pytest.raises(ParticipantStateError):
            await participant.volunteer()

    async def test_unavailable_is_not_retried(self) -> None:
        """An unreachable service is surfaced from the first failing call."""
        client = make_client("c_0000000003", SCENARIO_A)
        participant = await volunteered(client)
        client.list_children.side_effect = CollaboratorUnavailableError("down")

        with pytest.raises(CollaboratorUnavailableError):
            await participant.run_election_cycle()

        assert client.list_children.await_count == 1
        assert participant.state is ParticipantState.TERMINAL

    async def test_terminate_drops_leadership(self) -> None:
        """Terminating a leader clears leadership."""
        participant = await volunteered(make_client("c_0000000001", SCENARIO_A))
        await participant.run_election_cycle()

        participant.terminate("session released")

        assert not participant.is_leader
        assert participant.state is ParticipantState.TERMINAL


class TestWaitForLeadership:
    """Test leadership signaling."""

    async def test_returns_immediately_when_leader(self) -> None:
        """A leader does not wait."""
        participant = await volunteered(make_client("c_0000000001", SCENARIO_A))
        await participant.run_election_cycle()

        assert await participant.wait_for_leadership(timeout=0.01) is True

    async def test_times_out_when_follower(self) -> None:
        """A follower times out."""
        participant = await volunteered(make_client("c_0000000003", SCENARIO_A))
        await participant.run_election_cycle()

        assert await participant.wait_for_leadership(timeout=0.01) is False

    async def test_wakes_on_election(self) -> None:
        """Waiters wake when the participant is elected."""
        client = make_client(
            "c_0000000003",
            SCENARIO_A,
            {"c_0000000003", "c_0000000007"},
        )
        participant = await volunteered(client)
        await participant.run_election_cycle()

        waiter = asyncio.create_task(participant.wait_for_leadership(timeout=1.0))
        await asyncio.sleep(0)
        await participant.on_predecessor_removed()

        assert await waiter is True

    async def test_wakes_false_on_termination(self) -> None:
        """Waiters wake with False when the participant leaves the election."""
        participant = await volunteered(make_client("c_0000000003", SCENARIO_A))
        await participant.run_election_cycle()

        waiter = asyncio.create_task(participant.wait_for_leadership(timeout=1.0))
        await asyncio.sleep(0)
        participant.terminate("session expired")

        assert await waiter is False
