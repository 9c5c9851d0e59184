"""
Tests for vote casting, tallies and vote activity rollups.
"""
import threading
from datetime import datetime, timedelta

import pytest
from bson import ObjectId

from campusvote.errors import AlreadyVoted, InvalidCandidate, NotFound, PollClosed, PollNotFound


class TestCastVote:
    def test_second_vote_is_rejected_and_first_stands(self, services, make_voter, make_poll):
        """Alice then Bob by the same voter: one vote for Alice, none for Bob."""
        voter = make_voter()
        poll = make_poll()

        services.ledger.cast_vote(poll["_id"], voter["_id"], "Alice")
        with pytest.raises(AlreadyVoted):
            services.ledger.cast_vote(poll["_id"], voter["_id"], "Bob")

        tally = services.ledger.tally(poll["_id"])
        votes = {r["candidate"]: r["votes"] for r in tally["results"]}
        assert votes == {"Alice": 1, "Bob": 0}
        assert tally["total_votes"] == 1

    def test_marks_voter_as_voted(self, services, make_voter, make_poll):
        voter = make_voter()
        poll = make_poll()

        vote = services.ledger.cast_vote(str(poll["_id"]), str(voter["_id"]), "Bob")

        assert vote["candidate"] == "Bob"
        assert services.voters.get_voter(voter["_id"])["has_voted"] is True
        assert services.ledger.has_voted(poll["_id"], voter["_id"]) is True

    def test_stored_vote_is_the_arbiter(self, services, make_voter, make_poll):
        """A vote already in storage blocks a new one with no in-memory state involved."""
        voter = make_voter()
        poll = make_poll()
        services.db.votes.insert_one({
            "poll_id": poll["_id"], "voter_id": voter["_id"], "candidate": "Bob", "timestamp": datetime.utcnow(),
        })

        with pytest.raises(AlreadyVoted):
            services.ledger.cast_vote(poll["_id"], voter["_id"], "Alice")
        assert services.ledger.count_for_poll(poll["_id"]) == 1

    def test_simultaneous_casts_record_one_vote(self, services, make_voter, make_poll):
        """Eight threads released together for the same voter and poll: one wins."""
        voter = make_voter()
        poll = make_poll()
        callers = 8
        barrier = threading.Barrier(callers)
        outcomes = []
        lock = threading.Lock()

        def cast(candidate):
            barrier.wait()
            try:
                services.ledger.cast_vote(poll["_id"], voter["_id"], candidate)
                outcome = "ok"
            except AlreadyVoted:
                outcome = "dup"
            with lock:
                outcomes.append(outcome)

        threads = [
            threading.Thread(target=cast, args=("Alice" if i % 2 else "Bob",))
            for i in range(callers)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert sorted(outcomes) == ["dup"] * (callers - 1) + ["ok"]
        assert services.ledger.count_for_poll(poll["_id"]) == 1

    def test_closed_poll(self, services, make_voter, make_poll):
        voter = make_voter()
        poll = make_poll(active=False)

        with pytest.raises(PollClosed):
            services.ledger.cast_vote(poll["_id"], voter["_id"], "Alice")
        assert services.ledger.count_for_poll(poll["_id"]) == 0

    def test_candidate_must_be_listed(self, services, make_voter, make_poll):
        voter = make_voter()
        poll = make_poll()

        with pytest.raises(InvalidCandidate):
            services.ledger.cast_vote(poll["_id"], voter["_id"], "Mallory")
        assert services.voters.get_voter(voter["_id"])["has_voted"] is False

    def test_unknown_poll(self, services, make_voter):
        voter = make_voter()
        with pytest.raises(PollNotFound):
            services.ledger.cast_vote(ObjectId(), voter["_id"], "Alice")
        with pytest.raises(PollNotFound):
            services.ledger.cast_vote("not-an-id", voter["_id"], "Alice")

    def test_unknown_voter(self, services, make_voter, make_poll):
        make_voter()
        poll = make_poll()
        with pytest.raises(NotFound):
            services.ledger.cast_vote(poll["_id"], ObjectId(), "Alice")

    def test_ineligible_voter_cannot_see_poll(self, services, make_voter, make_poll):
        make_voter(year="2", department="IT")
        outsider = make_voter(year="2", department="CSE")
        poll = make_poll(target_department="IT")

        with pytest.raises(PollNotFound):
            services.ledger.cast_vote(poll["_id"], outsider["_id"], "Alice")


class TestTally:
    def test_percentages_sum_to_hundred(self, services, make_voter, make_poll):
        voters = [make_voter() for _ in range(3)]
        poll = make_poll(candidates=("Alice", "Bob", "Carol"))
        for voter, choice in zip(voters, ["Alice", "Bob", "Carol"]):
            services.ledger.cast_vote(poll["_id"], voter["_id"], choice)

        results = services.ledger.tally(poll["_id"])["results"]
        assert [r["candidate"] for r in results] == ["Alice", "Bob", "Carol"]
        assert [r["percentage"] for r in results] == [33.3, 33.3, 33.3]
        assert abs(sum(r["percentage"] for r in results) - 100) <= 0.1 * len(results)

    def test_no_votes_reports_zero(self, services, make_voter, make_poll):
        make_voter()
        poll = make_poll()

        tally = services.ledger.tally(poll["_id"])
        assert tally["total_votes"] == 0
        assert all(r["votes"] == 0 and r["percentage"] == 0 for r in tally["results"])

    def test_unknown_poll(self, services):
        with pytest.raises(PollNotFound):
            services.ledger.tally(ObjectId())


class TestActivity:
    def test_voting_trend_groups_by_day(self, services, make_voter, make_poll):
        make_voter()
        poll = make_poll()
        now = datetime(2024, 3, 10, 12, 0)
        days = [now - timedelta(days=1), now - timedelta(days=1, hours=2), now, now - timedelta(days=45)]
        for ts in days:
            services.db.votes.insert_one({
                "poll_id": poll["_id"], "voter_id": ObjectId(), "candidate": "Alice", "timestamp": ts,
            })

        trend = services.ledger.voting_trend(days=30, now=now)
        assert trend == [{"date": "2024-03-09", "count": 2}, {"date": "2024-03-10", "count": 1}]

    def test_most_active_polls_ranked(self, services, make_voter, make_poll):
        voters = [make_voter() for _ in range(3)]
        quiet = make_poll(title="Quiet")
        busy = make_poll(title="Busy")
        services.ledger.cast_vote(quiet["_id"], voters[0]["_id"], "Alice")
        for voter in voters:
            services.ledger.cast_vote(busy["_id"], voter["_id"], "Bob")

        ranked = services.ledger.most_active_polls()
        assert [(r["title"], r["vote_count"]) for r in ranked] == [("Busy", 3), ("Quiet", 1)]
        assert services.ledger.most_active_polls(limit=1)[0]["title"] == "Busy"
