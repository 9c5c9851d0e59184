"""
Tests for poll lifecycle and eligible-voter accounting.
"""
import pytest
from bson import ObjectId

from campusvote.errors import NoEligibleVoters, PollNotFound, ValidationError
from campusvote.poll_registry import describe_target


def poll_definition(**overrides):
    definition = {
        "title": "Class Representative",
        "description": "",
        "target_year": "2",
        "target_section": "ALL",
        "target_department": "IT",
        "candidates": ["Alice", "Bob"],
    }
    definition.update(overrides)
    return definition


class TestCreatePoll:
    def test_no_eligible_voters(self, services, make_voter):
        make_voter(year="3", section="A", department="ADS")

        with pytest.raises(NoEligibleVoters) as exc:
            services.polls.create_poll(poll_definition(target_year="3", target_section="C", target_department="ADS"))

        assert exc.value.message == "No eligible voters found for Year 3, Section C, Department ADS"
        assert services.db.polls.count_documents({}) == 0

    def test_created_closed_with_snapshot(self, services, make_voter):
        make_voter(section="A")
        make_voter(section="B")
        make_voter(department="CSE")

        poll = services.polls.create_poll(poll_definition(target_section="all", target_department="it"), created_by="admin-1")

        assert poll["is_active"] is False
        assert poll["eligible_voters_snapshot"] == 2
        assert poll["target_section"] == "ALL"
        assert poll["target_department"] == "IT"
        assert poll["created_by"] == "admin-1"

    @pytest.mark.parametrize("candidates", [[], ["Alice", " "], ["Alice", "Alice"]])
    def test_candidate_list_must_be_usable(self, services, make_voter, candidates):
        make_voter()
        with pytest.raises(ValidationError):
            services.polls.create_poll(poll_definition(candidates=candidates))

    def test_invalid_year(self, services):
        with pytest.raises(ValidationError):
            services.polls.create_poll(poll_definition(target_year="7"))


class TestPollLifecycle:
    def test_snapshot_is_kept_while_live_count_moves(self, services, make_voter, make_poll):
        make_voter()
        poll = make_poll()
        make_voter()
        make_voter(department="CSE")

        services.polls.update_poll(poll["_id"], {"target_department": "ALL"})

        listed = services.polls.list_polls()[0]
        assert listed["eligible_voters_snapshot"] == 1
        assert listed["eligible_voters_count"] == 3

    def test_toggle(self, services, make_voter, make_poll):
        make_voter()
        poll = make_poll(active=False)

        assert services.polls.toggle_poll(str(poll["_id"]), True)["is_active"] is True
        assert services.polls.toggle_poll(poll["_id"], False)["is_active"] is False

    def test_list_includes_votes(self, services, make_voter, make_poll):
        voter = make_voter()
        poll = make_poll()
        services.ledger.cast_vote(poll["_id"], voter["_id"], "Bob")

        listed = services.polls.list_polls()
        assert [v["candidate"] for v in listed[0]["votes"]] == ["Bob"]

    def test_delete_cascades_to_votes(self, services, make_voter, make_poll):
        voters = [make_voter() for _ in range(2)]
        poll = make_poll()
        other = make_poll(title="Other")
        for voter in voters:
            services.ledger.cast_vote(poll["_id"], voter["_id"], "Alice")
        services.ledger.cast_vote(other["_id"], voters[0]["_id"], "Bob")

        assert services.polls.delete_poll(poll["_id"]) == 2
        assert services.db.votes.count_documents({"poll_id": poll["_id"]}) == 0
        assert services.db.votes.count_documents({}) == 1
        with pytest.raises(PollNotFound):
            services.polls.get_poll(poll["_id"])

    @pytest.mark.parametrize("poll_id", [ObjectId(), "garbage"])
    def test_unknown_poll(self, services, poll_id):
        with pytest.raises(PollNotFound):
            services.polls.toggle_poll(poll_id, True)
        with pytest.raises(PollNotFound):
            services.polls.update_poll(poll_id, {"title": "x"})
        with pytest.raises(PollNotFound):
            services.polls.delete_poll(poll_id)


def test_describe_target_skips_wildcards():
    assert describe_target("2", "ALL", "IT") == "Year 2, Department IT"
    assert describe_target("1", "", None) == "Year 1"
