import logging
from typing import List

from campusvote.database import to_object_id, utcnow
from campusvote.eligibility import is_unrestricted
from campusvote.errors import NoEligibleVoters, PollNotFound
from campusvote.models import parse_model
from campusvote.models.poll_model import PollCreate, PollUpdate

logger = logging.getLogger(__name__)


def describe_target(target_year, target_section, target_department) -> str:
    text = f"Year {target_year}"
    if not is_unrestricted(target_section):
        text += f", Section {target_section}"
    if not is_unrestricted(target_department):
        text += f", Department {target_department}"
    return text


class PollRegistry:
    def __init__(self, db, resolver, ledger):
        self.db = db
        self.resolver = resolver
        self.ledger = ledger

    def create_poll(self, definition, created_by=None) -> dict:
        """Create a closed poll, refusing targets that match no voter.

        The eligible count at creation is stored as ``eligible_voters_snapshot``;
        read paths report a live count alongside it.
        """
        definition = parse_model(PollCreate, definition)
        eligible = self.resolver.count_eligible(
            definition.target_year, definition.target_section, definition.target_department
        )
        if eligible == 0:
            target = describe_target(definition.target_year, definition.target_section, definition.target_department)
            raise NoEligibleVoters(f"No eligible voters found for {target}")

        poll = definition.model_dump()
        poll.update({
            "is_active": False,
            "eligible_voters_snapshot": eligible,
            "created_at": utcnow(),
            "created_by": created_by,
        })
        result = self.db.polls.insert_one(poll)
        poll["_id"] = result.inserted_id
        logger.info(f"Poll '{definition.title}' created for {eligible} eligible voters")
        return poll

    def get_poll(self, poll_id) -> dict:
        poll = self.db.polls.find_one({"_id": to_object_id(poll_id, "Poll not found", PollNotFound)})
        if not poll:
            raise PollNotFound()
        return poll

    def update_poll(self, poll_id, changes) -> dict:
        # targets may change here without refreshing eligible_voters_snapshot
        changes = parse_model(PollUpdate, changes)
        fields = changes.model_dump(exclude_none=True)
        fields["updated_at"] = utcnow()

        poll = self.db.polls.find_one_and_update(
            {"_id": to_object_id(poll_id, "Poll not found", PollNotFound)},
            {"$set": fields},
            return_document=True,
        )
        if poll is None:
            raise PollNotFound()
        logger.info(f"Poll {poll['_id']} updated")
        return poll

    def toggle_poll(self, poll_id, is_active: bool) -> dict:
        poll = self.db.polls.find_one_and_update(
            {"_id": to_object_id(poll_id, "Poll not found", PollNotFound)},
            {"$set": {"is_active": bool(is_active)}},
            return_document=True,
        )
        if poll is None:
            raise PollNotFound()
        logger.info(f"Poll {poll['_id']} is now {'open' if poll['is_active'] else 'closed'}")
        return poll

    def delete_poll(self, poll_id) -> int:
        """Delete a poll and its votes, votes first. Returns the number of votes removed."""
        poll = self.get_poll(poll_id)
        deleted_votes = self.ledger.delete_for_poll(poll["_id"])
        self.db.polls.delete_one({"_id": poll["_id"]})
        logger.info(f"Poll {poll['_id']} deleted with {deleted_votes} votes")
        return deleted_votes

    def list_polls(self) -> List[dict]:
        polls = list(self.db.polls.find({}).sort("created_at", -1))
        for poll in polls:
            poll["votes"] = self.ledger.votes_for_poll(poll["_id"])
            poll["eligible_voters_count"] = self.resolver.count_for_poll(poll)
        return polls
