import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from campusvote.database import to_object_id, utcnow
from campusvote.eligibility import is_eligible
from campusvote.errors import AlreadyVoted, InvalidCandidate, NotFound, PollClosed, PollNotFound

logger = logging.getLogger(__name__)


class VoteLedger:
    """Append-only record of votes, at most one per (poll, voter).

    The unique ``(poll_id, voter_id)`` index decides who wins when the same
    voter casts concurrently; there is no separate existence check.
    """

    def __init__(self, db):
        self.db = db

    def cast_vote(self, poll_id, voter_id, candidate: str) -> dict:
        poll_oid = to_object_id(poll_id, "Poll not found", PollNotFound)
        poll = self.db.polls.find_one({"_id": poll_oid})
        if not poll:
            raise PollNotFound()

        voter_oid = to_object_id(voter_id, "Voter not found")
        voter = self.db.voters.find_one({"_id": voter_oid})
        if not voter:
            raise NotFound("Voter not found")
        # ineligible voters cannot see the poll at all
        if not is_eligible(voter, poll):
            raise PollNotFound()

        if not poll.get("is_active"):
            raise PollClosed()
        if candidate not in poll.get("candidates", []):
            raise InvalidCandidate(candidate)

        vote = {
            "poll_id": poll_oid,
            "voter_id": voter_oid,
            "candidate": candidate,
            "timestamp": utcnow(),
        }
        try:
            result = self.db.votes.insert_one(vote)
        except DuplicateKeyError:
            logger.warning(f"Rejected second vote by voter {voter_oid} in poll {poll_oid}")
            raise AlreadyVoted()
        vote["_id"] = result.inserted_id

        self.db.voters.update_one({"_id": voter_oid}, {"$set": {"has_voted": True}})
        logger.info(f"Vote recorded for poll {poll_oid}")
        return vote

    def has_voted(self, poll_id, voter_id) -> bool:
        query = {
            "poll_id": to_object_id(poll_id, "Poll not found", PollNotFound),
            "voter_id": to_object_id(voter_id, "Voter not found"),
        }
        return self.db.votes.count_documents(query, limit=1) > 0

    def votes_for_poll(self, poll_id) -> List[dict]:
        poll_oid = to_object_id(poll_id, "Poll not found", PollNotFound)
        return list(self.db.votes.find({"poll_id": poll_oid}).sort("timestamp", 1))

    def count_for_poll(self, poll_id) -> int:
        return self.db.votes.count_documents({"poll_id": to_object_id(poll_id, "Poll not found", PollNotFound)})

    def delete_for_poll(self, poll_oid: ObjectId) -> int:
        return self.db.votes.delete_many({"poll_id": poll_oid}).deleted_count

    def delete_for_voters(self, voter_oids: Iterable[ObjectId]) -> int:
        return self.db.votes.delete_many({"voter_id": {"$in": list(voter_oids)}}).deleted_count

    def tally(self, poll_id) -> dict:
        """Votes per candidate with percentages rounded to one decimal.

        Candidates keep the poll's order; strings voted for that are not on
        the candidate list (older data) are reported after them.
        """
        poll_oid = to_object_id(poll_id, "Poll not found", PollNotFound)
        poll = self.db.polls.find_one({"_id": poll_oid})
        if not poll:
            raise PollNotFound()

        pipeline = [
            {"$match": {"poll_id": poll_oid}},
            {"$group": {"_id": "$candidate", "count": {"$sum": 1}}},
        ]
        counts = {row["_id"]: row["count"] for row in self.db.votes.aggregate(pipeline)}
        total = sum(counts.values())

        names = list(poll.get("candidates", []))
        names += sorted(name for name in counts if name not in names)
        results = []
        for name in names:
            votes = counts.get(name, 0)
            results.append({
                "candidate": name,
                "votes": votes,
                "percentage": round(votes / total * 100, 1) if total else 0,
            })
        return {"poll_id": poll_oid, "title": poll.get("title"), "total_votes": total, "results": results}

    def voting_trend(self, days: int = 30, now: Optional[datetime] = None) -> List[dict]:
        """Number of votes per UTC calendar day over the trailing window."""
        now = now or utcnow()
        since = now - timedelta(days=days)
        per_day = Counter(
            v["timestamp"].strftime("%Y-%m-%d")
            for v in self.db.votes.find({"timestamp": {"$gte": since}}, {"timestamp": 1})
        )
        return [{"date": day, "count": per_day[day]} for day in sorted(per_day)]

    def most_active_polls(self, limit: int = 10) -> List[dict]:
        pipeline = [
            {"$group": {"_id": "$poll_id", "vote_count": {"$sum": 1}}},
            {"$sort": {"vote_count": -1}},
        ]
        activity = list(self.db.votes.aggregate(pipeline))
        polls = {
            p["_id"]: p
            for p in self.db.polls.find({"_id": {"$in": [row["_id"] for row in activity]}})
        }

        ranked = []
        for row in activity:
            poll = polls.get(row["_id"])
            if poll is None:
                continue
            ranked.append({
                "poll_id": poll["_id"],
                "title": poll.get("title"),
                "vote_count": row["vote_count"],
                "target_year": poll.get("target_year"),
                "target_section": poll.get("target_section"),
            })
        ranked.sort(key=lambda r: -r["vote_count"])
        return ranked[:limit]
