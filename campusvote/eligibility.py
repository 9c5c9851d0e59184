"""Eligibility rules shared by poll creation, poll discovery and vote casting.

A voter is eligible for a poll when the years match exactly and the poll's
section and department targets are either unrestricted (unset, empty or
``"ALL"``) or equal to the voter's own placement.
"""
from typing import Any, List, Mapping, Optional

from campusvote.config import WILDCARD


def is_unrestricted(target: Optional[Any]) -> bool:
    return target is None or str(target).strip() in ("", WILDCARD)


def _matches(target, value) -> bool:
    return is_unrestricted(target) or target == value


def is_eligible(voter: Mapping, poll: Mapping) -> bool:
    return (
        voter.get("year") == poll.get("target_year")
        and _matches(poll.get("target_section"), voter.get("section"))
        and _matches(poll.get("target_department"), voter.get("department"))
    )


def eligibility_filter(target_year: str, target_section: Optional[str] = None,
                       target_department: Optional[str] = None) -> dict:
    """Voter query selecting exactly the voters ``is_eligible`` accepts."""
    query = {"year": target_year}
    if not is_unrestricted(target_section):
        query["section"] = target_section
    if not is_unrestricted(target_department):
        query["department"] = target_department
    return query


def _unrestricted_or(field: str, value) -> dict:
    return {
        "$or": [
            {field: value},
            {field: WILDCARD},
            {field: ""},
            {field: None},
        ]
    }


class EligibilityResolver:
    def __init__(self, db):
        self.db = db

    def count_eligible(self, target_year: str, target_section: Optional[str] = None,
                       target_department: Optional[str] = None) -> int:
        query = eligibility_filter(target_year, target_section, target_department)
        return self.db.voters.count_documents(query)

    def count_for_poll(self, poll: Mapping) -> int:
        return self.count_eligible(
            poll.get("target_year"), poll.get("target_section"), poll.get("target_department")
        )

    def polls_for(self, voter: Mapping) -> List[dict]:
        """Every poll the voter may see, open or closed, flagged with whether
        the voter has already voted in it."""
        # {field: None} also matches documents missing the field
        query = {
            "target_year": voter.get("year"),
            "$and": [
                _unrestricted_or("target_section", voter.get("section")),
                _unrestricted_or("target_department", voter.get("department")),
            ],
        }
        polls = [p for p in self.db.polls.find(query).sort("created_at", -1) if is_eligible(voter, p)]
        if not polls:
            return []

        voted = {
            v["poll_id"]
            for v in self.db.votes.find(
                {"voter_id": voter["_id"], "poll_id": {"$in": [p["_id"] for p in polls]}},
                {"poll_id": 1},
            )
        }
        for poll in polls:
            poll["has_voted"] = poll["_id"] in voted
        return polls
