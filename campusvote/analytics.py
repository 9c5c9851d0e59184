"""Read-only rollups over voters, polls and votes, plus the export row sets."""
import logging
from typing import Dict, List

from campusvote.errors import ValidationError

logger = logging.getLogger(__name__)

EXPORT_KINDS = ("voters", "results", "detailed-votes")

_VOTED = {"$sum": {"$cond": [{"$eq": ["$has_voted", True]}, 1, 0]}}


def _iso(value):
    return value.isoformat() if value is not None else None


class Analytics:
    def __init__(self, db, resolver, ledger):
        self.db = db
        self.resolver = resolver
        self.ledger = ledger

    def overview(self) -> Dict[str, int]:
        total_voters = self.db.voters.count_documents({})
        voted = self.db.voters.count_documents({"has_voted": True})
        return {
            "total_voters": total_voters,
            "voted_count": voted,
            "not_voted_count": total_voters - voted,
            "voting_percentage": round(voted / total_voters * 100) if total_voters else 0,
            "total_polls": self.db.polls.count_documents({}),
            "active_polls": self.db.polls.count_documents({"is_active": True}),
            "total_votes": self.db.votes.count_documents({}),
        }

    def _rollup(self, group_id, sort: dict) -> List[dict]:
        pipeline = [
            {"$group": {"_id": group_id, "total": {"$sum": 1}, "voted": _VOTED}},
            {"$sort": sort},
        ]
        return list(self.db.voters.aggregate(pipeline))

    def voters_by_year(self) -> List[dict]:
        return self._rollup("$year", {"_id": 1})

    def voters_by_department(self) -> List[dict]:
        return self._rollup("$department", {"total": -1})

    def voters_by_year_section(self) -> List[dict]:
        return self._rollup({"year": "$year", "section": "$section"}, {"_id.year": 1, "_id.section": 1})

    def dashboard(self, trend_days: int = 30, poll_limit: int = 10) -> dict:
        return {
            "overview": self.overview(),
            "voters_by_year": self.voters_by_year(),
            "voters_by_department": self.voters_by_department(),
            "voters_by_year_section": self.voters_by_year_section(),
            "voting_trends": self.ledger.voting_trend(trend_days),
            "poll_activity": self.ledger.most_active_polls(poll_limit),
        }

    # --- exports ---

    def export(self, kind: str) -> List[dict]:
        builders = {
            "voters": self._export_voters,
            "results": self._export_results,
            "detailed-votes": self._export_detailed_votes,
        }
        if kind not in builders:
            raise ValidationError("Invalid export type")
        rows = builders[kind]()
        logger.info(f"Exported {len(rows)} {kind} rows")
        return rows

    def _export_voters(self) -> List[dict]:
        voters = self.db.voters.find({}).sort([("year", 1), ("section", 1), ("name", 1)])
        return [
            {
                "Registration Number": v.get("reg_no"),
                "Name": v.get("name"),
                "Email": v.get("email"),
                "Year": v.get("year"),
                "Section": v.get("section"),
                "Department": v.get("department"),
                "Password": v.get("password"),
                "Has Voted": "Yes" if v.get("has_voted") else "No",
                "Created At": _iso(v.get("created_at")),
            }
            for v in voters
        ]

    def _export_results(self) -> List[dict]:
        rows = []
        for poll in self.db.polls.find({}).sort("created_at", 1):
            tally = self.ledger.tally(poll["_id"])
            eligible = self.resolver.count_for_poll(poll)
            section = poll.get("target_section")
            row = {
                "Poll Title": poll.get("title"),
                "Target Year": poll.get("target_year"),
                "Target Section": "All Sections" if section in (None, "", "ALL") else section,
                "Target Department": poll.get("target_department"),
                "Status": "Active" if poll.get("is_active") else "Closed",
                "Total Votes": tally["total_votes"],
                "Eligible Voters": eligible,
                "Turnout %": round(tally["total_votes"] / eligible * 100) if eligible else 0,
            }
            for result in tally["results"]:
                row[result["candidate"]] = result["votes"]
            row["Created At"] = _iso(poll.get("created_at"))
            rows.append(row)
        return rows

    def _export_detailed_votes(self) -> List[dict]:
        voters = {v["_id"]: v for v in self.db.voters.find({})}
        polls = {p["_id"]: p for p in self.db.polls.find({}, {"title": 1})}
        rows = []
        for vote in self.db.votes.find({}).sort("timestamp", 1):
            voter = voters.get(vote["voter_id"])
            poll = polls.get(vote["poll_id"])
            if voter is None or poll is None:
                continue
            rows.append({
                "Poll Title": poll.get("title"),
                "Voter Reg No": voter.get("reg_no"),
                "Voter Name": voter.get("name"),
                "Voter Year": voter.get("year"),
                "Voter Section": voter.get("section"),
                "Voter Department": voter.get("department"),
                "Candidate Voted": vote.get("candidate"),
                "Vote Timestamp": _iso(vote.get("timestamp")),
            })
        return rows
