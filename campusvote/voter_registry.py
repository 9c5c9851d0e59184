# voter_registry.py
import logging
import re
import secrets
import string
from typing import Any, Dict, Iterable, List, Mapping, Optional

from bson import ObjectId
from pymongo import ASCENDING, UpdateOne
from pymongo.errors import BulkWriteError, DuplicateKeyError

from campusvote import config
from campusvote.database import to_object_id, utcnow
from campusvote.errors import DuplicateVoter, EmptySelection, NotFound, ValidationError
from campusvote.models import parse_model
from campusvote.models.voter_model import GroupKey, VoterFilter, VoterIn, VoterUpdate

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
CREDENTIAL_CHARS = string.ascii_letters + string.digits

REQUIRED_FIELDS = (
    ("reg_no", "registration number"),
    ("name", "name"),
    ("email", "email"),
    ("year", "year"),
    ("section", "section"),
    ("department", "department"),
)

SORT_ORDER = [("year", ASCENDING), ("section", ASCENDING), ("name", ASCENDING)]


def generate_password(length: int = config.CREDENTIAL_LENGTH) -> str:
    return "".join(secrets.choice(CREDENTIAL_CHARS) for _ in range(length))


def _text(value: Any) -> str:
    if value is None:
        return ""
    # spreadsheet cells hold years and numeric reg numbers as floats
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def normalize_record(record: Mapping) -> Dict[str, str]:
    """Canonical form of a voter record: codes uppercased, email lowercased."""
    return {
        "reg_no": _text(record.get("reg_no")).upper(),
        "name": _text(record.get("name")).upper(),
        "email": _text(record.get("email")).lower(),
        "year": _text(record.get("year")),
        "section": _text(record.get("section")).upper(),
        "department": _text(record.get("department")).upper(),
    }


def validate_record(voter: Mapping, require_section: bool = True) -> Optional[str]:
    """
    Check a normalized voter record.

    Args:
        voter: Output of ``normalize_record``
        require_section: Roster rows must carry a section; single voters may not

    Returns:
        The first problem found, or None if the record is valid
    """
    for field, label in REQUIRED_FIELDS:
        if field == "section" and not require_section:
            continue
        if not voter.get(field):
            return f"Missing {label}"
    if not EMAIL_RE.match(voter["email"]):
        return f"Invalid email format - {voter['email']}"
    if voter["year"] not in config.VALID_YEARS:
        return f"Invalid year - {voter['year']}. Must be 1, 2, 3, or 4"
    return None


def _row_label(record: Mapping, index: int) -> str:
    row_number = record.get("row_number") or index + 1
    sheet = record.get("sheet_name")
    if sheet:
        return f"Sheet '{sheet}' row {row_number}"
    return f"Row {row_number}"


class VoterRegistry:
    """Owns voter records: lookup, grouping, bulk creation and bulk mutation."""

    def __init__(self, db, ledger, mailer=None):
        self.db = db
        self.ledger = ledger
        self.mailer = mailer

    # --- single voter ---

    def create_voter(self, record) -> dict:
        """
        Create one voter.

        Args:
            record: ``VoterIn`` or a dict with the same fields

        Returns:
            The stored voter document

        Raises:
            ValidationError: a required field is missing or malformed
            DuplicateVoter: reg_no or email is already registered
        """
        record = parse_model(VoterIn, record)
        voter = normalize_record(record.model_dump())
        problem = validate_record(voter, require_section=False)
        if problem:
            raise ValidationError(problem, errors=[problem])

        voter.update({
            "password": record.password or generate_password(),
            "has_voted": False,
            "created_at": utcnow(),
        })
        try:
            result = self.db.voters.insert_one(voter)
        except DuplicateKeyError:
            logger.warning(f"Voter {voter['reg_no']} already exists")
            raise DuplicateVoter()
        voter["_id"] = result.inserted_id
        logger.info(f"Voter {voter['reg_no']} saved successfully")
        return voter

    def get_voter(self, voter_id) -> dict:
        voter = self.db.voters.find_one({"_id": to_object_id(voter_id, "Voter not found")})
        if not voter:
            raise NotFound("Voter not found")
        return voter

    def find_by_email(self, email: str) -> Optional[dict]:
        return self.db.voters.find_one({"email": _text(email).lower()})

    def update_voter(self, changes) -> dict:
        """Update the voter identified by ``changes.reg_no``.

        The credential is regenerated on every update, so the voter must be
        sent their credentials again afterwards.
        """
        changes = parse_model(VoterUpdate, changes)
        reg_no = _text(changes.reg_no).upper()

        fields: Dict[str, Any] = {}
        if changes.name:
            fields["name"] = _text(changes.name).upper()
        if changes.year:
            if changes.year not in config.VALID_YEARS:
                raise ValidationError(f"Invalid year - {changes.year}. Must be 1, 2, 3, or 4")
            fields["year"] = changes.year
        if changes.section is not None:
            fields["section"] = _text(changes.section).upper()
        if changes.department:
            fields["department"] = _text(changes.department).upper()
        if changes.email:
            email = _text(changes.email).lower()
            if not EMAIL_RE.match(email):
                raise ValidationError(f"Invalid email format - {email}")
            fields["email"] = email
        if changes.has_voted is not None:
            fields["has_voted"] = changes.has_voted
        fields["password"] = generate_password()

        try:
            voter = self.db.voters.find_one_and_update(
                {"reg_no": reg_no}, {"$set": fields}, return_document=True
            )
        except DuplicateKeyError:
            raise DuplicateVoter("Another voter already uses this email")
        if voter is None:
            raise NotFound("Voter not found")
        logger.info(f"Voter {reg_no} updated successfully")
        return voter

    def delete_voter(self, voter_id) -> None:
        voter = self.get_voter(voter_id)
        self.ledger.delete_for_voters([voter["_id"]])
        self.db.voters.delete_one({"_id": voter["_id"]})
        logger.info(f"Voter {voter['reg_no']} deleted successfully")

    # --- rosters ---

    def validate_batch(self, records: List[Mapping]) -> List[dict]:
        """Normalize and validate a whole roster without touching storage.

        Raises ValidationError carrying the first ``MAX_REPORTED_ERRORS``
        messages and the total error count if any row is invalid.
        """
        voters = []
        errors = []
        seen_reg_nos = set()
        seen_emails = set()

        for index, record in enumerate(records):
            label = _row_label(record, index)
            voter = normalize_record(record)
            problem = validate_record(voter)
            if problem is None and voter["reg_no"] in seen_reg_nos:
                problem = f"Duplicate registration number - {voter['reg_no']}"
            if problem is None and voter["email"] in seen_emails:
                problem = f"Duplicate email - {voter['email']}"
            if problem:
                errors.append(f"{label}: {problem}")
                continue

            seen_reg_nos.add(voter["reg_no"])
            seen_emails.add(voter["email"])
            if record.get("sheet_name"):
                voter["sheet_name"] = record["sheet_name"]
            voters.append(voter)

        if errors:
            raise ValidationError(
                f"Found {len(errors)} validation errors",
                errors=errors[: config.MAX_REPORTED_ERRORS],
                error_count=len(errors),
            )
        if not voters:
            raise ValidationError("No voter rows found")
        return voters

    def bulk_create_voters(self, records: List[Mapping]) -> List[dict]:
        """All-or-nothing import of a roster.

        Every row is validated before anything is written. Collisions with
        registered voters fail the whole batch, and a collision that only
        shows up during the insert rolls back the rows already written.
        """
        voters = self.validate_batch(records)

        reg_nos = [v["reg_no"] for v in voters]
        emails = [v["email"] for v in voters]
        existing = list(self.db.voters.find(
            {"$or": [{"reg_no": {"$in": reg_nos}}, {"email": {"$in": emails}}]},
            {"reg_no": 1},
        ))
        if existing:
            raise DuplicateVoter(
                f"Found {len(existing)} existing voters with duplicate registration numbers or emails",
                reg_nos=sorted(v["reg_no"] for v in existing),
            )

        now = utcnow()
        for voter in voters:
            voter.update({
                "_id": ObjectId(),
                "password": generate_password(),
                "has_voted": False,
                "created_at": now,
            })
        try:
            self.db.voters.insert_many(voters)
        except (BulkWriteError, DuplicateKeyError):
            self.db.voters.delete_many({"_id": {"$in": [v["_id"] for v in voters]}})
            logger.warning("Roster import collided with a concurrent write; batch rolled back")
            raise DuplicateVoter("Some voters were registered while importing; no voters were added")

        logger.info(f"Imported {len(voters)} voters")
        return voters

    # --- queries ---

    def query_voters(self, voter_filter=None) -> List[dict]:
        voter_filter = parse_model(VoterFilter, voter_filter or {})
        return list(self.db.voters.find(voter_filter.to_query()).sort(SORT_ORDER))

    def group_voters(self, voter_filter=None, group_by: str = "year-section") -> List[dict]:
        """
        Aggregate matching voters for dashboards.

        Args:
            voter_filter: ``VoterFilter`` or dict
            group_by: "none", "year" or "year-section"; "year-section" groups on
                (year, section, department)

        Returns:
            Groups with their voters, total_count and voted_count; "year"
            groups also list the sorted sections seen
        """
        voters = self.query_voters(voter_filter)

        if group_by == "none":
            return [{
                "voters": voters,
                "total_count": len(voters),
                "voted_count": sum(1 for v in voters if v.get("has_voted")),
            }]
        if group_by not in ("year", "year-section"):
            raise ValidationError(f"Invalid groupBy '{group_by}'")

        groups: Dict[tuple, dict] = {}
        for voter in voters:
            if group_by == "year-section":
                key = (voter.get("year"), voter.get("section"), voter.get("department"))
                group = groups.setdefault(key, {
                    "year": key[0], "section": key[1], "department": key[2],
                    "voters": [], "total_count": 0, "voted_count": 0,
                })
            else:
                key = (voter.get("year"),)
                group = groups.setdefault(key, {
                    "year": key[0], "voters": [], "total_count": 0, "voted_count": 0,
                    "sections": set(),
                })
                group["sections"].add(voter.get("section"))
            group["voters"].append(voter)
            group["total_count"] += 1
            if voter.get("has_voted"):
                group["voted_count"] += 1

        result = list(groups.values())
        if group_by == "year":
            for group in result:
                group["sections"] = sorted(group["sections"])
        return result

    # --- bulk mutation ---

    def resolve_selection(self, voter_ids: Optional[Iterable[str]] = None, voter_filter=None) -> List[dict]:
        if voter_ids:
            ids = [to_object_id(v, "Voter not found") for v in voter_ids]
            return list(self.db.voters.find({"_id": {"$in": ids}}))
        if voter_filter is not None:
            query = parse_model(VoterFilter, voter_filter).to_query()
            return list(self.db.voters.find(query))
        return []

    def bulk_mutate(self, action: str, voter_ids: Optional[Iterable[str]] = None, voter_filter=None) -> dict:
        """Apply ``action`` to the voters picked by ids or by a placement filter."""
        handlers = {
            "send-credentials": self._send_credentials,
            "reset-passwords": self._reset_passwords,
            "mark-voted": lambda voters: self._mark_voted(voters, True),
            "mark-not-voted": lambda voters: self._mark_voted(voters, False),
            "delete": self._delete_voters,
        }
        if action not in handlers:
            raise ValidationError("Invalid action")

        voters = self.resolve_selection(voter_ids, voter_filter)
        if not voters:
            raise EmptySelection()

        result = {"count": len(voters)}
        result.update(handlers[action](voters))
        logger.info(f"Bulk action {action} applied to {len(voters)} voters")
        return result

    def _send_credentials(self, voters: List[dict]) -> dict:
        if self.mailer is None:
            raise RuntimeError("No credential mailer configured")
        sent_count = sum(1 for voter in voters if self.mailer.send_credentials(voter))
        if sent_count < len(voters):
            logger.warning(f"Credential delivery failed for {len(voters) - sent_count} voters")
        return {
            "sent_count": sent_count,
            "message": f"Credentials sent to {sent_count} out of {len(voters)} voters",
        }

    def _reset_passwords(self, voters: List[dict]) -> dict:
        updates = [
            UpdateOne({"_id": voter["_id"]}, {"$set": {"password": generate_password()}})
            for voter in voters
        ]
        self.db.voters.bulk_write(updates)
        return {"message": f"Passwords reset for {len(voters)} voters"}

    def _mark_voted(self, voters: List[dict], has_voted: bool) -> dict:
        self.db.voters.update_many(
            {"_id": {"$in": [v["_id"] for v in voters]}},
            {"$set": {"has_voted": has_voted}},
        )
        state = "voted" if has_voted else "not voted"
        return {"message": f"Marked {len(voters)} voters as {state}"}

    def _delete_voters(self, voters: List[dict]) -> dict:
        ids = [v["_id"] for v in voters]
        deleted_votes = self.ledger.delete_for_voters(ids)
        self.db.voters.delete_many({"_id": {"$in": ids}})
        return {
            "deleted_votes": deleted_votes,
            "message": f"Deleted {len(voters)} voters and their votes",
        }

    def delete_group(self, group_key) -> int:
        """Delete every voter in the group and their votes; returns the number deleted."""
        group_key = parse_model(GroupKey, group_key)
        ids = [v["_id"] for v in self.db.voters.find(group_key.to_query(), {"_id": 1})]
        if not ids:
            raise NotFound("No voters found for this group")

        self.ledger.delete_for_voters(ids)
        deleted = self.db.voters.delete_many({"_id": {"$in": ids}}).deleted_count
        logger.info(f"Deleted {deleted} voters from group {group_key.label()}")
        return deleted
