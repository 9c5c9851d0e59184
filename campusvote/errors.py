"""Domain errors raised by the registries and the vote ledger.

Each error carries the HTTP status the API reports it with, so the FastAPI
exception handler in ``main.py`` can translate any of them into the
``{"success": false, "message": ...}`` envelope.
"""
from typing import List, Optional


class CampusVoteError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"success": False, "message": self.message}


class Unauthorized(CampusVoteError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class ValidationError(CampusVoteError):
    """Malformed input. Batch operations attach a bounded sample of row errors."""

    status_code = 422

    def __init__(self, message: str, errors: Optional[List[str]] = None, error_count: Optional[int] = None):
        super().__init__(message)
        self.errors = list(errors or [])
        self.error_count = error_count if error_count is not None else len(self.errors)

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.errors:
            data["errors"] = self.errors
            data["error_count"] = self.error_count
        return data


class DuplicateVoter(CampusVoteError):
    status_code = 409

    def __init__(self, message: str = "Voter with this regNo or email already exists", reg_nos: Optional[List[str]] = None):
        super().__init__(message)
        self.reg_nos = list(reg_nos or [])

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.reg_nos:
            data["duplicates"] = self.reg_nos
        return data


class DuplicateAdmin(CampusVoteError):
    status_code = 409

    def __init__(self, message: str = "Admin with this email already exists"):
        super().__init__(message)


class NotFound(CampusVoteError):
    status_code = 404


class PollNotFound(NotFound):
    def __init__(self, message: str = "Poll not found"):
        super().__init__(message)


class NoEligibleVoters(CampusVoteError):
    pass


class PollClosed(CampusVoteError):
    def __init__(self, message: str = "Poll is not active"):
        super().__init__(message)


class AlreadyVoted(CampusVoteError):
    status_code = 409

    def __init__(self, message: str = "You have already voted in this poll"):
        super().__init__(message)


class InvalidCandidate(CampusVoteError):
    def __init__(self, candidate: str):
        super().__init__(f"Candidate '{candidate}' is not part of this poll")
        self.candidate = candidate


class EmptySelection(CampusVoteError):
    def __init__(self, message: str = "No voters found"):
        super().__init__(message)
