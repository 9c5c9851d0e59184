import logging
import secrets
from typing import Optional

from pymongo.errors import DuplicateKeyError

from campusvote.database import utcnow
from campusvote.errors import DuplicateAdmin, Unauthorized
from campusvote.schemas import AdminCreate
from campusvote.security import Identity, hash_password, verify_password

logger = logging.getLogger(__name__)

class Accounts:
    """Admin accounts and login for both roles."""

    def __init__(self, db):
        self.db = db

    # Create a new admin with hashed password
    def create_admin(self, data: AdminCreate) -> dict:
        admin = {
            "name": data.name,
            "email": data.email.lower(),
            "hashed_password": hash_password(data.password),
            "created_at": utcnow(),
        }
        try:
            result = self.db.admins.insert_one(admin)
        except DuplicateKeyError:
            logger.error(f"Admin with email {data.email} already exists.")
            raise DuplicateAdmin()
        admin["_id"] = result.inserted_id
        logger.info(f"Admin {admin['email']} created")
        return admin

    def login_admin(self, email: str, password: str) -> dict:
        admin = self.db.admins.find_one({"email": email.lower()})
        if not admin or not verify_password(password, admin["hashed_password"]):
            raise Unauthorized("Invalid credentials")
        return admin

    def login_voter(self, email: str, password: str) -> dict:
        voter = self.db.voters.find_one({"email": email.strip().lower()})
        stored = str(voter.get("password", "")) if voter else ""
        if not voter or not secrets.compare_digest(stored.encode(), password.encode()):
            raise Unauthorized("Invalid credentials")
        return voter

    def login(self, email: str, password: str, role: str):
        """Verify credentials and return ``(identity, user document)``."""
        user: Optional[dict]
        if role == "admin":
            user = self.login_admin(email, password)
        else:
            user = self.login_voter(email, password)
        return Identity(id=str(user["_id"]), role=role), user
