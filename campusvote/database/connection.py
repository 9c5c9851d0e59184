import logging
from datetime import datetime, timezone
from typing import Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, MongoClient

from campusvote import config
from campusvote.errors import NotFound

logger = logging.getLogger(__name__)


class Database:
    """Storage context shared by every registry.

    Built once at process start and handed to the registries, which never open
    connections of their own. The unique indexes created here are the only
    concurrency control the core relies on.
    """

    def __init__(self, client: Optional[MongoClient] = None, db_name: str = config.MONGO_DB):
        self.client = client if client is not None else MongoClient(config.MONGO_URI)
        self.db = self.client[db_name]
        self.voters = self.db[config.VOTERS_COLLECTION_NAME]
        self.polls = self.db[config.POLLS_COLLECTION_NAME]
        self.votes = self.db[config.VOTES_COLLECTION_NAME]
        self.admins = self.db[config.ADMINS_COLLECTION_NAME]
        self.ensure_indexes()
        logger.info(f"Connected to MongoDB: {db_name}")

    def ensure_indexes(self):
        self.voters.create_index("reg_no", unique=True)
        self.voters.create_index("email", unique=True)
        self.voters.create_index([("year", ASCENDING), ("section", ASCENDING), ("department", ASCENDING)])
        self.polls.create_index([("target_year", ASCENDING), ("target_section", ASCENDING)])
        self.votes.create_index([("poll_id", ASCENDING), ("voter_id", ASCENDING)], unique=True)
        self.votes.create_index("voter_id")
        self.admins.create_index("email", unique=True)

    def reset(self):
        """Clear all four collections."""
        for collection in (self.votes, self.polls, self.voters, self.admins):
            collection.delete_many({})
        logger.warning("All collections cleared")


def to_object_id(value, message: str = "Not found", error_cls=NotFound) -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        raise error_cls(message)


def utcnow() -> datetime:
    # BSON datetimes come back naive UTC; keep everything in that form
    return datetime.now(timezone.utc).replace(tzinfo=None)
