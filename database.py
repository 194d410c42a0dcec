"""
MongoDB access for the collaboration API.

`db` is None when no DATABASE_URL is configured; routes obtain the database
through `get_db` so tests can substitute an in-memory one.
"""
import logging
from datetime import datetime, timezone

from pymongo import ASCENDING, DESCENDING, MongoClient

from config import settings
from errors import InternalError

logger = logging.getLogger(__name__)

client = None
db = None

if settings.DATABASE_URL:
    client = MongoClient(settings.DATABASE_URL)
    db = client[settings.DATABASE_NAME]


def get_db():
    if db is None:
        raise InternalError("Database not configured")
    return db


def ensure_indexes(database) -> None:
    database["user"].create_index([("email", ASCENDING)], unique=True)
    database["project"].create_index([("createdAt", DESCENDING)])
    database["project"].create_index([("category", ASCENDING)])
    database["project"].create_index([("creatorId", ASCENDING)])
    database["projectinterest"].create_index(
        [("userId", ASCENDING), ("projectId", ASCENDING)], unique=True
    )
    database["projectmessage"].create_index([("projectId", ASCENDING)])
    logger.info("Indexes ensured on %s", database.name)


def create_document(database, collection_name: str, data: dict) -> str:
    """Insert a document stamped with createdAt/updatedAt and return its id."""
    now = datetime.now(timezone.utc)
    doc = dict(data)
    doc.setdefault("createdAt", now)
    doc["updatedAt"] = now
    inserted_id = database[collection_name].insert_one(doc).inserted_id
    return str(inserted_id)
