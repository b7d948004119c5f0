"""
MongoDB Connection Utility

MongoDB stores:
- users: accounts (email is unique)
- jobs: job application records, each owned by one user

One client is opened at startup; pymongo pools connections internally, so
the handle is shared by every request without extra locking.
"""
import logging

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from jobtracker.core.config import Settings
from jobtracker.core.exceptions import DatabaseConnectionError

logger = logging.getLogger(__name__)

# Collection name constants (avoid typos)
COLLECTIONS = {
    "users": "users",
    "jobs": "jobs",
}


def connect_db(settings: Settings) -> MongoClient:
    """
    Open the MongoDB client and make sure the server answers.

    Raises:
        DatabaseConnectionError: server unreachable within the timeout
    """
    timeout = settings.mongo_connect_timeout_ms
    try:
        client = MongoClient(
            settings.mongo_url,
            serverSelectionTimeoutMS=timeout,
            connectTimeoutMS=timeout,
        )
        # ping command checks connection
        client.admin.command("ping")
    except PyMongoError as e:
        raise DatabaseConnectionError(settings.mongo_url, str(e)) from e

    logger.info(f"Connected to MongoDB database '{settings.mongo_db}'")
    return client


def init_mongo_indexes(db: Database) -> None:
    """
    Create indexes for uniqueness and query performance.
    Safe to call on every startup.
    """
    db[COLLECTIONS["users"]].create_index("email", unique=True)

    # Every job query is scoped to its owner
    db[COLLECTIONS["jobs"]].create_index([("created_by", ASCENDING), ("created_at", DESCENDING)])

    logger.debug("MongoDB indexes ensured")


def open_database(settings: Settings) -> Database:
    """Connect, select the configured database and ensure its indexes."""
    client = connect_db(settings)
    db = client[settings.mongo_db]
    try:
        init_mongo_indexes(db)
    except PyMongoError as e:
        client.close()
        raise DatabaseConnectionError(settings.mongo_url, str(e)) from e
    return db
