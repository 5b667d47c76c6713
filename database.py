"""
MongoDB connection for the restaurants app.

The returned ``Database`` is the store context passed explicitly to every
data-access function; nothing here keeps a process-wide handle.
"""
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database

from config import Settings
from logging_config import get_logger

logger = get_logger(__name__)

RESTAURANTS = "restaurants"
RATINGS = "ratings"


def connect(settings: Settings) -> Database:
    # Transactions need a replica set or sharded cluster; a standalone
    # mongod accepts reads but rejects add_review_to_restaurant.
    client = MongoClient(settings.database_url, tz_aware=True)
    logger.info("database_connected", database=settings.database_name)
    return client[settings.database_name]


def ensure_indexes(db: Database) -> None:
    db[RATINGS].create_index([("restaurantId", ASCENDING), ("timestamp", DESCENDING)])
    for field in ("avgRating", "numRatings"):
        db[RESTAURANTS].create_index([(field, DESCENDING)])
