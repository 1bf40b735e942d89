"""
MongoDB access

The client is created once at import time from DATABASE_URL / DATABASE_NAME.
Handlers never touch the module level `db` directly; they receive it through
the `get_db` dependency so it can be swapped out in tests.
"""

import logging
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database

from config import DATABASE_NAME, DATABASE_URL
from errors import PersistenceFailed
from utils import utc_now

logger = logging.getLogger(__name__)

client: Optional[MongoClient] = MongoClient(DATABASE_URL) if DATABASE_URL else None
db: Optional[Database] = client[DATABASE_NAME] if client is not None else None


def get_db() -> Database:
    if db is None:
        raise PersistenceFailed("Database not configured")
    return db


def create_document(database: Database, collection_name: str, data: Union[BaseModel, dict]) -> Dict[str, Any]:
    """Insert a document with created_at/updated_at stamps and return it with its _id."""
    if isinstance(data, BaseModel):
        doc = data.model_dump()
    else:
        doc = dict(data)
    now = utc_now()
    doc.setdefault("created_at", now)
    doc["updated_at"] = now
    doc["_id"] = database[collection_name].insert_one(doc).inserted_id
    return doc


def ensure_indexes(database: Database) -> None:
    """Unique indexes backing the one-row-per-relation invariants."""
    database["user"].create_index([("username", ASCENDING)], unique=True)
    database["user"].create_index([("email", ASCENDING)], unique=True)
    for target in ("video", "comment", "tweet"):
        database["like"].create_index(
            [(target, ASCENDING), ("liked_by", ASCENDING)],
            unique=True,
            partialFilterExpression={target: {"$exists": True}},
            name=f"unique_{target}_like",
        )
    database["subscription"].create_index(
        [("subscriber", ASCENDING), ("channel", ASCENDING)],
        unique=True,
    )
    database["subscription"].create_index([("channel", ASCENDING)])
    database["comment"].create_index([("video", ASCENDING), ("created_at", ASCENDING)])
    database["tweet"].create_index([("owner", ASCENDING), ("created_at", ASCENDING)])
    database["video"].create_index([("owner", ASCENDING), ("created_at", ASCENDING)])
    database["playlist"].create_index([("owner", ASCENDING)])
    logger.info("MongoDB indexes ensured on %s", database.name)
