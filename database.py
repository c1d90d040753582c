"""
MongoDB access

A single client is created lazily from DATABASE_URL / DATABASE_NAME.
Routes receive the database through the `get_db` dependency so tests can
swap in an in-memory one.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Optional, Union

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import HTTPException
from pymongo import MongoClient
from pymongo.database import Database

import config

logger = logging.getLogger(__name__)

_client: Optional[MongoClient] = None


def get_db() -> Database:
    global _client
    if _client is None:
        logger.info("Connecting to MongoDB database %s", config.DATABASE_NAME)
        _client = MongoClient(config.DATABASE_URL)
    return _client[config.DATABASE_NAME]


def now() -> datetime:
    return datetime.now(timezone.utc)


def to_object_id(value: Union[str, ObjectId], label: str = "id") -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise HTTPException(status_code=400, detail=f"Invalid {label}: {value}")


def serialize(doc: Any) -> Any:
    """Make a stored document JSON friendly: ObjectIds become strings and `_id` becomes `id`."""
    if isinstance(doc, list):
        return [serialize(d) for d in doc]
    if isinstance(doc, ObjectId):
        return str(doc)
    if not isinstance(doc, dict):
        return doc
    out = {}
    for k, v in doc.items():
        if k == "password_hash":
            continue
        out["id" if k == "_id" else k] = serialize(v)
    return out
