"""
MongoDB access for the DevCamper API.

Collections are named after the lowercase schema class (Bootcamp -> "bootcamp").
References between documents are stored as the hex string of the target _id.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from bson import ObjectId
from fastapi import HTTPException
from pydantic import BaseModel
from pymongo import ASCENDING, GEOSPHERE, MongoClient

from settings import DATABASE_NAME, DATABASE_URL

client = MongoClient(DATABASE_URL) if DATABASE_URL else None
db = client[DATABASE_NAME] if client is not None else None


def get_db():
    if db is None:
        raise HTTPException(status_code=503, detail="Database not configured")
    return db


def collection_name(model_cls) -> str:
    return model_cls.__name__.lower()


def ensure_indexes(database, geo: bool = True) -> None:
    database["bootcamp"].create_index("name", unique=True)
    database["user"].create_index("email", unique=True)
    # one review per user per bootcamp
    database["review"].create_index([("bootcamp_id", ASCENDING), ("user_id", ASCENDING)], unique=True)
    database["course"].create_index("bootcamp_id")
    if geo:
        database["bootcamp"].create_index([("location", GEOSPHERE)])


def to_object_id(id_str: str) -> ObjectId:
    # InvalidId propagates to the error handler which answers 404
    return ObjectId(id_str)


def create_document(database, name: str, data: Any) -> Dict[str, Any]:
    doc = data.model_dump() if isinstance(data, BaseModel) else dict(data)
    doc.setdefault("created_at", datetime.now(timezone.utc))
    res = database[name].insert_one(doc)
    doc["_id"] = res.inserted_id
    return doc


def find_by_id(database, name: str, id_str: str, projection: Optional[Dict[str, int]] = None):
    return database[name].find_one({"_id": to_object_id(id_str)}, projection)


def _plain(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


def serialize_doc(doc: Optional[Dict[str, Any]], hidden=()) -> Optional[Dict[str, Any]]:
    if not doc:
        return doc
    d = {k: v for k, v in doc.items() if k not in hidden}
    if "_id" in d:
        d = {"id": str(d.pop("_id")), **d}
    return _plain(d)
