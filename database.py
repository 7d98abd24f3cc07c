"""
MongoDB access helpers.

The database handle is created once per process by ``connect`` and kept on
``app.state.db``; routes receive it through the ``get_db`` dependency.
"""
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from dotenv import load_dotenv
from fastapi import Request
from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database

load_dotenv()

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
DATABASE_NAME = os.getenv("DATABASE_NAME", "jewelry_store")

# fields never returned to callers
HIDDEN_FIELDS = ("password_hash", "__v")


def connect(url: str = DATABASE_URL, name: str = DATABASE_NAME) -> Database:
    client = MongoClient(url)
    logger.info("Using MongoDB database %r", name)
    return client[name]


def ensure_indexes(db: Database) -> None:
    db["user"].create_index([("email", ASCENDING)], unique=True)


def get_db(request: Request) -> Database:
    return request.app.state.db


def is_valid_id(value: str) -> bool:
    return ObjectId.is_valid(value)


def now() -> datetime:
    return datetime.now(timezone.utc)


def serialize(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if doc is None:
        return None
    out = {k: v for k, v in doc.items() if k not in HIDDEN_FIELDS}
    if "_id" in out:
        out["id"] = str(out.pop("_id"))
    return out


def create_document(db: Database, collection_name: str, data: Union[BaseModel, dict],
                    timestamps: bool = False) -> Dict[str, Any]:
    doc = data.model_dump() if isinstance(data, BaseModel) else dict(data)
    if timestamps:
        doc["createdAt"] = doc["updatedAt"] = now()
    result = db[collection_name].insert_one(doc)
    doc["_id"] = result.inserted_id
    return doc


def get_documents(db: Database, collection_name: str, filter_dict: Optional[dict] = None,
                  projection: Optional[dict] = None) -> List[Dict[str, Any]]:
    return list(db[collection_name].find(filter_dict or {}, projection))
