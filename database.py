import datetime as _dt
import logging
from functools import lru_cache
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import MongoClient
from pymongo.database import Database

from config import get_settings
from errors import InvalidId

logger = logging.getLogger("lessons_shop.database")

LESSONS = "lessons"
ORDERS = "orders"


@lru_cache()
def get_client(url: str) -> MongoClient:
    # mongodb:// connects lazily; mongodb+srv:// resolves its SRV record here
    return MongoClient(url, serverSelectionTimeoutMS=5000)


def get_db() -> Database:
    settings = get_settings()
    logger.debug("Using database %s at %s", settings.db_name, settings.safe_connection_string)
    return get_client(settings.connection_string)[settings.db_name]


def parse_object_id(value: Any) -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    if not isinstance(value, str) or not ObjectId.is_valid(value):
        raise InvalidId(value)
    return ObjectId(value)


def serialize_doc(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not doc:
        return doc
    doc = dict(doc)
    _id = doc.pop("_id", None)
    if _id is not None:
        doc["id"] = str(_id)
    for k, v in list(doc.items()):
        if isinstance(v, (_dt.datetime, _dt.date)):
            doc[k] = v.isoformat()
        elif isinstance(v, ObjectId):
            doc[k] = str(v)
    return doc


def utcnow() -> _dt.datetime:
    return _dt.datetime.now(_dt.timezone.utc)


def create_document(db: Database, collection_name: str, data: Dict[str, Any]) -> str:
    now = utcnow()
    document = {**data, "created_at": now, "updated_at": now}
    result = db[collection_name].insert_one(document)
    return str(result.inserted_id)


def get_documents(
    db: Database,
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    limit: Optional[int] = None,
) -> List[Dict[str, Any]]:
    cursor = db[collection_name].find(filter_dict or {})
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)
