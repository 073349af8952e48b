import re
from typing import Any, Dict, List, Optional

from pymongo.database import Database

from database import LESSONS, create_document, get_documents, parse_object_id, serialize_doc, utcnow
from errors import LessonNotFound
from schemas import LessonIn, LessonOut, LessonUpdate


def lesson_out(doc: Dict[str, Any]) -> Dict[str, Any]:
    """Shape a stored lesson into its external form."""
    data = serialize_doc(doc)
    spaces = data.get("spaces", 0)
    return LessonOut(
        id=data["id"],
        subject=data.get("subject", ""),
        location=data.get("location"),
        price=data.get("price"),
        spaces=spaces,
        image=data.get("image"),
        availableInventory=spaces,
    ).model_dump()


def list_lessons(db: Database) -> List[Dict[str, Any]]:
    return [lesson_out(doc) for doc in get_documents(db, LESSONS)]


def get_lesson(db: Database, lesson_id: str) -> Dict[str, Any]:
    oid = parse_object_id(lesson_id)
    doc = db[LESSONS].find_one({"_id": oid})
    if doc is None:
        raise LessonNotFound(lesson_id)
    return lesson_out(doc)


def search_lessons(db: Database, term: Optional[str]) -> List[Dict[str, Any]]:
    """Case-insensitive prefix match on subject."""
    query = {"subject": {"$regex": "^" + re.escape(term or ""), "$options": "i"}}
    return [lesson_out(doc) for doc in get_documents(db, LESSONS, query)]


def create_lesson(db: Database, lesson: LessonIn) -> str:
    data = lesson.model_dump(exclude={"availableInventory"})
    return create_document(db, LESSONS, data)


def update_lesson(db: Database, lesson_id: str, lesson: LessonUpdate) -> None:
    oid = parse_object_id(lesson_id)
    fields = lesson.model_dump(exclude_none=True, exclude={"availableInventory"})
    fields["updated_at"] = utcnow()
    result = db[LESSONS].update_one({"_id": oid}, {"$set": fields})
    if result.matched_count == 0:
        raise LessonNotFound(lesson_id)


def delete_lesson(db: Database, lesson_id: str) -> None:
    oid = parse_object_id(lesson_id)
    result = db[LESSONS].delete_one({"_id": oid})
    if result.deleted_count == 0:
        raise LessonNotFound(lesson_id)
