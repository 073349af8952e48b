import logging
from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Optional, Tuple

from bson import ObjectId
from pymongo.database import Database
from pymongo.errors import PyMongoError

from database import LESSONS, ORDERS, create_document, parse_object_id, utcnow
from errors import EmptyCart, InsufficientSpaces, LessonNotFound
from schemas import CartItem

logger = logging.getLogger("lessons_shop.orders")

PENDING = "Pending"


class OrderWorkflow:
    def __init__(self, db: Database, release_attempts: int = 3):
        self.db = db
        self.release_attempts = release_attempts

    def place(self, cart: Iterable[CartItem], details: Optional[Dict[str, Any]] = None) -> str:
        """Validate, reserve and persist one order. Returns the order id."""
        wanted = self._merge(cart)
        lessons = self._validate(wanted)

        # A request dropped by the server mid-commit keeps whatever it reserved
        reserved: List[Tuple[ObjectId, int]] = []
        try:
            for oid, qty in wanted.items():
                self._reserve(oid, qty, lessons[oid])
                reserved.append((oid, qty))
            order_id = create_document(self.db, ORDERS, {
                "orderDetails": details or {},
                "lessons": [
                    {"lessonId": str(oid), "subject": lessons[oid].get("subject"), "quantity": qty}
                    for oid, qty in wanted.items()
                ],
                "orderDate": utcnow(),
                "status": PENDING,
            })
        except Exception:
            self._release(reserved)
            raise

        logger.info("Order %s placed for %d lesson(s)", order_id, len(wanted))
        return order_id

    def _merge(self, cart: Iterable[CartItem]) -> "OrderedDict[ObjectId, int]":
        wanted: "OrderedDict[ObjectId, int]" = OrderedDict()
        for item in cart:
            oid = parse_object_id(item.lessonId)
            wanted[oid] = wanted.get(oid, 0) + item.quantity
        if not wanted:
            raise EmptyCart()
        return wanted

    def _validate(self, wanted: "OrderedDict[ObjectId, int]") -> Dict[ObjectId, Dict[str, Any]]:
        # Every read finishes before any write is issued
        lessons = {}
        for oid, qty in wanted.items():
            doc = self.db[LESSONS].find_one({"_id": oid})
            if doc is None:
                raise LessonNotFound(str(oid))
            available = doc.get("spaces", 0)
            if qty > available:
                raise InsufficientSpaces(doc.get("subject"), qty, available)
            lessons[oid] = doc
        return lessons

    def _reserve(self, oid: ObjectId, qty: int, lesson: Dict[str, Any]) -> None:
        result = self.db[LESSONS].update_one(
            {"_id": oid, "spaces": {"$gte": qty}},
            {"$inc": {"spaces": -qty}, "$set": {"updated_at": utcnow()}},
        )
        if result.matched_count == 1:
            return
        # Stock moved since validation: either sold out or deleted
        if self.db[LESSONS].find_one({"_id": oid}, {"_id": 1}) is None:
            raise LessonNotFound(str(oid))
        raise InsufficientSpaces(lesson.get("subject"), qty)

    def _release(self, reserved: List[Tuple[ObjectId, int]]) -> None:
        for oid, qty in reserved:
            for attempt in range(1, self.release_attempts + 1):
                try:
                    self.db[LESSONS].update_one({"_id": oid}, {"$inc": {"spaces": qty}})
                    break
                except PyMongoError as e:
                    logger.warning(
                        "Releasing %d space(s) on lesson %s failed (attempt %d/%d): %s",
                        qty, oid, attempt, self.release_attempts, e,
                    )
            else:
                logger.error("Could not release %d space(s) on lesson %s", qty, oid)
