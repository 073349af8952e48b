from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from pymongo.database import Database
from pymongo.errors import PyMongoError

import catalog
from config import Settings, get_settings
from database import get_db
from errors import ImageNotFound, ShopError
from logger import RequestLogMiddleware, setup_logger
from orders import OrderWorkflow
from schemas import (
    CreateOrder,
    LegacyOrderBody,
    LessonCreated,
    LessonIn,
    LessonOut,
    LessonUpdate,
    Message,
    OrderOut,
)

settings = get_settings()
logger = setup_logger("lessons_shop", settings.log_level)

app = FastAPI(title="Lessons Shop API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)
app.add_middleware(RequestLogMiddleware, logger=logger)


# Error translation
@app.exception_handler(ShopError)
def handle_shop_error(request: Request, exc: ShopError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(PyMongoError)
def handle_storage_error(request: Request, exc: PyMongoError):
    logger.error("Storage failure on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.exception_handler(Exception)
def handle_unexpected_error(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.exception_handler(RequestValidationError)
def handle_validation_error(request: Request, exc: RequestValidationError):
    problems = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ())[1:])
        problems.append(f"{field}: {err.get('msg')}" if field else err.get("msg", "invalid"))
    return JSONResponse(status_code=400, content={"detail": "; ".join(problems) or "Invalid request"})


@app.get("/")
def read_root():
    return {"message": "Lessons Shop API running"}


@app.get("/test")
def test_database(db: Database = Depends(get_db)):
    response: Dict[str, Any] = {
        "backend": "Running",
        "database": "Not Available",
        "database_name": db.name,
        "connection_status": "Not Connected",
        "collections": [],
    }
    try:
        response["collections"] = db.list_collection_names()[:10]
        response["database"] = "Connected & Working"
        response["connection_status"] = "Connected"
    except PyMongoError as e:
        logger.warning("Database check failed: %s", e)
        response["database"] = "Connected but Error"
    return response


# Lessons
@app.get("/lessons", response_model=List[LessonOut])
@app.get("/lessons/", response_model=List[LessonOut], include_in_schema=False)
def list_lessons(db: Database = Depends(get_db)):
    return catalog.list_lessons(db)


@app.get("/lessons/{lesson_id}", response_model=LessonOut)
def get_lesson(lesson_id: str, db: Database = Depends(get_db)):
    return catalog.get_lesson(db, lesson_id)


@app.get("/search", response_model=List[LessonOut])
@app.get("/search/", response_model=List[LessonOut], include_in_schema=False)
def search_lessons(search_term: Optional[str] = Query(None), db: Database = Depends(get_db)):
    return catalog.search_lessons(db, search_term)


@app.post("/lessons", response_model=LessonCreated, status_code=201)
def create_lesson(payload: LessonIn, db: Database = Depends(get_db)):
    lesson_id = catalog.create_lesson(db, payload)
    logger.info("Lesson %s created", lesson_id)
    return {"message": "Lesson created", "id": lesson_id}


@app.put("/lessons/{lesson_id}", response_model=Message)
def update_lesson(lesson_id: str, payload: LessonUpdate, db: Database = Depends(get_db)):
    catalog.update_lesson(db, lesson_id, payload)
    return {"message": "Lesson updated"}


@app.delete("/lessons/{lesson_id}", response_model=Message)
def delete_lesson(lesson_id: str, db: Database = Depends(get_db)):
    catalog.delete_lesson(db, lesson_id)
    logger.info("Lesson %s deleted", lesson_id)
    return {"message": "Lesson deleted"}


# Orders
@app.post("/orders", response_model=OrderOut, status_code=201)
@app.post("/orders/", response_model=OrderOut, status_code=201, include_in_schema=False)
def create_order(payload: CreateOrder, db: Database = Depends(get_db)):
    order_id = OrderWorkflow(db).place(payload.cartItems, payload.orderDetails)
    return {"message": "Order placed successfully", "orderId": order_id}


@app.post("/order", response_model=OrderOut, status_code=201)
@app.post("/order/", response_model=OrderOut, status_code=201, include_in_schema=False)
def create_legacy_order(payload: LegacyOrderBody, db: Database = Depends(get_db)):
    items = payload if isinstance(payload, list) else payload.cartItems
    order_id = OrderWorkflow(db).place(items)
    return {"message": "Order placed successfully", "orderId": order_id}


# Static images
@app.get("/images/{image_path:path}")
def get_image(image_path: str, app_settings: Settings = Depends(get_settings)):
    base = app_settings.images_dir.resolve()
    target = (base / image_path).resolve()
    if base not in target.parents or not target.is_file():
        raise ImageNotFound()
    return FileResponse(target)


if __name__ == "__main__":
    import uvicorn
    logger.info("Connecting to %s", settings.safe_connection_string)
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
