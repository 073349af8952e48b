"""
Shared fixtures: an in-memory Mongo database per test wired into the app.
"""

import datetime as dt

import mongomock
import pytest
from fastapi.testclient import TestClient

import main
from config import Settings, get_settings
from database import LESSONS, get_db

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


@pytest.fixture
def db():
    return mongomock.MongoClient()["lessons_shop_test"]


@pytest.fixture
def images_dir(tmp_path):
    path = tmp_path / "images"
    path.mkdir()
    (path / "maths.png").write_bytes(PNG_BYTES)
    return path


@pytest.fixture
def overrides(db, images_dir):
    main.app.dependency_overrides[get_db] = lambda: db
    main.app.dependency_overrides[get_settings] = lambda: Settings(images_dir=images_dir)
    yield
    main.app.dependency_overrides.clear()


@pytest.fixture
def client(overrides):
    with TestClient(main.app) as c:
        yield c


@pytest.fixture
def server_error_client(overrides):
    """Client that returns 500 responses instead of re-raising the error."""
    with TestClient(main.app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture
def add_lesson(db):
    """Insert a lesson straight into the store and return its id string."""
    def _add(subject="Maths", spaces=5, **extra):
        now = dt.datetime.now(dt.timezone.utc)
        doc = {
            "subject": subject,
            "location": extra.pop("location", "London"),
            "price": extra.pop("price", 100.0),
            "spaces": spaces,
            "image": extra.pop("image", "images/maths.png"),
            "created_at": now,
            "updated_at": now,
        }
        doc.update(extra)
        return str(db[LESSONS].insert_one(doc).inserted_id)
    return _add
