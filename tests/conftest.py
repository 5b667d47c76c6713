from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from tests.fakes import FakeDatabase

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def db():
    return FakeDatabase()


def _insert_restaurant(db, **overrides):
    doc = {
        "name": "Bombay Brasserie",
        "category": "Indian",
        "city": "Austin",
        "price": 2,
        "photo": "https://example.com/bombay.png",
        "numRatings": 0,
        "sumRating": 0,
        "avgRating": 0,
        "timestamp": BASE_TIME,
    }
    doc.update(overrides)
    return str(db["restaurants"].insert_one(doc).inserted_id)


@pytest.fixture()
def make_restaurant(db):
    def make(**overrides):
        return _insert_restaurant(db, **overrides)
    return make


@pytest.fixture()
def restaurant_id(make_restaurant):
    return make_restaurant()


@pytest.fixture()
def make_review(db):
    def make(restaurant_id, rating, minutes_ago=60, **fields):
        doc = {
            "restaurantId": restaurant_id,
            "rating": rating,
            "text": f"{rating} stars",
            "timestamp": datetime.now(timezone.utc) - timedelta(minutes=minutes_ago),
        }
        doc.update(fields)
        return str(db["ratings"].insert_one(doc).inserted_id)
    return make


@pytest.fixture()
def client(db):
    from main import app, get_db

    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()
