"""
Pytest configuration and fixtures: an in-memory MongoDB and an API client bound to it
"""
import mongomock
import pytest
from fastapi.testclient import TestClient

import main
from database import get_db, now
from security import hash_password


@pytest.fixture
def db():
    return mongomock.MongoClient()["shop_test"]


@pytest.fixture
def client(db):
    main.app.dependency_overrides[get_db] = lambda: db
    yield TestClient(main.app)
    main.app.dependency_overrides.clear()


@pytest.fixture
def make_category(db):
    def _make(name, parent=None, **extra):
        doc = {"name": name, "slug": name.lower(), "parent": parent, "featured": False, "order": 0, **extra}
        return db["category"].insert_one(doc).inserted_id
    return _make


@pytest.fixture
def make_product(db, make_category):
    def _make(name="Phone", stock=5, variants=None, price=100.0, category=None, **extra):
        doc = {
            "name": name,
            "slug": name.lower(),
            "brand": "Acme",
            "category": category or make_category(f"cat-{name}"),
            "price": price,
            "discount": 0,
            "stock": stock,
            "variants": variants or [],
            "images": [],
            "rating": 0,
            "num_reviews": 0,
            "created_at": now(),
            **extra,
        }
        return db["product"].insert_one(doc).inserted_id
    return _make


def _login(client, email, password):
    res = client.post("/api/users/login", json={"email": email, "password": password})
    assert res.status_code == 200, res.text
    return {"Authorization": f"Bearer {res.json()['token']}"}


@pytest.fixture
def admin_headers(client, db):
    db["user"].insert_one({
        "name": "Admin",
        "email": "admin@example.com",
        "password_hash": hash_password("secret123"),
        "role": "admin",
        "addresses": [],
        "wishlist": [],
    })
    return _login(client, "admin@example.com", "secret123")


@pytest.fixture
def user_headers(client):
    res = client.post("/api/users", json={"name": "Jane", "email": "jane@example.com", "password": "secret123"})
    assert res.status_code == 201, res.text
    return {"Authorization": f"Bearer {res.json()['token']}"}
