import mongomock
import pytest
from fastapi.testclient import TestClient

from main import create_app


@pytest.fixture
def db():
    return mongomock.MongoClient()["jewelry_store_test"]


@pytest.fixture
def client(db):
    with TestClient(create_app(db)) as c:
        yield c


@pytest.fixture
def register(client):
    def _register(name="Alice", email="alice@example.com", password="s3cret"):
        return client.post("/api/register", json={"name": name, "email": email, "password": password})
    return _register


@pytest.fixture
def make_product(client):
    def _make(**fields):
        body = {"name": "Ring", "price": 10, "imageUrl": "x.jpg", "stock": 5}
        body.update(fields)
        body = {k: v for k, v in body.items() if v is not None}
        return client.post("/api/products", json=body)
    return _make
