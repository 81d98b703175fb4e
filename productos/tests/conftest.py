import os

# must be set before app.db builds its engine
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["APP_ENV"] = "test"

import pytest
from fastapi.testclient import TestClient

from app.db import engine
from app.main import app
from app.models import Base


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def make_producto(client):
    def _make(name="Pen", price=1.50, stock=100):
        r = client.post("/api/productos", json={"name": name, "price": price, "stock": stock})
        assert r.status_code == 201
        return r.json()
    return _make
