import itertools

import pytest
from fastapi.testclient import TestClient

from storefront.config import Settings
from storefront.database import Database
from storefront.main import create_app

_emails = itertools.count(1)


@pytest.fixture
def settings():
    s = Settings()
    s.DATABASE_URL = "sqlite://"
    s.JWT_SECRET = "test-secret"
    s.ENVIRONMENT = "test"
    # Lowest cost bcrypt accepts; keeps the suite fast
    s.BCRYPT_ROUNDS = 4
    return s


@pytest.fixture
def database(settings):
    db = Database(settings.DATABASE_URL)
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def app(settings, database):
    return create_app(settings, database)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def register(client, role="USER", email=None, password="secret123", name="Test User"):
    email = email or f"user{next(_emails)}@example.com"
    resp = client.post(
        "/api/auth/register",
        json={"email": email, "password": password, "name": name, "role": role},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def register_user(client):
    def _register(**kwargs):
        return register(client, **kwargs)
    return _register


@pytest.fixture
def admin_headers(client):
    return auth_headers(register(client, role="ADMIN")["token"])


@pytest.fixture
def user_headers(client):
    return auth_headers(register(client)["token"])


@pytest.fixture
def make_product(client, admin_headers):
    def _make(name="Widget", price=10.0, stock=100, **extra):
        body = {"name": name, "price": price, "stock": stock}
        body.update(extra)
        resp = client.post("/products", json=body, headers=admin_headers)
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]
    return _make
