"""
Общие фикстуры: in-memory SQLite, TestClient и хелперы для пользователей/машин/постов.

Run with:  python -m pytest tests/ -v
"""
import os
import tempfile

# Настройки читаются при импорте car_market.config, поэтому env - до импортов приложения
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="car-market-uploads-")
os.environ["GOOGLE_CLIENT_ID"] = "test-client-id"
os.environ.pop("REDIS_URL", None)
os.environ.pop("API_PREFIX", None)

import pytest
from fastapi.testclient import TestClient

from car_market.main import app
from car_market.models import Base
from car_market.utils.database import engine, SessionLocal


CAR = {
    "make": "toyota",
    "model": "camry",
    "year": 2010,
    "price": 40000,
    "hand": 2,
    "color": "black",
    "mileage": 100000,
    "city": "Holon",
}


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(autouse=True)
def database():
    # Чистая схема на каждый тест
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    # Без контекстного менеджера: lifespan (Redis) не запускается, кэш отключен
    return TestClient(app)


@pytest.fixture
def register(client):
    def _register(name="Testy", email="t@test.com", password="x"):
        response = client.post(
            "/auth/register",
            json={"name": name, "email": email, "password": password},
        )
        assert response.status_code == 201, response.text
        return response.json()
    return _register


@pytest.fixture
def user(register):
    return register()


@pytest.fixture
def headers(user):
    return bearer(user["tokens"]["accessToken"])


@pytest.fixture
def other_user(register):
    return register(name="Other", email="other@test.com", password="y")


@pytest.fixture
def other_headers(other_user):
    return bearer(other_user["tokens"]["accessToken"])


@pytest.fixture
def create_car(client):
    def _create_car(headers, **overrides):
        response = client.post("/car", json={**CAR, **overrides}, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()
    return _create_car


@pytest.fixture
def create_post(client, create_car):
    def _create_post(headers, **car_overrides):
        car = create_car(headers, **car_overrides)
        response = client.post("/post", json={"car": car["id"]}, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()
    return _create_post


@pytest.fixture
def post(create_post, headers):
    return create_post(headers)
