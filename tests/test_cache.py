"""
Кэш цветов/городов в Redis: попадания, сброс при изменении машин и работа без Redis.
"""
import pytest
import redis
from fakeredis import FakeServer, aioredis
from fastapi.testclient import TestClient

from car_market.main import app
from car_market.models import Car
from car_market.services.cache import cache
from conftest import CAR


class BrokenRedis:
    """Клиент, у которого каждая команда падает, как при недоступном Redis"""

    async def _fail(self, *args, **kwargs):
        raise redis.ConnectionError("Connection refused")

    get = setex = delete = ping = _fail

    async def aclose(self):
        pass


@pytest.fixture
def redis_client():
    return aioredis.FakeRedis(server=FakeServer(), decode_responses=True)


@pytest.fixture
def client(redis_client):
    # Один event loop на весь тест: клиент Redis живёт между запросами
    cache._client = redis_client
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        cache._client = None


def _colors(client, headers):
    response = client.get("/car/colors", headers=headers)
    assert response.status_code == 200
    return response.json()


class TestCarOptionsCache:

    def test_health_reports_cache(self, client):
        assert client.get("/health").json() == {"status": "ok", "cache": True}

    def test_served_from_cache(self, client, user, headers, create_car, db):
        create_car(headers, color="black")
        assert _colors(client, headers) == ["black"]

        # Мимо API: кэш не сброшен, отдаётся старый список
        db.add(Car(**{**CAR, "color": "red"}, owner_id=user["user"]["id"], image_urls=[]))
        db.commit()
        assert _colors(client, headers) == ["black"]

    def test_create_refreshes_list(self, client, headers, create_car):
        create_car(headers, color="black")
        assert _colors(client, headers) == ["black"]

        create_car(headers, color="red")
        assert _colors(client, headers) == ["black", "red"]

    def test_update_refreshes_list(self, client, headers, create_car):
        car = create_car(headers, color="black", city="Holon")
        assert _colors(client, headers) == ["black"]
        assert client.get("/car/cities", headers=headers).json() == ["Holon"]

        client.put(f"/car/{car['id']}", json={"color": "white", "city": "Haifa"}, headers=headers)

        assert _colors(client, headers) == ["white"]
        assert client.get("/car/cities", headers=headers).json() == ["Haifa"]

    def test_car_delete_refreshes_list(self, client, headers, create_car):
        create_car(headers, color="black")
        car = create_car(headers, color="red")
        assert _colors(client, headers) == ["black", "red"]

        client.delete(f"/car/{car['id']}", headers=headers)
        assert _colors(client, headers) == ["black"]

    def test_post_delete_refreshes_list(self, client, headers, create_car, create_post):
        create_car(headers, color="black")
        post = create_post(headers, color="green")
        assert _colors(client, headers) == ["black", "green"]

        client.delete(f"/post/{post['id']}", headers=headers)
        assert _colors(client, headers) == ["black"]


class TestRedisDown:

    @pytest.fixture
    def redis_client(self):
        return BrokenRedis()

    def test_lists_come_from_database(self, client, headers, create_car):
        create_car(headers, color="black")
        assert _colors(client, headers) == ["black"]

        create_car(headers, color="red")
        assert _colors(client, headers) == ["black", "red"]

    def test_health_reports_cache_down(self, client):
        assert client.get("/health").json() == {"status": "ok", "cache": False}
