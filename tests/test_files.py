"""
Загрузка файлов и health-check.
"""
from urllib.parse import urlparse


def test_upload_and_fetch(client, headers):
    response = client.post(
        "/file",
        files={"file": ("car.PNG", b"\x89PNG fake image", "image/png")},
        headers=headers,
    )
    assert response.status_code == 201
    url = response.json()["url"]
    assert url.endswith(".png")

    fetched = client.get(urlparse(url).path)
    assert fetched.status_code == 200
    assert fetched.content == b"\x89PNG fake image"


def test_upload_requires_token(client):
    response = client.post("/file", files={"file": ("car.png", b"data", "image/png")})
    assert response.status_code == 401


def test_upload_without_file(client, headers):
    assert client.post("/file", headers=headers).status_code == 400


def test_health_without_redis(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "cache": False}
