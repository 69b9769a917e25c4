"""
HTTP tests for the registration, debug and health endpoints.
"""

import hashlib
import hmac
import json
from urllib.parse import unquote

import pytest
from fastapi.testclient import TestClient

from api.server import create_app
from core.storage.d1 import D1Storage
from core.storage.memory import InMemoryStorage
from core.storage.redis import RedisStorage
from core.storage.upstash import UpstashRedisStorage


@pytest.fixture
def client(settings, storage):
    return TestClient(create_app(settings=settings, storage=storage))


def test_register_end_to_end(client, settings):
    response = client.post("/api/register", json={"username": "alice", "password": "secret1"})

    assert response.status_code == 200
    assert response.json() == {"ok": True}

    set_cookie = response.headers["set-cookie"]
    assert set_cookie.startswith("auth=")
    assert "Path=/" in set_cookie
    assert "SameSite=lax" in set_cookie
    assert "expires=" in set_cookie.lower()
    assert "httponly" not in set_cookie.lower()
    assert "secure" not in set_cookie.lower()

    payload = json.loads(unquote(response.cookies["auth"]))
    expected = hmac.new(settings.password.encode(), b"alice", hashlib.sha256).hexdigest()
    assert payload["username"] == "alice"
    assert payload["signature"] == expected
    assert isinstance(payload["timestamp"], int)


def test_register_twice(client):
    first = client.post("/api/register", json={"username": "alice", "password": "secret1"})
    second = client.post("/api/register", json={"username": "alice", "password": "secret1"})

    assert first.status_code == 200
    assert second.status_code == 400
    assert second.json() == {"error": "User already exists"}
    assert "set-cookie" not in second.headers


def test_register_admin_name(client):
    response = client.post("/api/register", json={"username": "admin", "password": "secret1"})

    assert response.status_code == 400
    assert response.json() == {"error": "User already exists"}


def test_register_localstorage_mode(make_settings, storage):
    client = TestClient(create_app(settings=make_settings(storage_type="localstorage"), storage=storage))

    response = client.post("/api/register", json={"username": "alice", "password": "secret1"})

    assert response.status_code == 400
    assert response.json() == {"error": "Registration is not supported in the current mode"}


def test_register_invalid_environment(make_settings, storage):
    client = TestClient(create_app(settings=make_settings(redis_url=""), storage=storage))

    response = client.post("/api/register", json={"username": "alice", "password": "secret1"})

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Server configuration error"
    assert body["details"] == ["Missing required environment variable: REDIS_URL"]


def test_register_malformed_json(client):
    response = client.post(
        "/api/register",
        content=b"{not json",
        headers={"content-type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Malformed request"}


def test_register_missing_password(client):
    response = client.post("/api/register", json={"username": "alice"})

    assert response.status_code == 400
    assert response.json() == {"error": "Password cannot be empty"}


def test_register_backend_failure(client, storage):
    storage.fail_on("register_user", RuntimeError("connect ECONNREFUSED 10.0.0.5:6379"))

    response = client.post("/api/register", json={"username": "alice", "password": "secret1"})

    assert response.status_code == 500
    assert response.json() == {"error": "Database connection failed, please try again later"}


def test_debug_denied_without_key(client):
    response = client.get("/api/debug/env")

    assert response.status_code == 403
    assert response.json() == {"error": "Access denied"}


def test_debug_denied_with_wrong_key(make_settings, storage):
    client = TestClient(create_app(settings=make_settings(debug_key="k3y"), storage=storage))

    assert client.get("/api/debug/env", params={"key": "nope"}).status_code == 403


def test_debug_with_key(make_settings, storage):
    settings = make_settings(debug_key="k3y", password="admin-secret")
    client = TestClient(create_app(settings=settings, storage=storage))

    response = client.get(
        "/api/debug/env",
        params={"key": "k3y"},
        headers={"cf-ray": "8a1b2c3d-AMS", "x-forwarded-for": "203.0.113.9"},
    )

    assert response.status_code == 200
    assert response.headers["cache-control"] == "no-cache, no-store, must-revalidate"
    assert response.headers["pragma"] == "no-cache"
    assert response.headers["expires"] == "0"

    data = response.json()
    assert data["validation"] == {"valid": True, "errors": [], "warnings": []}
    assert data["environment"]["storage_type"] == "redis"
    assert data["environment"]["has_password"] is True
    assert data["environment"]["upstash_status"] == "unknown"
    assert data["headers"]["cf_ray"] == "8a1b2c3d-AMS"
    assert data["headers"]["x_forwarded_for"] == "203.0.113.9"
    assert data["cloudflare_detection"] == {"cf_ray_header": True, "is_cloudflare": True}
    assert "admin-secret" not in response.text


def test_debug_open_in_development(make_settings, storage):
    client = TestClient(create_app(settings=make_settings(environment="development"), storage=storage))

    assert client.get("/api/debug/env").status_code == 200


def test_debug_probes_upstash(make_settings):
    settings = make_settings(
        environment="development",
        storage_type="upstash",
        upstash_url="https://x.upstash.io",
        upstash_token="tok-1234567890",
    )
    storage = InMemoryStorage()
    storage.fail_on("check_user_exist", RuntimeError("WRONGPASS invalid token"))
    client = TestClient(create_app(settings=settings, storage=storage))

    failed = client.get("/api/debug/env").json()
    connected = client.get("/api/debug/env").json()

    assert failed["environment"]["upstash_status"] == "connection_failed: WRONGPASS invalid token"
    assert connected["environment"]["upstash_status"] == "connected"


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"

    ready = client.get("/ready").json()
    assert ready["status"] == "ready"
    assert ready["checks"]["storage"] == "ok"


def test_lifespan_opens_and_closes_injected_storage(settings, storage):
    with TestClient(create_app(settings=settings, storage=storage)) as client:
        assert storage.is_open
        assert client.get("/health").status_code == 200

    assert not storage.is_open


def test_register_blank_storage_type_is_local_mode(make_settings, storage):
    client = TestClient(create_app(settings=make_settings(storage_type=""), storage=storage))

    response = client.post("/api/register", json={"username": "alice", "password": "secret1"})

    assert response.status_code == 400
    assert response.json() == {"error": "Registration is not supported in the current mode"}
    assert storage.passwords == {}


# =========================================
# Startup without an injected backend
# =========================================

@pytest.mark.parametrize(
    "overrides, backend",
    [
        ({"storage_type": "redis", "redis_url": "redis://localhost:6379"}, RedisStorage),
        ({"storage_type": "Redis", "redis_url": "rediss://cache.internal:6380"}, RedisStorage),
        (
            {
                "storage_type": "upstash",
                "upstash_url": "https://eu1-fake.upstash.io",
                "upstash_token": "tok-1234567890",
            },
            UpstashRedisStorage,
        ),
        (
            {
                "storage_type": "d1",
                "d1_database_id": "db-1",
                "d1_account_id": "acc-1",
                "d1_api_token": "cf-token",
            },
            D1Storage,
        ),
    ],
)
def test_lifespan_builds_configured_backend(make_settings, overrides, backend):
    app = create_app(settings=make_settings(**overrides))

    with TestClient(app) as client:
        assert isinstance(app.state.storage, backend)
        assert client.get("/ready").json()["checks"]["storage"] == "ok"

    assert app.state.storage is None


def test_lifespan_localstorage_has_no_backend(make_settings):
    app = create_app(settings=make_settings(storage_type="localstorage"))

    with TestClient(app) as client:
        assert app.state.storage is None
        assert client.get("/ready").json()["checks"]["storage"] == "not_required"

        response = client.post("/api/register", json={"username": "alice", "password": "secret1"})
        assert response.status_code == 400


def test_lifespan_survives_missing_redis_url(make_settings):
    app = create_app(settings=make_settings(redis_url=None, environment="development"))

    with TestClient(app) as client:
        assert app.state.storage is None

        debug = client.get("/api/debug/env")
        assert debug.status_code == 200
        assert debug.json()["validation"]["valid"] is False
        assert "Missing required environment variable: REDIS_URL" in debug.json()["validation"]["errors"]

        response = client.post("/api/register", json={"username": "alice", "password": "secret1"})
        assert response.status_code == 500
        assert response.json()["error"] == "Server configuration error"

        ready = client.get("/ready").json()
        assert ready["status"] == "degraded"


def test_lifespan_survives_unusable_redis_url(make_settings):
    app = create_app(settings=make_settings(redis_url="localhost:6379", environment="development"))

    with TestClient(app) as client:
        assert app.state.storage is None

        debug = client.get("/api/debug/env").json()
        assert debug["validation"]["valid"] is True
        assert "REDIS_URL should start with redis:// or rediss://" in debug["validation"]["warnings"]

        response = client.post("/api/register", json={"username": "alice", "password": "secret1"})
        assert response.status_code == 500
        assert response.json() == {"error": "Server error"}

        assert client.get("/ready").json()["checks"]["storage"] == "missing"


def test_lifespan_unknown_storage_type(make_settings):
    app = create_app(settings=make_settings(storage_type="mongodb", environment="development"))

    with TestClient(app) as client:
        assert app.state.storage is None

        debug = client.get("/api/debug/env").json()
        assert "Unknown storage type: mongodb" in debug["validation"]["warnings"]
