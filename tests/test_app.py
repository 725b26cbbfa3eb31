import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from conftest import auth_headers
from paperless.db import session as db_session
from paperless.main import create_app
from paperless.middleware.ratelimit import RateLimitMiddleware, SlidingWindow, client_key


def test_root_reports_version_and_environment(client):
    body = client.get("/").json()
    assert body["message"] == "Paperless System API is running"
    assert body["version"] == "1.0.0"
    assert body["environment"] == "testing"


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "healthy"
    assert body["uptime"] >= 0
    assert body["timestamp"]


def test_unknown_route_is_json_404(client):
    resp = client.get("/nope")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Not Found", "details": "Route /nope not found"}


def test_unexpected_error_is_json_500():
    app = create_app()

    @app.get("/boom")
    def boom():
        raise ZeroDivisionError("kaboom")

    resp = TestClient(app, raise_server_exceptions=False).get("/boom")
    assert resp.status_code == 500
    body = resp.json()
    assert body["error"] == "Internal Server Error"
    assert body["details"] == "kaboom"
    assert "ZeroDivisionError" in body["stack"]


def test_unexpected_error_hides_details_in_production(monkeypatch):
    from paperless.config import settings

    monkeypatch.setattr(settings, "app_env", "production")
    app = create_app()

    @app.get("/boom")
    def boom():
        raise ZeroDivisionError("kaboom")

    resp = TestClient(app, raise_server_exceptions=False).get("/boom")
    assert resp.status_code == 500
    assert resp.json() == {"error": "Internal Server Error"}


def test_cors_allows_configured_client_origin(client):
    resp = client.options(
        "/auth/login",
        headers={"Origin": "http://localhost:3000", "Access-Control-Request-Method": "POST"},
    )
    assert resp.headers["access-control-allow-origin"] == "http://localhost:3000"


def _limited_app(max_calls):
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, window_seconds=60, max_calls=max_calls, key_func=client_key)

    @app.post("/auth/login")
    def login():
        return {"ok": True}

    @app.get("/documents")
    def documents():
        return {"ok": True}

    return app


def test_rate_limit_blocks_after_max_calls():
    client = TestClient(_limited_app(2))
    assert client.post("/auth/login").status_code == 200
    assert client.post("/auth/login").status_code == 200

    blocked = client.post("/auth/login")
    assert blocked.status_code == 429
    assert blocked.json()["error"] == "Too Many Requests"
    assert int(blocked.headers["retry-after"]) >= 1


def test_rate_limit_ignores_unguarded_paths():
    client = TestClient(_limited_app(1))
    for _ in range(5):
        assert client.get("/documents").status_code == 200


def test_rate_limit_keys_by_token_subject(alice):
    client = TestClient(_limited_app(1))
    assert client.post("/auth/login", headers=auth_headers(alice["token"])).status_code == 200
    # a different key (anonymous ip) still has its own budget
    assert client.post("/auth/login").status_code == 200
    assert client.post("/auth/login", headers=auth_headers(alice["token"])).status_code == 429


def test_connect_with_retry_gives_up(monkeypatch):
    attempts = []

    class DeadEngine:
        def connect(self):
            attempts.append(1)
            raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    monkeypatch.setattr(db_session, "engine", DeadEngine())
    monkeypatch.setattr(db_session.time, "sleep", lambda s: None)

    with pytest.raises(RuntimeError, match="Failed to connect to database after multiple retries"):
        db_session.connect_with_retry(retries=3, backoff_seconds=0)
    assert len(attempts) == 4


def test_connect_with_retry_succeeds_against_real_database():
    db_session.connect_with_retry(retries=0)


def test_sliding_window_frees_slots_as_calls_age_out():
    window = SlidingWindow(window_seconds=10, max_calls=2)
    assert window.hit("k", 0.0) is None
    assert window.hit("k", 4.0) is None
    assert window.hit("k", 5.0) == 5
    assert window.hit("other", 5.0) is None
    assert window.hit("k", 10.0) is None


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, "sqlite:///./paperless.db"),
        ("postgres://u:p@db/paperless", "postgresql+psycopg://u:p@db/paperless"),
        ("postgresql://u:p@db/paperless", "postgresql+psycopg://u:p@db/paperless"),
        ("sqlite:////tmp/x.db", "sqlite:////tmp/x.db"),
    ],
)
def test_normalize_database_url(raw, expected):
    assert db_session.normalize_url(raw) == expected


def test_sliding_window_forgets_idle_clients():
    window = SlidingWindow(window_seconds=10, max_calls=5)
    for i, key in enumerate(f"ip:10.0.0.{n}" for n in range(50)):
        window.hit(key, i * 0.1)
    assert len(window) == 50

    window.hit("ip:10.0.0.99", 20.0)
    assert len(window) == 1
