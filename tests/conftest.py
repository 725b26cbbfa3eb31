"""Shared fixtures.

The environment is pointed at a throwaway sqlite file and upload directory
before anything from ``paperless`` is imported, because the engine and the
settings singleton are built at import time.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

_TMP = Path(tempfile.mkdtemp(prefix="paperless-tests-"))
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_TMP / 'test.db'}")
os.environ.setdefault("UPLOAD_DIR", str(_TMP / "uploads"))
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("SERVER_URL", "http://testserver")
os.environ.setdefault("RATE_LIMIT_MAX_CALLS", "100000")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import httpx
import pytest
from fastapi.testclient import TestClient

from paperless.config import settings
from paperless.db.session import Base, SessionLocal, engine
from paperless.main import app
from paperless.models.user import Role, User
from paperless.client.api import ApiClient
from paperless.client.auth import AuthContext, SessionStore
import paperless.models.document  # noqa: F401


PDF_BYTES = b"%PDF-1.4\n" + b"0" * (10 * 1024) + b"\n%%EOF\n"


@pytest.fixture(autouse=True)
def _database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    path.mkdir()
    monkeypatch.setattr(settings, "upload_dir", str(path))
    return path


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


def register(client, username="alice", email="alice@acme.io", password="s3cret-pass", department="finance"):
    resp = client.post(
        "/auth/register",
        json={"username": username, "email": email, "password": password, "department": department},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def promote_to_boss(user_id: int) -> None:
    with SessionLocal() as session:
        user = session.get(User, user_id)
        user.role = Role.BOSS.value
        session.commit()


def upload_pdf(client, token, title="Invoice", data=PDF_BYTES, filename="invoice.pdf", **form):
    return client.post(
        "/documents/upload",
        headers=auth_headers(token),
        files={"file": (filename, data, "application/pdf")},
        data={"title": title, **form} if title is not None else form,
    )


@pytest.fixture
def alice(client):
    return register(client)


@pytest.fixture
def bob(client):
    return register(client, username="bob", email="bob@acme.io", department="sales")


@pytest.fixture
def boss(client):
    data = register(client, username="carol", email="carol@acme.io", department="management")
    promote_to_boss(data["user"]["id"])
    return data


def bridge_transport(test_client: TestClient) -> httpx.MockTransport:
    """Route a plain ``httpx.Client`` into the in-process app."""

    def handler(request: httpx.Request) -> httpx.Response:
        resp = test_client.request(
            request.method,
            request.url.raw_path.decode(),
            headers={k: v for k, v in request.headers.items() if k.lower() != "host"},
            content=request.content,
        )
        return httpx.Response(resp.status_code, headers=resp.headers, content=resp.content)

    return httpx.MockTransport(handler)


@pytest.fixture
def session_file(tmp_path):
    return tmp_path / "session.json"


@pytest.fixture
def api(client, session_file):
    context = AuthContext(SessionStore(session_file)).init()
    with ApiClient(context, base_url="http://testserver", transport=bridge_transport(client)) as api_client:
        yield api_client
