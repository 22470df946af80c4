"""
tests/conftest.py -- Shared test fixtures for the Astra docs API tests.

This module provides:
  - make_engine(): an isolated named shared-memory SQLite engine
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - api: an ApiHarness (TestClient plus the objects behind app.state)

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares one
in-memory instance across all connections in the same process.

Environment variables must be set before any api/ or core/ import:
get_settings() is cached and api.limiter reads it at import time.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from unittest.mock import MagicMock

# CRITICAL: set before importing api.main so the cached settings see them.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("ADMIN_TOKEN", "test-admin-token")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from api.main import app
from auth.models import User
from auth.service import AuthService
from auth.sessions import SessionStore
from auth.store import UserStore
from cache.store import TTLCache
from core.config import Settings
from core.db import create_db_engine
from core.errors import ValidationError
from documents.models import Document
from documents.service import DocsService
from documents.store import DocumentStore

ADMIN_TOKEN = "test-admin-token"
TEST_LOGIN = "TestUser01"
TEST_PASSWORD = "Qwerty123!"


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def make_engine(db_suffix: str) -> Engine:
    """Create an engine on an isolated named shared-memory SQLite database.

    Args:
        db_suffix: Unique string in the DB name so test modules don't share
                   state (e.g. 'api_auth', 'store_docs').
    """
    return create_db_engine(f"sqlite:///file:test_{db_suffix}?mode=memory&cache=shared&uri=true")


@dataclass
class ApiHarness:
    """A running TestClient plus direct handles on the app.state objects."""

    client: TestClient
    user_store: UserStore
    doc_store: DocumentStore
    sessions: SessionStore
    cache: TTLCache
    docs_service: MagicMock  # MagicMock(wraps=DocsService) -- counts calls
    uploads_dir: Path

    def register(self, login: str = TEST_LOGIN, pswd: str = TEST_PASSWORD, token: str = ADMIN_TOKEN):
        return self.client.post("/api/register", json={"token": token, "login": login, "pswd": pswd})

    def login(self, login: str = TEST_LOGIN, pswd: str = TEST_PASSWORD) -> str:
        resp = self.client.post("/api/auth", json={"login": login, "pswd": pswd})
        assert resp.status_code == 200, f"Login failed: {resp.status_code} {resp.text}"
        return resp.json()["response"]["token"]


def _patch_lifespan(state: dict):
    """Return an async context manager that replaces the real lifespan.

    Copies pre-built test objects onto app.state so routes see isolated
    stores rather than the configured database.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        for name, value in state.items():
            setattr(app.state, name, value)
        yield

    return test_lifespan


def _build_harness(db_suffix: str, uploads_dir: Path) -> Generator[ApiHarness, None, None]:
    engine = make_engine(db_suffix)
    user_store = UserStore(engine)
    doc_store = DocumentStore(engine)
    user_store.migrate()
    doc_store.migrate()

    settings = Settings(debug=True, admin_token=ADMIN_TOKEN, uploads_dir=str(uploads_dir))
    sessions = SessionStore()
    cache = TTLCache(ttl=300)
    docs_service = MagicMock(wraps=DocsService(doc_store))

    app.router.lifespan_context = _patch_lifespan(
        {
            "settings": settings,
            "user_store": user_store,
            "doc_store": doc_store,
            "sessions": sessions,
            "cache": cache,
            "auth_service": AuthService(user_store, ADMIN_TOKEN),
            "docs_service": docs_service,
        }
    )

    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiHarness(
            client=client,
            user_store=user_store,
            doc_store=doc_store,
            sessions=sessions,
            cache=cache,
            docs_service=docs_service,
            uploads_dir=uploads_dir,
        )

    engine.dispose()


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api(request, tmp_path_factory) -> Generator[ApiHarness, None, None]:
    """Yield an ApiHarness wired to fresh stores for the requesting module.

    The database name and uploads dir are derived from the module name, so
    each test module starts from an empty database.
    """
    suffix = request.module.__name__.rsplit(".", 1)[-1]
    yield from _build_harness(suffix, tmp_path_factory.mktemp(f"uploads_{suffix}"))


# ---------------------------------------------------------------------------
# In-memory repositories for service unit tests
#
# Both satisfy the UserRepository / DocumentRepository protocols structurally.
# ---------------------------------------------------------------------------


class FakeUserRepository:
    def __init__(self) -> None:
        self.users: dict[str, User] = {}

    def create(self, user: User) -> None:
        if any(u.login == user.login for u in self.users.values()):
            raise ValidationError("login already exists")
        self.users[user.id] = user

    def create_tx(self, conn, user: User) -> None:
        self.create(user)

    def get_by_login(self, login: str) -> User | None:
        return next((u for u in self.users.values() if u.login == login), None)

    def get_by_id(self, user_id: str) -> User | None:
        return self.users.get(user_id)


class FakeDocumentRepository:
    def __init__(self) -> None:
        self.docs: dict[str, Document] = {}

    def create(self, doc: Document) -> None:
        self.docs[doc.id] = doc

    def list(self, owner: str, limit: int) -> list[Document]:
        rows = sorted(
            (d for d in self.docs.values() if d.owner == owner),
            key=lambda d: d.created_at,
            reverse=True,
        )
        rows.sort(key=lambda d: d.name)
        return rows[:limit] if limit >= 0 else rows

    def get_by_id(self, doc_id: str) -> Document | None:
        return self.docs.get(doc_id)

    def delete(self, doc_id: str) -> bool:
        return self.docs.pop(doc_id, None) is not None


@pytest.fixture
def fake_users() -> FakeUserRepository:
    return FakeUserRepository()


@pytest.fixture
def fake_docs() -> FakeDocumentRepository:
    return FakeDocumentRepository()


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """A fresh, empty in-memory database per test."""
    eng = make_engine(uuid.uuid4().hex)
    yield eng
    eng.dispose()
