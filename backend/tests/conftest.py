"""
Faxon Portal API — Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the whole suite.
How:   Transactional behaviour (rollbacks, savepoints, last_login updates)
       is tested against a real SQLite database through aiosqlite, created
       fresh per test. Pure logic uses the AsyncMock session. Providers are
       replaced through app.dependency_overrides.

Fixture Hierarchy:
    ├── mock_db_session:      AsyncMock session (no database)
    ├── db_engine:            per-test SQLite engine with all tables
    │   └── session_factory:  async_sessionmaker bound to it
    │       └── seeded:       three members and three documents
    ├── asset_storage:        real SupabaseStorage over httpx.MockTransport
    ├── document_storage:     mocked ZohoWorkDrive
    ├── mailer:               mocked BrevoMailer
    └── test_client:          httpx AsyncClient over ASGITransport
"""

import os
import tempfile

# Settings are read at import time: set the environment before any
# faxon_api import
os.environ["DATABASE_URL"] = (
    "sqlite+aiosqlite:///" + os.path.join(tempfile.mkdtemp(prefix="faxon_test_"), "app.db")
)
os.environ["SUPABASE_URL"] = "https://project.supabase.co"
os.environ["SUPABASE_SERVICE_KEY"] = "service-key-not-real"
os.environ["SUPABASE_BUCKET"] = "faxon-bucket"
os.environ["ZOHO_ACCESS_TOKEN"] = "zoho-token-not-real"
os.environ["BREVO_API_KEY"] = "brevo-key-not-real"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"
os.environ["AUTH_RATE_LIMIT_REQUESTS"] = "10000"
os.environ["LOG_LEVEL"] = "WARNING"

import json
from typing import List
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from faxon_api.database import Base, get_db_session
from faxon_api.models import Document, TeamMember
from faxon_api.services.providers import (
    BrevoMailer,
    SupabaseStorage,
    ZohoWorkDrive,
    get_asset_storage,
    get_document_storage,
    get_mailer,
)

SUPABASE_URL = "https://project.supabase.co"
BUCKET = "faxon-bucket"


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

def _enable_sqlite_savepoints(engine) -> None:
    """
    pysqlite's implicit transaction handling breaks SAVEPOINT; hand BEGIN
    over to SQLAlchemy so begin_nested() behaves as on PostgreSQL.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _no_implicit_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _explicit_begin(conn):
        conn.exec_driver_sql("BEGIN")


@pytest.fixture
def mock_db_session():
    """
    AsyncMock standing in for AsyncSession.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = member
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'faxon.db'}")
    _enable_sqlite_savepoints(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def empty_db_engine(tmp_path):
    """An engine whose database has no tables (unprovisioned schema)."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")
    _enable_sqlite_savepoints(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seeded(session_factory):
    """
    Members:
        1 alice  active
        2 bob    inactive
        3 carol  active
    Documents:
        10 owned by alice, WorkDrive id stored
        11 owned by alice, legacy row (id only in the URL)
        12 owned by carol
    """
    async with session_factory() as session:
        session.add_all([
            TeamMember(
                id=1,
                username="alice",
                email="alice@faxon.example",
                full_name="Alice Mugisha",
                role="editor",
                bio="Writes the product pages.",
                phone_number="+250788000001",
                status=True,
            ),
            TeamMember(
                id=2,
                username="bob",
                email="bob@faxon.example",
                full_name="Bob Kariuki",
                role="editor",
                status=False,
            ),
            TeamMember(
                id=3,
                username="carol",
                email="cc@faxon.example",
                full_name=None,
                role="admin",
                status=True,
            ),
            Document(
                id=10,
                user_id=1,
                title="Brochure 2024",
                file_url="https://workdrive.zoho.com/file/abc123XYZ",
                provider_file_id="abc123XYZ",
            ),
            Document(
                id=11,
                user_id=1,
                title="Price list",
                file_url="https://workdrive.zoho.com/file/legacy789",
            ),
            Document(
                id=12,
                user_id=3,
                title="Board minutes",
                file_url="https://workdrive.zoho.com/file/carol555",
                provider_file_id="carol555",
            ),
        ])
        await session.commit()
    return {"alice": 1, "bob": 2, "carol": 3}


def override_session(factory):
    """Build a get_db_session replacement bound to `factory`."""

    async def _get_db_session():
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    return _get_db_session


# ══════════════════════════════════════════════════════════════════════════
# Providers
# ══════════════════════════════════════════════════════════════════════════

class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it answered."""

    def __init__(self, status_code: int = 200, body=None):
        self.requests: List[httpx.Request] = []
        self.status_code = status_code
        self.body = body if body is not None else {"Key": "ok"}
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.body)

    def json_body(self, index: int = -1):
        return json.loads(self.requests[index].content)


@pytest.fixture
def storage_transport():
    return RecordingTransport()


@pytest.fixture
def asset_storage(storage_transport):
    return SupabaseStorage(
        base_url=SUPABASE_URL,
        service_key="service-key-not-real",
        bucket=BUCKET,
        transport=storage_transport,
    )


@pytest.fixture
def document_storage():
    storage = MagicMock(spec=ZohoWorkDrive)
    storage.delete_file = AsyncMock(return_value=None)
    return storage


@pytest.fixture
def mailer():
    fake = MagicMock(spec=BrevoMailer)
    fake.send_otp = AsyncMock(return_value=None)
    return fake


@pytest.fixture
def sample_jpeg_bytes():
    """Minimal JPEG: SOI + JFIF header + EOI."""
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


# ══════════════════════════════════════════════════════════════════════════
# API client
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def app():
    from faxon_api.main import app as application
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def test_client(app, session_factory, asset_storage, document_storage, mailer):
    """
    AsyncClient wired to the app with the SQLite session and fake providers.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
    """
    app.dependency_overrides[get_db_session] = override_session(session_factory)
    app.dependency_overrides[get_asset_storage] = lambda: asset_storage
    app.dependency_overrides[get_document_storage] = lambda: document_storage
    app.dependency_overrides[get_mailer] = lambda: mailer

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def session_override():
    """The `override_session` builder, for tests that swap in another database."""
    return override_session


@pytest.fixture
def make_transport():
    """Factory for RecordingTransport: make_transport(status_code=500, body={...})."""
    return RecordingTransport
