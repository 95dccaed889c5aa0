"""
Pytest fixtures for test database, client, storage and authenticated users.

Each test gets a fresh in-memory SQLite database; the app's DB and storage
dependencies are overridden to point at it and at a temporary media folder.
"""

import os

# Must be set before the app (and its settings) are imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("IDENTITY_PROVIDER", "local")
os.environ.setdefault("STORAGE_BACKEND", "local")
os.environ.setdefault("MEDIA_ROOT", "/tmp/stay-booking-test-media")

from datetime import date, timedelta
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.api.deps import get_object_storage
from app.db.base import Base
from app.db.session import get_db
from app.core.security import create_access_token, hash_password
from app.models.auth_identity import AuthIdentity
from app.models.property import Property
from app.models.user import User
from app.services.interfaces.local_storage import LocalObjectStorage

TEST_DATABASE_URL = "sqlite+aiosqlite://"


def next_monday(weeks_ahead: int = 1) -> date:
    """Monday `weeks_ahead` weeks from the current week; always in the future."""
    today = date.today()
    return today - timedelta(days=today.weekday()) + timedelta(weeks=weeks_ahead)


@pytest.fixture
def monday() -> date:
    """Monday two weeks out; stays built from it are never in the past."""
    return next_monday(2)


def _enable_sqlite_transactions(engine) -> None:
    # pysqlite's implicit transaction handling breaks SAVEPOINT; let SQLAlchemy emit BEGIN
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh schema per test, one shared session for the test and the app."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    _enable_sqlite_transactions(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def storage(tmp_path) -> LocalObjectStorage:
    return LocalObjectStorage(str(tmp_path / "media"), "property-images", "http://test")


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession, storage: LocalObjectStorage) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB and storage dependencies."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_object_storage] = lambda: storage

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _make_user(db: AsyncSession, email: str, name: str) -> User:
    identity = AuthIdentity(email=email, hashed_password=hash_password("testpassword123"))
    db.add(identity)
    await db.flush()
    user = User(auth_user_id=str(identity.id), name=name, email=email)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


def _headers_for(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.auth_user_id)}"}


@pytest_asyncio.fixture
async def owner(db_session: AsyncSession) -> User:
    """User who lists properties."""
    return await _make_user(db_session, "owner@example.com", "Olivia Owner")


@pytest_asyncio.fixture
async def guest(db_session: AsyncSession) -> User:
    """User who books other users' properties."""
    return await _make_user(db_session, "guest@example.com", "Gustav Guest")


@pytest_asyncio.fixture
async def owner_headers(owner: User) -> dict:
    return _headers_for(owner)


@pytest_asyncio.fixture
async def guest_headers(guest: User) -> dict:
    return _headers_for(guest)


@pytest_asyncio.fixture
async def test_property(db_session: AsyncSession, owner: User) -> Property:
    """An available listing at 1000 per night."""
    prop = Property(
        owner_id=owner.id,
        name="Lakeside Cabin",
        description="Quiet cabin by the lake",
        location="Mora",
        price_per_night=Decimal("1000.00"),
        availability=True,
    )
    db_session.add(prop)
    await db_session.commit()
    await db_session.refresh(prop)
    return prop


@pytest_asyncio.fixture
async def second_property(db_session: AsyncSession, owner: User) -> Property:
    prop = Property(
        owner_id=owner.id,
        name="City Loft",
        location="Stockholm",
        price_per_night=Decimal("1200.00"),
        availability=True,
    )
    db_session.add(prop)
    await db_session.commit()
    await db_session.refresh(prop)
    return prop


@pytest_asyncio.fixture
async def other_guest(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "other@example.com", "Otto Other")


@pytest_asyncio.fixture
async def other_guest_headers(other_guest: User) -> dict:
    return _headers_for(other_guest)
