import os
import tempfile

_TMP = tempfile.mkdtemp(prefix="pos-tests-")
os.environ["JWT_SECRET"] = "test-secret-not-for-production"
os.environ["ASYNC_DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TMP, 'unused.db')}"
os.environ["TELEMETRY_DIR"] = os.path.join(_TMP, "telemetry")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import Session
from sqlalchemy.pool import NullPool

from pos_app.db import Base, get_db
from pos_app.main import app
from pos_app.models import User, Category, MenuItem, DiningTable
from pos_app.services.telemetry_store import TelemetryStore, get_telemetry_store
from pos_app.services.token_service import hash_password, issue_token

PASSWORD = "secret-pass"


@pytest.fixture
def sync_engine(tmp_path):
    """Fresh SQLite file per test; the schema is created synchronously."""
    path = tmp_path / "pos.db"
    engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(engine)
    engine.db_path = path
    yield engine
    engine.dispose()


@pytest.fixture
def telemetry_store(tmp_path):
    return TelemetryStore(str(tmp_path / "telemetry"))


@pytest.fixture
def client(sync_engine, telemetry_store):
    async_engine = create_async_engine(f"sqlite+aiosqlite:///{sync_engine.db_path}", poolclass=NullPool)
    session_factory = async_sessionmaker(async_engine, expire_on_commit=False, class_=AsyncSession)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_telemetry_store] = lambda: telemetry_store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(sync_engine):
    def _make(role="server", email=None, name=None, password=PASSWORD, active=True):
        with Session(sync_engine) as s:
            user = User(
                name=name or f"{role.title()} User",
                email=email or f"{role}@restaurant.com",
                password_hash=hash_password(password),
                role=role,
                active=active,
            )
            s.add(user)
            s.commit()
            return {"id": user.id, "email": user.email, "role": user.role, "name": user.name}
    return _make


@pytest.fixture
def login_as(client):
    """Put a freshly issued session cookie for `user` on the test client."""
    def _login(user):
        client.cookies.set("auth_token", issue_token(user))
        return user
    return _login


@pytest.fixture
def seed_menu(sync_engine):
    """Two categories with items; one unavailable item, one empty category."""
    with Session(sync_engine) as s:
        mains = Category(name="Main Course", description="Primary dishes")
        drinks = Category(name="Beverages")
        empty = Category(name="Seasonal")
        s.add_all([mains, drinks, empty])
        s.flush()
        pasta = MenuItem(name="Spaghetti Bolognese", price=Decimal("12.99"), category_id=mains.id)
        tea = MenuItem(name="Iced Tea", price=Decimal("2.99"), category_id=drinks.id)
        soup = MenuItem(name="Soup of the Day", price=Decimal("4.50"), category_id=mains.id, available=False)
        table = DiningTable(name="Table 1", capacity=4)
        s.add_all([pasta, tea, soup, table])
        s.commit()
        return {
            "mains": mains.id, "drinks": drinks.id, "empty": empty.id,
            "pasta": pasta.id, "tea": tea.id, "soup": soup.id, "table": table.id,
        }
