import asyncio

import pytest
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import NullPool

from pos_app import seed
from pos_app.config import ConfigError
from pos_app.models import User, Category, MenuItem, DiningTable
from pos_app.services.token_service import verify_password


async def _seed_twice(db_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    try:
        for _ in range(2):
            async with factory() as session:
                await seed.seed_data(session, "admin@restaurant.com", "admin-pass")

        async with factory() as session:
            counts = {}
            for model in (User, Category, MenuItem, DiningTable):
                counts[model.__name__] = (await session.execute(select(func.count(model.id)))).scalar()
            admin = (await session.execute(select(User))).scalar_one()
            pasta = (await session.execute(
                select(MenuItem).where(MenuItem.name == "Spaghetti Bolognese")
            )).scalar_one()
            mains = (await session.execute(select(Category).where(Category.name == "Main Course"))).scalar_one()
        return counts, admin, pasta.category_id == mains.id
    finally:
        await engine.dispose()


def test_seed_is_idempotent(sync_engine):
    counts, admin, linked = asyncio.run(_seed_twice(sync_engine.db_path))

    assert counts == {
        "User": 1,
        "Category": len(seed.SAMPLE_CATEGORIES),
        "MenuItem": len(seed.SAMPLE_MENU_ITEMS),
        "DiningTable": len(seed.SAMPLE_TABLES),
    }
    assert admin.role == "admin"
    assert verify_password("admin-pass", admin.password_hash)
    assert linked


def test_seed_requires_admin_password(monkeypatch):
    monkeypatch.delenv("SEED_ADMIN_PASSWORD", raising=False)
    with pytest.raises(ConfigError):
        asyncio.run(seed.main())
