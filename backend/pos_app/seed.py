"""
Seed a fresh database: admin account, sample categories, menu items and tables.

    SEED_ADMIN_PASSWORD=... python -m pos_app.seed

Rows that already exist (same email / name) are left alone, so it is safe to rerun.
"""
import asyncio
import os
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pos_app.config import ConfigError
from pos_app.db import SessionLocal
from pos_app.logging_conf import setup_logging, get_logger
from pos_app.models import User, Category, MenuItem, DiningTable
from pos_app.services.token_service import hash_password

logger = get_logger(__name__)

SAMPLE_CATEGORIES = [
    {"name": "Appetizers", "description": "Starter dishes"},
    {"name": "Main Course", "description": "Primary dishes"},
    {"name": "Desserts", "description": "Sweet treats"},
    {"name": "Beverages", "description": "Drinks and refreshments"},
]

SAMPLE_MENU_ITEMS = [
    {"name": "Garlic Bread", "description": "Toasted bread with garlic butter",
     "price": Decimal("5.99"), "category": "Appetizers", "preparation_time": 5},
    {"name": "Spaghetti Bolognese", "description": "Classic pasta with meat sauce",
     "price": Decimal("12.99"), "category": "Main Course", "preparation_time": 15},
    {"name": "Chocolate Cake", "description": "Rich chocolate cake with icing",
     "price": Decimal("6.99"), "category": "Desserts", "preparation_time": 3},
    {"name": "Iced Tea", "description": "Refreshing sweet iced tea",
     "price": Decimal("2.99"), "category": "Beverages", "preparation_time": 2},
]

SAMPLE_TABLES = [
    {"name": f"Table {n}", "capacity": cap, "x_position": (n - 1) % 3, "y_position": (n - 1) // 3}
    for n, cap in enumerate([2, 2, 4, 4, 6, 8], start=1)
]


async def seed_data(session: AsyncSession, admin_email: str, admin_password: str) -> None:
    existing = (await session.execute(select(User).where(User.email == admin_email))).scalar_one_or_none()
    if existing is None:
        session.add(User(
            name="Admin User",
            email=admin_email,
            password_hash=hash_password(admin_password),
            role="admin",
        ))
        logger.info("Admin user created", extra={"email": admin_email})

    known = set((await session.execute(select(Category.name))).scalars().all())
    for cat in SAMPLE_CATEGORIES:
        if cat["name"] not in known:
            session.add(Category(**cat))
    await session.flush()

    categories = {c.name: c.id for c in (await session.execute(select(Category))).scalars().all()}
    known_items = set((await session.execute(select(MenuItem.name))).scalars().all())
    for item in SAMPLE_MENU_ITEMS:
        if item["name"] in known_items:
            continue
        data = dict(item)
        data["category_id"] = categories.get(data.pop("category"))
        session.add(MenuItem(**data))

    known_tables = set((await session.execute(select(DiningTable.name))).scalars().all())
    for table in SAMPLE_TABLES:
        if table["name"] not in known_tables:
            session.add(DiningTable(**table))

    await session.commit()
    logger.info("Seed data committed")


async def main() -> None:
    setup_logging()
    password = os.getenv("SEED_ADMIN_PASSWORD")
    if not password:
        raise ConfigError("SEED_ADMIN_PASSWORD must be set to create the admin account")
    email = os.getenv("SEED_ADMIN_EMAIL", "admin@restaurant.com").lower()
    async with SessionLocal() as session:
        await seed_data(session, email, password)


if __name__ == "__main__":
    asyncio.run(main())
