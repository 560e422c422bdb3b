from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pos_app.db import get_db
from pos_app.models import Category, MenuItem
from pos_app.schemas import PublicMenuCategory, PublicMenuItem, PublicMenuResponse

router = APIRouter(prefix="/api/public", tags=["public"])


@router.get("/menu", response_model=PublicMenuResponse)
async def public_menu(db: AsyncSession = Depends(get_db)):
    """
    Customer-facing menu (no login). Only categories with at least one
    available item are listed, each with its available items.
    """
    categories = (
        await db.execute(
            select(Category).where(Category.is_deleted.is_(False)).order_by(Category.id)
        )
    ).scalars().all()
    items = (
        await db.execute(
            select(MenuItem)
            .where(MenuItem.available.is_(True), MenuItem.is_deleted.is_(False))
            .order_by(MenuItem.id)
        )
    ).scalars().all()

    by_category: dict[int, list[PublicMenuItem]] = {}
    for item in items:
        if item.category_id is not None:
            by_category.setdefault(item.category_id, []).append(PublicMenuItem.model_validate(item))

    menu = [
        PublicMenuCategory(
            id=c.id,
            name=c.name,
            description=c.description,
            image_url=c.image_url,
            menu_items=by_category[c.id],
        )
        for c in categories
        if by_category.get(c.id)
    ]
    return PublicMenuResponse(menu=menu)
