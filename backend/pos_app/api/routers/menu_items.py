from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from pos_app.db import get_db
from pos_app.models import MenuItem, Category
from pos_app.schemas import (
    MenuItemCreate, MenuItemPublic, MenuItemResponse, MenuItemListResponse, MessageResponse,
)
from pos_app.services.auth_service import get_current_claims, require_manager

router = APIRouter(prefix="/api/menu-items", tags=["menu-items"])


def map_menu_item(item: MenuItem) -> MenuItemPublic:
    return MenuItemPublic(
        id=item.id,
        name=item.name,
        description=item.description,
        price=item.price,
        image_url=item.image_url,
        available=item.available,
        preparation_time=item.preparation_time,
        category_id=item.category_id,
        category_name=item.category.name if item.category else None,
        created_at=item.created_at,
        updated_at=item.updated_at,
    )


async def load_menu_item(db: AsyncSession, item_id: int) -> MenuItem:
    q = (
        select(MenuItem)
        .where(MenuItem.id == item_id, MenuItem.is_deleted.is_(False))
        .options(joinedload(MenuItem.category))
        .execution_options(populate_existing=True)
    )
    item = (await db.execute(q)).scalar_one_or_none()
    if item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Menu item not found")
    return item


async def ensure_category(db: AsyncSession, category_id: int | None) -> None:
    if not category_id:
        return
    q = select(Category.id).where(Category.id == category_id, Category.is_deleted.is_(False))
    if (await db.execute(q)).first() is None:
        raise HTTPException(status_code=400, detail="Category not found")


@router.get("", response_model=MenuItemListResponse, dependencies=[Depends(get_current_claims)])
async def list_menu_items(db: AsyncSession = Depends(get_db)):
    q = (
        select(MenuItem)
        .where(MenuItem.is_deleted.is_(False))
        .options(joinedload(MenuItem.category))
        .order_by(MenuItem.name)
    )
    items = (await db.execute(q)).scalars().all()
    return MenuItemListResponse(menu_items=[map_menu_item(i) for i in items])


@router.post("", response_model=MenuItemResponse, status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(require_manager)])
async def create_menu_item(item_in: MenuItemCreate, db: AsyncSession = Depends(get_db)):
    await ensure_category(db, item_in.category_id)
    item = MenuItem(**item_in.model_dump())
    item.category_id = item_in.category_id or None
    db.add(item)
    await db.commit()
    return MenuItemResponse(menu_item=map_menu_item(await load_menu_item(db, item.id)))


@router.get("/{item_id}", response_model=MenuItemResponse, dependencies=[Depends(get_current_claims)])
async def get_menu_item(item_id: int, db: AsyncSession = Depends(get_db)):
    return MenuItemResponse(menu_item=map_menu_item(await load_menu_item(db, item_id)))


@router.put("/{item_id}", response_model=MenuItemResponse, dependencies=[Depends(require_manager)])
async def update_menu_item(item_id: int, item_in: MenuItemCreate, db: AsyncSession = Depends(get_db)):
    item = await load_menu_item(db, item_id)
    await ensure_category(db, item_in.category_id)

    for field, value in item_in.model_dump().items():
        setattr(item, field, value)
    item.category_id = item_in.category_id or None
    await db.commit()
    return MenuItemResponse(menu_item=map_menu_item(await load_menu_item(db, item_id)))


@router.delete("/{item_id}", response_model=MessageResponse, dependencies=[Depends(require_manager)])
async def delete_menu_item(item_id: int, db: AsyncSession = Depends(get_db)):
    item = await load_menu_item(db, item_id)
    item.is_deleted = True
    await db.commit()
    return MessageResponse(message="Menu item deleted successfully")
