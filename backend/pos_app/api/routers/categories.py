from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pos_app.db import get_db
from pos_app.logging_conf import get_logger
from pos_app.models import Category
from pos_app.schemas import CategoryCreate, CategoryResponse, CategoryListResponse, MessageResponse
from pos_app.services.auth_service import get_current_claims, require_manager

router = APIRouter(prefix="/api/categories", tags=["categories"])
logger = get_logger(__name__)


async def get_category_or_404(db: AsyncSession, category_id: int) -> Category:
    q = select(Category).where(Category.id == category_id, Category.is_deleted.is_(False))
    category = (await db.execute(q)).scalar_one_or_none()
    if category is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    return category


async def name_taken(db: AsyncSession, name: str, exclude_id: int | None = None) -> bool:
    q = select(Category.id).where(Category.name == name)
    if exclude_id is not None:
        q = q.where(Category.id != exclude_id)
    return (await db.execute(q.limit(1))).first() is not None


@router.get("", response_model=CategoryListResponse, dependencies=[Depends(get_current_claims)])
async def list_categories(db: AsyncSession = Depends(get_db)):
    q = select(Category).where(Category.is_deleted.is_(False)).order_by(Category.name)
    categories = (await db.execute(q)).scalars().all()
    return CategoryListResponse(categories=categories)


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(require_manager)])
async def create_category(category_in: CategoryCreate, db: AsyncSession = Depends(get_db)):
    # names stay unique even across soft-deleted rows (unique column)
    if await name_taken(db, category_in.name):
        raise HTTPException(status_code=400, detail="Category name already exists")

    category = Category(
        name=category_in.name,
        description=category_in.description or None,
        image_url=category_in.image_url or None,
    )
    try:
        db.add(category)
        await db.commit()
        await db.refresh(category)
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=400, detail="Category name already exists")
    return CategoryResponse(category=category)


@router.get("/{category_id}", response_model=CategoryResponse, dependencies=[Depends(get_current_claims)])
async def get_category(category_id: int, db: AsyncSession = Depends(get_db)):
    return CategoryResponse(category=await get_category_or_404(db, category_id))


@router.put("/{category_id}", response_model=CategoryResponse, dependencies=[Depends(require_manager)])
async def update_category(category_id: int, category_in: CategoryCreate, db: AsyncSession = Depends(get_db)):
    category = await get_category_or_404(db, category_id)
    if await name_taken(db, category_in.name, exclude_id=category_id):
        raise HTTPException(status_code=400, detail="Category name already exists")

    category.name = category_in.name
    category.description = category_in.description or None
    category.image_url = category_in.image_url or None
    await db.commit()
    await db.refresh(category)
    return CategoryResponse(category=category)


@router.delete("/{category_id}", response_model=MessageResponse, dependencies=[Depends(require_manager)])
async def delete_category(category_id: int, db: AsyncSession = Depends(get_db)):
    category = await get_category_or_404(db, category_id)
    category.is_deleted = True
    await db.commit()
    logger.info("Category deleted", extra={"category_id": category_id})
    return MessageResponse(message="Category deleted successfully")
