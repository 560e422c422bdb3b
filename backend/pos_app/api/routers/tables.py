from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pos_app.db import get_db
from pos_app.logging_conf import get_logger
from pos_app.models import DiningTable
from pos_app.pagination import PageParams, page_params
from pos_app.schemas import TableCreate, TableUpdate, TableResponse, TableListResponse
from pos_app.services.auth_service import get_current_claims, require_admin, require_manager

router = APIRouter(prefix="/api/tables", tags=["tables"])
logger = get_logger(__name__)


async def get_table_or_404(db: AsyncSession, table_id: int) -> DiningTable:
    table = await db.get(DiningTable, table_id)
    if table is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Table not found")
    return table


@router.get("", response_model=TableListResponse, dependencies=[Depends(get_current_claims)])
async def list_tables(
    pages: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db),
):
    """Active tables ordered by name, one page at a time."""
    q = (
        select(DiningTable)
        .where(DiningTable.active.is_(True))
        .order_by(DiningTable.name, DiningTable.id)
        .offset(pages.offset)
        .limit(pages.limit)
    )
    tables = (await db.execute(q)).scalars().all()
    return TableListResponse(tables=tables)


@router.post("", response_model=TableResponse, status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(require_manager)])
async def create_table(table_in: TableCreate, db: AsyncSession = Depends(get_db)):
    table = DiningTable(**table_in.model_dump(), active=True)
    try:
        db.add(table)
        await db.commit()
        await db.refresh(table)
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Error creating table")
        raise HTTPException(status_code=500, detail="Failed to create table")
    return TableResponse(table=table)


@router.get("/{table_id}", response_model=TableResponse, dependencies=[Depends(get_current_claims)])
async def get_table(table_id: int, db: AsyncSession = Depends(get_db)):
    return TableResponse(table=await get_table_or_404(db, table_id))


@router.put("/{table_id}", response_model=TableResponse, dependencies=[Depends(require_manager)])
async def update_table(table_id: int, table_in: TableUpdate, db: AsyncSession = Depends(get_db)):
    table = await get_table_or_404(db, table_id)
    # only fields present in the body change
    for field, value in table_in.model_dump(exclude_unset=True).items():
        if value is None and field != "notes":
            continue
        setattr(table, field, value)
    try:
        await db.commit()
        await db.refresh(table)
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Error updating table", extra={"table_id": table_id})
        raise HTTPException(status_code=500, detail="Failed to update table")
    return TableResponse(table=table)


@router.delete("/{table_id}", response_model=TableResponse, dependencies=[Depends(require_admin)])
async def delete_table(table_id: int, db: AsyncSession = Depends(get_db)):
    """Soft delete: the row stays so past orders keep their table."""
    table = await get_table_or_404(db, table_id)
    table.active = False
    await db.commit()
    await db.refresh(table)
    return TableResponse(table=table)
