from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, selectinload

from pos_app.db import get_db
from pos_app.logging_conf import get_logger
from pos_app.models import Order, OrderItem, MenuItem, DiningTable
from pos_app.schemas import (
    OrderCreate, OrderUpdate, OrderPublic, OrderItemPublic, OrderResponse, OrderListResponse,
    OrderItemsAdd, OrderItemUpdate, OrderItemRemovedResponse, OrderItemIn, MessageResponse,
)
from pos_app.services.auth_service import get_current_claims
from pos_app.services.token_service import TokenClaims

router = APIRouter(prefix="/api/orders", tags=["orders"])
logger = get_logger(__name__)

# statuses that close an order
CLOSING_STATUSES = {"completed", "paid"}
# items can only change while the order is still open
OPEN_STATUSES = {"pending", "in_progress"}
# item statuses that stamp completed_at
ITEM_DONE_STATUSES = {"ready", "served"}


def _order_query():
    return select(Order).options(
        joinedload(Order.table),
        joinedload(Order.server),
        selectinload(Order.items).joinedload(OrderItem.menu_item),
    ).execution_options(populate_existing=True)


def map_order(order: Order) -> OrderPublic:
    return OrderPublic(
        id=order.id,
        table_id=order.table_id,
        table_name=order.table.name if order.table else None,
        server_id=order.server_id,
        server_name=order.server.name if order.server else None,
        status=order.status,
        total_amount=order.total_amount,
        notes=order.notes,
        created_at=order.created_at,
        updated_at=order.updated_at,
        completed_at=order.completed_at,
        items=[
            OrderItemPublic(
                id=i.id,
                menu_item_id=i.menu_item_id,
                menu_item_name=i.menu_item.name if i.menu_item else None,
                quantity=i.quantity,
                price=i.price,
                status=i.status,
                notes=i.notes,
                created_at=i.created_at,
                completed_at=i.completed_at,
            )
            for i in order.items
        ],
    )


async def load_order(db: AsyncSession, order_id: int) -> Order:
    order = (await db.execute(_order_query().where(Order.id == order_id))).unique().scalar_one_or_none()
    if order is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    return order


async def ensure_table(db: AsyncSession, table_id: int) -> None:
    table = await db.get(DiningTable, table_id)
    if table is None or not table.active:
        raise HTTPException(status_code=400, detail="Table not found")


async def build_order_items(db: AsyncSession, lines: list[OrderItemIn]) -> list[OrderItem]:
    """Price each line from the current menu; every item must exist and be available."""
    menu_ids = {i.menu_item_id for i in lines}
    rows = (
        await db.execute(
            select(MenuItem).where(
                MenuItem.id.in_(menu_ids),
                MenuItem.available.is_(True),
                MenuItem.is_deleted.is_(False),
            )
        )
    ).scalars().all()
    menu = {m.id: m for m in rows}

    items = []
    for line in lines:
        menu_item = menu.get(line.menu_item_id)
        if menu_item is None:
            raise HTTPException(
                status_code=400,
                detail=f"Menu item with ID {line.menu_item_id} does not exist or is not available",
            )
        items.append(OrderItem(
            menu_item_id=menu_item.id,
            quantity=line.quantity,
            price=menu_item.price,
            notes=line.notes or None,
            status="pending",
        ))
    return items


def items_total(items) -> Decimal:
    return sum((i.price * i.quantity for i in items), Decimal("0"))


def ensure_open(order: Order, detail: str) -> None:
    if order.status not in OPEN_STATUSES:
        raise HTTPException(status_code=400, detail=detail)


async def get_order_item(db: AsyncSession, order: Order, item_id: int) -> OrderItem:
    item = await db.get(OrderItem, item_id)
    if item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order item not found")
    if item.order_id != order.id:
        raise HTTPException(status_code=400, detail="Item does not belong to this order")
    return item


@router.get("", response_model=OrderListResponse, dependencies=[Depends(get_current_claims)])
async def list_orders(
    status_filter: Optional[str] = Query(None, alias="status"),
    table_id: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
):
    """Newest first. `status` accepts a comma separated list (e.g. pending,in_progress)."""
    q = _order_query().order_by(Order.created_at.desc(), Order.id.desc())
    if status_filter:
        values = [s.strip() for s in status_filter.split(",") if s.strip()]
        q = q.where(Order.status.in_(values))
    if table_id is not None:
        q = q.where(Order.table_id == table_id)

    orders = (await db.execute(q)).unique().scalars().all()
    return OrderListResponse(orders=[map_order(o) for o in orders])


@router.post("", response_model=OrderResponse, status_code=201)
async def create_order(
    order_in: OrderCreate,
    db: AsyncSession = Depends(get_db),
    claims: TokenClaims = Depends(get_current_claims),
):
    await ensure_table(db, order_in.table_id)
    items = await build_order_items(db, order_in.items)
    total = items_total(items)

    order = Order(
        table_id=order_in.table_id,
        server_id=claims.id,
        status="pending",
        total_amount=total,
        notes=order_in.notes or None,
        items=items,
    )
    try:
        db.add(order)
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Error creating order")
        raise HTTPException(status_code=500, detail="Failed to create order")

    logger.info("Order created", extra={"order_id": order.id, "table_id": order.table_id, "total": str(total)})
    return OrderResponse(order=map_order(await load_order(db, order.id)))


@router.get("/{order_id}", response_model=OrderResponse, dependencies=[Depends(get_current_claims)])
async def get_order(order_id: int, db: AsyncSession = Depends(get_db)):
    return OrderResponse(order=map_order(await load_order(db, order_id)))


@router.put("/{order_id}", response_model=OrderResponse, dependencies=[Depends(get_current_claims)])
async def update_order(order_id: int, order_in: OrderUpdate, db: AsyncSession = Depends(get_db)):
    order = await load_order(db, order_id)
    data = order_in.model_dump(exclude_unset=True)

    if data.get("status"):
        order.status = data["status"]
        if data["status"] in CLOSING_STATUSES:
            order.completed_at = datetime.now(timezone.utc)
    if "notes" in data:
        order.notes = data["notes"]
    if data.get("table_id"):
        await ensure_table(db, data["table_id"])
        order.table_id = data["table_id"]

    await db.commit()
    return OrderResponse(order=map_order(await load_order(db, order_id)))


@router.delete("/{order_id}", response_model=MessageResponse)
async def cancel_order(
    order_id: int,
    db: AsyncSession = Depends(get_db),
    claims: TokenClaims = Depends(get_current_claims),
):
    """Orders are never removed; cancelling keeps them for the history."""
    order = await db.get(Order, order_id)
    if order is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    if claims.role not in ("admin", "manager") and order.server_id != claims.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")

    order.status = "cancelled"
    await db.commit()
    return MessageResponse(message="Order cancelled successfully")


# --- per-item workflow (kitchen display) ---

@router.post("/{order_id}/items", response_model=OrderResponse, dependencies=[Depends(get_current_claims)])
async def add_order_items(order_id: int, req: OrderItemsAdd, db: AsyncSession = Depends(get_db)):
    order = await load_order(db, order_id)
    ensure_open(order, "Cannot add items to a completed or cancelled order")

    order.items.extend(await build_order_items(db, req.items))
    order.total_amount = items_total(order.items)
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Error adding items to order", extra={"order_id": order_id})
        raise HTTPException(status_code=500, detail="Failed to add items to order")

    logger.info("Order items added", extra={"order_id": order_id, "added": len(req.items)})
    return OrderResponse(order=map_order(await load_order(db, order_id)))


@router.put("/{order_id}/items/{item_id}", response_model=OrderResponse,
            dependencies=[Depends(get_current_claims)])
async def update_order_item(
    order_id: int,
    item_id: int,
    item_in: OrderItemUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Quantity, notes or kitchen status of one line. Quantity changes reprice the order."""
    order = await load_order(db, order_id)
    item = await get_order_item(db, order, item_id)
    ensure_open(order, "Cannot update items in a completed or cancelled order")

    data = item_in.model_dump(exclude_unset=True)
    if data.get("quantity"):
        item.quantity = data["quantity"]
        order.total_amount = items_total(order.items)
    if "notes" in data:
        item.notes = data["notes"]
    if data.get("status"):
        item.status = data["status"]
        if data["status"] in ITEM_DONE_STATUSES:
            item.completed_at = datetime.now(timezone.utc)

    await db.commit()
    return OrderResponse(order=map_order(await load_order(db, order_id)))


@router.delete("/{order_id}/items/{item_id}", response_model=OrderItemRemovedResponse,
               dependencies=[Depends(get_current_claims)])
async def remove_order_item(order_id: int, item_id: int, db: AsyncSession = Depends(get_db)):
    """Removing the last line cancels the order."""
    order = await load_order(db, order_id)
    ensure_open(order, "Cannot remove items from a completed or cancelled order")
    item = await get_order_item(db, order, item_id)

    order.items.remove(item)
    order.total_amount = items_total(order.items)
    message = "Item removed successfully"
    if not order.items:
        order.status = "cancelled"
        message = "Item removed and order cancelled (no items left)"

    await db.commit()
    return OrderItemRemovedResponse(order=map_order(await load_order(db, order_id)), message=message)
