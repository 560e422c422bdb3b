from __future__ import annotations
from typing import Optional, List, Dict, Any, Literal
from decimal import Decimal
from datetime import datetime

from pydantic import BaseModel, Field, EmailStr

from pos_app.models import Role, TableStatus, OrderStatus, OrderItemStatus


class Envelope(BaseModel):
    success: bool = True


class MessageResponse(Envelope):
    message: str


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int


# --- auth ---

class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class SessionUser(BaseModel):
    id: int
    email: str
    role: str
    name: Optional[str] = None

    class Config:
        from_attributes = True


class LoginResponse(Envelope):
    user: SessionUser
    token: str


class MeResponse(Envelope):
    user: SessionUser


# --- users ---

class UserPublic(BaseModel):
    """
    User as returned by the API; the password hash never leaves the server.
    """
    id: int
    name: str
    email: str
    role: str
    active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: Role = "server"
    active: bool = True


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    role: Optional[Role] = None
    active: Optional[bool] = None


class UserPasswordUpdate(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, description="New password must be at least 6 characters")


class UserResponse(Envelope):
    user: UserPublic


class UserListResponse(Envelope):
    users: List[UserPublic]
    pagination: Pagination


# --- tables ---

class TablePublic(BaseModel):
    id: int
    name: str
    capacity: int
    status: str
    x_position: int
    y_position: int
    active: bool
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TableCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    capacity: int = Field(..., gt=0)
    status: TableStatus = "available"
    x_position: int = 0
    y_position: int = 0
    notes: Optional[str] = None


class TableUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    capacity: Optional[int] = Field(None, gt=0)
    status: Optional[TableStatus] = None
    x_position: Optional[int] = None
    y_position: Optional[int] = None
    notes: Optional[str] = None
    active: Optional[bool] = None


class TableResponse(Envelope):
    table: TablePublic


class TableListResponse(Envelope):
    tables: List[TablePublic]


# --- categories ---

class CategoryPublic(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    image_url: Optional[str] = None


class CategoryResponse(Envelope):
    category: CategoryPublic


class CategoryListResponse(Envelope):
    categories: List[CategoryPublic]


# --- menu items ---

class MenuItemPublic(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    price: Decimal
    image_url: Optional[str] = None
    available: bool
    preparation_time: Optional[int] = None
    category_id: Optional[int] = None
    category_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MenuItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    image_url: Optional[str] = None
    available: bool = True
    preparation_time: Optional[int] = Field(None, ge=0)
    category_id: Optional[int] = None


class MenuItemResponse(Envelope):
    menu_item: MenuItemPublic


class MenuItemListResponse(Envelope):
    menu_items: List[MenuItemPublic]


# --- public menu ---

class PublicMenuItem(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    price: Decimal
    image_url: Optional[str] = None
    available: bool
    category_id: Optional[int] = None

    class Config:
        from_attributes = True


class PublicMenuCategory(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    menu_items: List[PublicMenuItem] = []


class PublicMenuResponse(Envelope):
    menu: List[PublicMenuCategory]


# --- orders ---

class OrderItemIn(BaseModel):
    menu_item_id: int
    quantity: int = Field(1, gt=0)
    notes: Optional[str] = None


class OrderCreate(BaseModel):
    table_id: int
    notes: Optional[str] = None
    items: List[OrderItemIn] = Field(..., min_length=1)


class OrderUpdate(BaseModel):
    status: Optional[OrderStatus] = None
    notes: Optional[str] = None
    table_id: Optional[int] = None


class OrderItemsAdd(BaseModel):
    items: List[OrderItemIn] = Field(..., min_length=1)


class OrderItemUpdate(BaseModel):
    quantity: Optional[int] = Field(None, gt=0)
    notes: Optional[str] = None
    status: Optional[OrderItemStatus] = None


class OrderItemPublic(BaseModel):
    id: int
    menu_item_id: int
    menu_item_name: Optional[str] = None
    quantity: int
    price: Decimal
    status: str
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class OrderPublic(BaseModel):
    id: int
    table_id: Optional[int] = None
    table_name: Optional[str] = None
    server_id: Optional[int] = None
    server_name: Optional[str] = None
    status: str
    total_amount: Decimal
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    items: List[OrderItemPublic] = []


class OrderResponse(Envelope):
    order: OrderPublic


class OrderListResponse(Envelope):
    orders: List[OrderPublic]


class OrderItemRemovedResponse(OrderResponse):
    message: str


# --- telemetry ---

class EventIn(BaseModel):
    event: str = Field(..., min_length=1)
    properties: Optional[Dict[str, Any]] = None


class PageViewIn(BaseModel):
    path: str = Field(..., min_length=1)


class PerformanceTimingIn(BaseModel):
    page_load_time: float = Field(..., gt=0)
    url: str = Field(..., min_length=1)
    time_to_first_byte: Optional[float] = 0
    dom_content_loaded: Optional[float] = 0
    timestamp: Optional[str] = None  # client clock, informational only


class ErrorReportIn(BaseModel):
    message: str = Field(..., min_length=1)
    stack: Optional[str] = None
    url: Optional[str] = None
    context: Optional[Dict[str, Any]] = None
    timestamp: Optional[str] = None


class RecordedResponse(Envelope):
    recorded: bool = True
