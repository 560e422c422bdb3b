from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select, func, or_, asc, desc
from sqlalchemy.ext.asyncio import AsyncSession

from pos_app.db import get_db
from pos_app.logging_conf import get_logger
from pos_app.models import User, Role
from pos_app.pagination import PageParams, page_params
from pos_app.schemas import (
    UserCreate, UserUpdate, UserPasswordUpdate, UserResponse, UserListResponse, MessageResponse,
)
from pos_app.services.auth_service import get_current_claims, require_admin
from pos_app.services.token_service import TokenClaims, hash_password, verify_password

router = APIRouter(prefix="/api/users", tags=["users"])
logger = get_logger(__name__)

SORT_COLUMNS = {
    "id": User.id,
    "name": User.name,
    "email": User.email,
    "role": User.role,
    "created_at": User.created_at,
}


async def get_user_or_404(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


async def email_taken(db: AsyncSession, email: str, exclude_id: Optional[int] = None) -> bool:
    q = select(User.id).where(User.email == email)
    if exclude_id is not None:
        q = q.where(User.id != exclude_id)
    return (await db.execute(q.limit(1))).first() is not None


async def count_admins(db: AsyncSession, active_only: bool = False) -> int:
    q = select(func.count(User.id)).where(User.role == "admin")
    if active_only:
        q = q.where(User.active.is_(True))
    return (await db.execute(q)).scalar() or 0


def ensure_self_or_admin(claims: TokenClaims, user_id: int, detail: str) -> None:
    if claims.id != user_id and claims.role != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


@router.get("", response_model=UserListResponse, dependencies=[Depends(require_admin)])
async def list_users(
    role: Optional[Role] = None,
    active: Optional[bool] = None,
    search: Optional[str] = None,
    sort_by: Literal["id", "name", "email", "role", "created_at"] = "id",
    sort_order: Literal["asc", "desc"] = "asc",
    pages: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db),
):
    conditions = []
    if role:
        conditions.append(User.role == role)
    if active is not None:
        conditions.append(User.active.is_(active))
    if search:
        pattern = f"%{search}%"
        conditions.append(or_(User.name.ilike(pattern), User.email.ilike(pattern)))

    total = (await db.execute(select(func.count(User.id)).where(*conditions))).scalar() or 0

    order = desc if sort_order == "desc" else asc
    q = (
        select(User)
        .where(*conditions)
        .order_by(order(SORT_COLUMNS[sort_by]), User.id)
        .offset(pages.offset)
        .limit(pages.limit)
    )
    users = (await db.execute(q)).scalars().all()
    return UserListResponse(users=users, pagination=pages.meta(total))


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(require_admin)])
async def create_user(user_in: UserCreate, db: AsyncSession = Depends(get_db)):
    email = user_in.email.lower()
    if await email_taken(db, email):
        raise HTTPException(status_code=400, detail="Email already in use")

    user = User(
        name=user_in.name,
        email=email,
        password_hash=hash_password(user_in.password),
        role=user_in.role,
        active=user_in.active,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info("User created", extra={"user_id": user.id, "role": user.role})
    return UserResponse(user=user)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    claims: TokenClaims = Depends(get_current_claims),
):
    ensure_self_or_admin(claims, user_id, "Unauthorized access")
    return UserResponse(user=await get_user_or_404(db, user_id))


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    user_in: UserUpdate,
    db: AsyncSession = Depends(get_db),
    claims: TokenClaims = Depends(get_current_claims),
):
    """
    Admins may change name, email, role and active flag of anyone; everyone
    else may only change their own name and email. The last admin can
    neither be demoted nor deactivated.
    """
    ensure_self_or_admin(claims, user_id, "Unauthorized. Can only update your own profile")
    user = await get_user_or_404(db, user_id)
    data = user_in.model_dump(exclude_unset=True)

    if claims.role != "admin" and ("role" in data or "active" in data):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only admins can change role or status")

    if data.get("role") and user.role == "admin" and data["role"] != "admin":
        if await count_admins(db) <= 1:
            raise HTTPException(status_code=400, detail="Cannot change the role of the last admin user")

    if data.get("active") is False and user.role == "admin" and user.active:
        if await count_admins(db, active_only=True) <= 1:
            raise HTTPException(status_code=400, detail="Cannot deactivate the last active admin user")

    if data.get("email"):
        data["email"] = data["email"].lower()
        if await email_taken(db, data["email"], exclude_id=user_id):
            raise HTTPException(status_code=400, detail="Email already in use")

    for field, value in data.items():
        if value is not None:
            setattr(user, field, value)
    await db.commit()
    await db.refresh(user)
    return UserResponse(user=user)


@router.delete("/{user_id}", response_model=MessageResponse, dependencies=[Depends(require_admin)])
async def deactivate_user(user_id: int, db: AsyncSession = Depends(get_db)):
    user = await get_user_or_404(db, user_id)
    if user.role == "admin" and user.active:
        if await count_admins(db, active_only=True) <= 1:
            raise HTTPException(status_code=400, detail="Cannot deactivate the last active admin user")

    user.active = False
    await db.commit()
    logger.info("User deactivated", extra={"user_id": user_id})
    return MessageResponse(message="User deactivated successfully")


@router.post("/{user_id}/change-password", response_model=MessageResponse)
async def change_password(
    user_id: int,
    req: UserPasswordUpdate,
    db: AsyncSession = Depends(get_db),
    claims: TokenClaims = Depends(get_current_claims),
):
    ensure_self_or_admin(claims, user_id, "Unauthorized. You can only change your own password")
    user = await get_user_or_404(db, user_id)

    if not verify_password(req.current_password, user.password_hash):
        raise HTTPException(status_code=400, detail="Current password is incorrect")

    user.password_hash = hash_password(req.new_password)
    await db.commit()
    return MessageResponse(message="Password changed successfully")
