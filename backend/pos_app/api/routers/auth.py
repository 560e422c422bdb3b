from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pos_app.config import get_settings
from pos_app.db import get_db
from pos_app.logging_conf import get_logger
from pos_app.models import User
from pos_app.schemas import LoginRequest, LoginResponse, MeResponse, SessionUser, MessageResponse
from pos_app.services.auth_service import get_current_claims
from pos_app.services.token_service import TokenClaims, issue_token, verify_password

router = APIRouter(prefix="/api/auth", tags=["auth"])
logger = get_logger(__name__)


async def get_user_by_email(db: AsyncSession, email: str):
    q = select(User).where(User.email == email)
    res = await db.execute(q)
    return res.scalar_one_or_none()


@router.post("/login", response_model=LoginResponse)
async def login(req: LoginRequest, db: AsyncSession = Depends(get_db)):
    invalid = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid email or password",
    )
    user = await get_user_by_email(db, req.email.strip().lower())
    if user is None:
        raise invalid
    if not user.active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Your account has been deactivated",
        )
    if not verify_password(req.password, user.password_hash):
        raise invalid

    settings = get_settings()
    token = issue_token(user)
    body = LoginResponse(user=SessionUser.model_validate(user), token=token)

    response = JSONResponse(content=body.model_dump(mode="json"))
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        httponly=True,
        path="/",
        secure=settings.cookie_secure,
        samesite="lax",
        max_age=int(settings.jwt_expires_in.total_seconds()),
    )
    logger.info("User logged in", extra={"user_id": user.id, "role": user.role})
    return response


@router.post("/logout", response_model=MessageResponse)
async def logout():
    # No server-side revocation: the token stays valid until it expires.
    settings = get_settings()
    response = JSONResponse(content={"success": True, "message": "Logged out successfully"})
    response.delete_cookie(key=settings.auth_cookie_name, path="/", httponly=True)
    return response


@router.get("/me", response_model=MeResponse)
async def me(claims: TokenClaims = Depends(get_current_claims)):
    """Identity carried by the session token; does not touch the database."""
    return MeResponse(user=SessionUser(id=claims.id, email=claims.email, role=claims.role, name=claims.name))
