from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from pos_app.config import get_settings
from pos_app.services.token_service import TokenClaims, verify_token

# Browsers send the HTTP-only cookie; API clients may use the bearer header instead.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def _read_token(request: Request, bearer: Optional[str]) -> Optional[str]:
    cookie = request.cookies.get(get_settings().auth_cookie_name)
    return cookie or bearer


async def get_current_claims(
    request: Request,
    bearer: Optional[str] = Depends(oauth2_scheme),
) -> TokenClaims:
    """
    Resolve the caller's session token into claims.
    Every protected router depends on this (directly or through require_roles).
    """
    token = _read_token(request, bearer)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    claims = verify_token(token)
    if claims is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )
    return claims


def require_roles(*roles: str):
    allowed = frozenset(roles)

    async def checker(claims: TokenClaims = Depends(get_current_claims)) -> TokenClaims:
        if claims.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return claims

    return checker


require_manager = require_roles("admin", "manager")
require_admin = require_roles("admin")
