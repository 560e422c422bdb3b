from datetime import datetime, timedelta, timezone
from typing import Optional, Any, Mapping

from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel, ValidationError

from pos_app.config import get_settings

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class TokenClaims(BaseModel):
    """Decoded session token. iat/exp are unix timestamps."""
    id: int
    email: str
    role: str
    name: Optional[str] = None
    iat: Optional[int] = None
    exp: Optional[int] = None


def hash_password(password):
    if not isinstance(password, (str, bytes)):
        raise TypeError("Password must be a string or bytes.")
    return pwd_context.hash(password)


def verify_password(plain_password, password_hash) -> bool:
    if not plain_password or not password_hash:
        return False
    try:
        return pwd_context.verify(plain_password, password_hash)
    except (ValueError, TypeError):
        # unknown hash format
        return False


def _claims_source(user: Any) -> Mapping[str, Any]:
    if isinstance(user, Mapping):
        return user
    return {"id": user.id, "email": user.email, "role": user.role, "name": getattr(user, "name", None)}


def issue_token(user: Any, expires_delta: Optional[timedelta] = None) -> str:
    """
    Sign a session token for `user` (a User row or a mapping with id/email/role/name).
    Lifetime defaults to JWT_EXPIRES_IN.
    """
    settings = get_settings()
    secret = settings.require_jwt_secret()
    src = _claims_source(user)

    now = datetime.now(timezone.utc)
    expire = now + (expires_delta if expires_delta is not None else settings.jwt_expires_in)
    to_encode = {
        "id": int(src["id"]),
        "email": src["email"],
        "role": src["role"],
        "name": src.get("name"),
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(to_encode, secret, algorithm=settings.jwt_algorithm)


def verify_token(token: Optional[str]) -> Optional[TokenClaims]:
    """Return the claims, or None for a missing, malformed, tampered or expired token."""
    if not token:
        return None
    settings = get_settings()
    secret = settings.require_jwt_secret()
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    try:
        return TokenClaims.model_validate(payload)
    except ValidationError:
        return None
